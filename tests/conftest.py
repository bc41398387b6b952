"""
tests/conftest.py
Shared fixtures for the zodgen test suite.

All fixtures are session-scoped or function-scoped as appropriate.
No external mocking libraries are used; real file I/O is performed
inside temporary directories managed by pytest's tmp_path fixtures.
"""

from __future__ import annotations

import copy
import pathlib
from typing import Any, Dict

import pytest
import yaml

from zodgen.models import Datamodel, GeneratorConfig


# ---------------------------------------------------------------------------
# Path helpers
# ---------------------------------------------------------------------------

ROOT_DIR: pathlib.Path = pathlib.Path(__file__).resolve().parent.parent
EXAMPLE_PATH: pathlib.Path = ROOT_DIR / "datamodel_example.yaml"


# ---------------------------------------------------------------------------
# Reference datamodel fixtures
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def raw_example_dict() -> Dict[str, Any]:
    """Load the reference datamodel_example.yaml once per session."""
    assert EXAMPLE_PATH.exists(), (
        f"Reference datamodel not found at {EXAMPLE_PATH}. "
        "Make sure datamodel_example.yaml is in the project root."
    )
    with open(EXAMPLE_PATH, "r", encoding="utf-8") as fh:
        data = yaml.safe_load(fh)
    assert isinstance(data, dict), "Top-level YAML must be a mapping."
    return data


@pytest.fixture()
def example_dict(raw_example_dict: Dict[str, Any]) -> Dict[str, Any]:
    """Return a deep copy so each test can mutate freely."""
    return copy.deepcopy(raw_example_dict)


@pytest.fixture()
def example_yaml_path(example_dict: Dict[str, Any], tmp_path: pathlib.Path) -> pathlib.Path:
    """Write the example dict to a temporary YAML file and return its path."""
    path = tmp_path / "datamodel.yaml"
    with open(path, "w", encoding="utf-8") as fh:
        yaml.dump(example_dict, fh, default_flow_style=False, allow_unicode=True)
    return path


@pytest.fixture()
def example_datamodel(example_dict: Dict[str, Any]) -> Datamodel:
    return Datamodel.model_validate(
        {
            "provider": example_dict["provider"],
            "models": example_dict["models"],
            "enums": example_dict["enums"],
        }
    )


# ---------------------------------------------------------------------------
# The User scenario
# ---------------------------------------------------------------------------


@pytest.fixture()
def user_datamodel_dict() -> Dict[str, Any]:
    """One model: a branded cuid id, an email and a boolean with a default."""
    return {
        "provider": "postgresql",
        "models": [
            {
                "name": "User",
                "fields": [
                    {
                        "name": "id",
                        "type": "String",
                        "is_id": True,
                        "default": {"name": "cuid"},
                        "documentation": '@zod.cuid().brand("UserId")',
                    },
                    {
                        "name": "email",
                        "type": "String",
                        "documentation": "@zod.email()",
                    },
                    {
                        "name": "verified",
                        "type": "Boolean",
                        "default": False,
                    },
                ],
            }
        ],
    }


@pytest.fixture()
def user_datamodel(user_datamodel_dict: Dict[str, Any]) -> Datamodel:
    return Datamodel.model_validate(user_datamodel_dict)


@pytest.fixture()
def user_yaml_path(user_datamodel_dict: Dict[str, Any], tmp_path: pathlib.Path) -> pathlib.Path:
    """The User scenario with every family enabled, written to a temp file."""
    data: Dict[str, Any] = copy.deepcopy(user_datamodel_dict)
    data["config"] = {
        "generate_brand_registry": True,
        "generate_three_layers": True,
        "generate_crud_schemas": True,
    }
    path = tmp_path / "user.yaml"
    with open(path, "w", encoding="utf-8") as fh:
        yaml.dump(data, fh, default_flow_style=False)
    return path


# ---------------------------------------------------------------------------
# Configuration fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def base_config() -> GeneratorConfig:
    """Base schemas only (the defaults)."""
    return GeneratorConfig()


@pytest.fixture()
def full_config() -> GeneratorConfig:
    """Every artifact family enabled."""
    return GeneratorConfig(
        generate_brand_registry=True,
        generate_three_layers=True,
        generate_crud_schemas=True,
    )


# ---------------------------------------------------------------------------
# Output directory fixture
# ---------------------------------------------------------------------------


@pytest.fixture()
def output_dir(tmp_path: pathlib.Path) -> pathlib.Path:
    """Provide a clean output directory inside tmp_path."""
    out = tmp_path / "generated_output"
    out.mkdir(parents=True, exist_ok=True)
    return out
