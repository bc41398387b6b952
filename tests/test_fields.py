"""
tests/test_fields.py
Field expression emission: base primitives, top-level validators, inferred
default validators, enums, external overrides, lists and nullability.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

import pytest

from zodgen.fields import EmittedField, FieldSchemaEmitter, as_nullish, field_key
from zodgen.models import Datamodel, FieldDefinition, GeneratorConfig


# ===========================================================================
# Helpers
# ===========================================================================


def _datamodel(provider: str = "postgresql") -> Datamodel:
    return Datamodel.model_validate(
        {
            "provider": provider,
            "models": [{"name": "Thing", "fields": [{"name": "id", "type": "String", "is_id": True}]}],
            "enums": [{"name": "Role", "values": ["ADMIN", "READER"]}],
        }
    )


def _emit(
    field_data: Dict[str, Any],
    config: Optional[GeneratorConfig] = None,
    provider: str = "postgresql",
) -> EmittedField:
    emitter = FieldSchemaEmitter(config or GeneratorConfig(), _datamodel(provider))
    return emitter.emit(FieldDefinition.model_validate(field_data))


# ===========================================================================
# Scalars
# ===========================================================================


class TestScalarEmission:
    def test_plain_string(self) -> None:
        assert _emit({"name": "title", "type": "String"}).expression == "z.string()"

    def test_top_level_validator_replaces_base(self) -> None:
        emitted = _emit({"name": "email", "type": "String", "documentation": "@zod.email()"})
        assert emitted.expression == "z.email()"

    def test_branded_identifier(self) -> None:
        emitted = _emit(
            {
                "name": "id",
                "type": "String",
                "is_id": True,
                "default": {"name": "cuid"},
                "documentation": '@zod.cuid().brand("UserId")',
            }
        )
        assert emitted.expression == 'z.cuid().brand("UserId")'

    def test_chain_on_selected_type(self) -> None:
        emitted = _emit(
            {"name": "name", "type": "String", "documentation": "@zod.string.min(3).max(20)"}
        )
        assert emitted.expression == "z.string().min(3).max(20)"

    def test_boolean(self) -> None:
        assert _emit({"name": "verified", "type": "Boolean", "default": False}).expression == "z.boolean()"

    def test_datetime_per_engine(self) -> None:
        assert _emit({"name": "at", "type": "DateTime"}).expression == "z.coerce.date()"
        assert _emit({"name": "at", "type": "DateTime"}, provider="sqlite").expression == "z.string()"


class TestDefaultValidators:
    @pytest.mark.parametrize(
        "field_data, expected",
        [
            ({"name": "id", "type": "String", "default": {"name": "cuid"}}, "z.string().cuid2()"),
            ({"name": "id", "type": "String", "default": {"name": "uuid"}}, "z.string().uuid()"),
            ({"name": "count", "type": "Int"}, "z.number().int()"),
            ({"name": "count", "type": "Int", "documentation": "@zod.int().positive()"}, "z.number().int().positive()"),
        ],
    )
    def test_inferred(self, field_data: Dict[str, Any], expected: str) -> None:
        assert _emit(field_data).expression == expected

    def test_disabled(self) -> None:
        config = GeneratorConfig(use_default_validators=False)
        assert _emit({"name": "count", "type": "Int"}, config).expression == "z.number()"
        emitted = _emit({"name": "id", "type": "String", "default": {"name": "cuid"}}, config)
        assert emitted.expression == "z.string()"


# ===========================================================================
# Nullability, lists and descriptions
# ===========================================================================


class TestNullability:
    def test_required_field_has_no_suffix(self) -> None:
        emitted = _emit({"name": "title", "type": "String"})
        assert ".nullish()" not in emitted.expression
        assert not emitted.outer_nullish

    def test_nullable_field_gets_one_suffix(self) -> None:
        emitted = _emit({"name": "bio", "type": "String", "is_required": False})
        assert emitted.expression == "z.string().nullish()"
        assert emitted.outer_nullish

    @pytest.mark.parametrize("declared", ["nullable()", "nullish()"])
    def test_annotation_nullability_not_doubled(self, declared: str) -> None:
        emitted = _emit(
            {
                "name": "bio",
                "type": "String",
                "is_required": False,
                "documentation": f"@zod.string.max(5).{declared}",
            }
        )
        assert emitted.expression == "z.string().max(5).nullish()"
        assert emitted.expression.count(".nullish()") == 1

    def test_description_comes_last(self) -> None:
        emitted = _emit(
            {
                "name": "displayName",
                "type": "String",
                "is_required": False,
                "documentation": '@zod.string.min(2).describe("Shown next to posts")',
            }
        )
        assert emitted.expression == 'z.string().min(2).nullish().describe("Shown next to posts")'

    def test_list_field(self) -> None:
        assert _emit({"name": "tags", "type": "String", "is_list": True}).expression == "z.string().array()"
        emitted = _emit({"name": "tags", "type": "String", "is_list": True, "is_required": False})
        assert emitted.expression == "z.string().array().nullish()"

    def test_as_nullish(self) -> None:
        assert as_nullish(".nullable()") == ".nullish()"
        assert as_nullish(".min(1)") == ".min(1)"


# ===========================================================================
# Enums and external overrides
# ===========================================================================


class TestEnumFields:
    def test_known_enum(self) -> None:
        emitted = _emit({"name": "role", "type": "Role", "kind": "enum"})
        assert emitted.expression == "z.nativeEnum(Role)"
        assert emitted.imports == {"./enums": {"Role"}}
        assert emitted.warnings == []

    def test_unknown_enum_warns(self) -> None:
        emitted = _emit({"name": "plan", "type": "Plan", "kind": "enum"})
        assert emitted.expression == "z.unknown()"
        assert len(emitted.warnings) == 1
        assert "Plan" in emitted.warnings[0]

    def test_enum_file_name_drives_import(self) -> None:
        config = GeneratorConfig(enum_file_name="constants.ts")
        emitted = _emit({"name": "role", "type": "Role", "kind": "enum"}, config)
        assert emitted.imports == {"./constants": {"Role"}}


class TestExternalOverride:
    def test_single_import(self) -> None:
        emitted = _emit(
            {
                "name": "metadata",
                "type": "Json",
                "is_required": False,
                "documentation": "@kyselyType(import('../types/post').PostMetadata | null)",
            }
        )
        assert emitted.expression.startswith("z.preprocess(")
        assert emitted.expression.endswith(", PostMetadataSchema).nullish()")
        assert emitted.imports == {"../types/post": {"PostMetadataSchema"}}
        assert emitted.doc_lines == []

    def test_union_of_imports(self) -> None:
        emitted = _emit(
            {
                "name": "shape",
                "type": "Json",
                "documentation": "@kyselyType(import('./a').Circle | import('./b').Square)",
            }
        )
        assert "z.union([CircleSchema, SquareSchema])" in emitted.expression

    def test_unresolvable_override(self) -> None:
        emitted = _emit({"name": "x", "type": "Json", "documentation": "@kyselyType(string | null)"})
        assert emitted.expression == "z.unknown()"
        assert emitted.warnings


# ===========================================================================
# Keys and rendering
# ===========================================================================


class TestKeysAndRender:
    def test_field_key(self) -> None:
        field_def = FieldDefinition(name="createdAt", type="DateTime", db_name="created_at")
        assert field_key(field_def, camel_case=False) == "created_at"
        assert field_key(field_def, camel_case=True) == "createdAt"

    def test_render_with_doc(self) -> None:
        emitted = _emit({"name": "email", "type": "String", "documentation": "Contact.\n@zod.email()"})
        lines: List[str] = emitted.render()
        assert lines == ["  /**", "   * Contact.", "   */", "  email: z.email(),"]

    def test_render_quotes_odd_keys(self) -> None:
        emitted = _emit({"name": "first-name", "type": "String"})
        assert emitted.render() == ['  "first-name": z.string(),']
