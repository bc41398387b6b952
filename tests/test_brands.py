"""
tests/test_brands.py
Brand registry: collection, chain resolution, conflict policy, implicit
brands and the emitted branded.ts file.
"""

from __future__ import annotations

from typing import Any, Dict, List

import pytest

from zodgen.annotations import parse_annotation
from zodgen.brands import (
    BrandConflictError,
    BrandRegistry,
    BrandRegistryGenerator,
    implicit_brand,
    resolve_brand_chain,
)
from zodgen.models import Datamodel, FieldDefinition, GeneratorConfig
from zodgen.utils import GENERATED_HEADER


# ===========================================================================
# Helpers
# ===========================================================================


def _shared_brand_datamodel(second_doc: str = '@zod.cuid().brand("UserId")') -> Datamodel:
    """Three fields across three models declaring the same brand."""
    return Datamodel.model_validate(
        {
            "models": [
                {
                    "name": "User",
                    "fields": [
                        {"name": "id", "type": "String", "is_id": True, "documentation": '@zod.cuid().brand("UserId")'},
                    ],
                },
                {
                    "name": "Post",
                    "fields": [
                        {"name": "id", "type": "String", "is_id": True},
                        {"name": "authorId", "type": "String", "documentation": second_doc},
                    ],
                },
                {
                    "name": "Comment",
                    "fields": [
                        {"name": "id", "type": "String", "is_id": True},
                        {"name": "userId", "type": "String", "documentation": '@zod.cuid().brand("UserId")'},
                    ],
                },
            ]
        }
    )


def _resolve(field_data: Dict[str, Any], provider: str = "postgresql") -> str:
    field_def = FieldDefinition.model_validate(field_data)
    annotation = parse_annotation(field_def.documentation)
    assert annotation is not None
    return resolve_brand_chain(provider, field_def, annotation)


# ===========================================================================
# Chain resolution
# ===========================================================================


class TestResolveBrandChain:
    def test_top_level_validator(self) -> None:
        assert _resolve({"name": "id", "type": "String", "documentation": '@zod.cuid().brand("UserId")'}) == "z.cuid()"

    def test_type_selector_with_constraints(self) -> None:
        doc = '@zod.string.min(3).brand("Slug")'
        assert _resolve({"name": "slug", "type": "String", "documentation": doc}) == "z.string().min(3)"

    def test_falls_back_to_type_mapper(self) -> None:
        doc = '@zod.min(1).brand("Score")'
        assert _resolve({"name": "score", "type": "Int", "documentation": doc}) == "z.number().min(1)"

    def test_nullability_excluded(self) -> None:
        doc = '@zod.cuid().nullable().brand("UserId")'
        assert _resolve({"name": "id", "type": "String", "documentation": doc}) == "z.cuid()"


# ===========================================================================
# Registry
# ===========================================================================


class TestBrandRegistry:
    def test_one_entry_for_shared_brand(self) -> None:
        registry = BrandRegistry.from_datamodel(_shared_brand_datamodel())
        assert len(registry) == 1
        entry = registry.get("UserId")
        assert entry is not None
        assert entry.base_chain == "z.cuid()"
        assert entry.sites == ["User.id", "Post.authorId", "Comment.userId"]

    def test_strict_conflict_raises(self) -> None:
        datamodel = _shared_brand_datamodel('@zod.uuid().brand("UserId")')
        with pytest.raises(BrandConflictError) as exc_info:
            BrandRegistry.from_datamodel(datamodel, strict=True)
        assert exc_info.value.conflict.rejected_site == "Post.authorId"

    def test_lenient_conflict_keeps_first(self) -> None:
        datamodel = _shared_brand_datamodel('@zod.uuid().brand("UserId")')
        registry = BrandRegistry.from_datamodel(datamodel, strict=False)
        assert len(registry.conflicts) == 1
        conflict = registry.conflicts[0]
        assert conflict.kept_site == "User.id"
        assert conflict.kept_chain == "z.cuid()"
        assert conflict.rejected_chain == "z.uuid()"
        assert "UserId" in conflict.describe()
        entry = registry.get("UserId")
        assert entry is not None
        assert entry.base_chain == "z.cuid()"

    def test_names_sorted(self, example_datamodel: Datamodel) -> None:
        registry = BrandRegistry.from_datamodel(example_datamodel)
        assert registry.names == ["PostId", "UserId"]
        assert [b.name for b in registry] == ["PostId", "UserId"]
        assert "UserId" in registry
        assert "Missing" not in registry


class TestFieldBrand:
    def test_explicit_brand(self, example_datamodel: Datamodel) -> None:
        registry = BrandRegistry.from_datamodel(example_datamodel)
        user = example_datamodel.get_model("User")
        assert user is not None
        id_field = user.get_field("id")
        assert id_field is not None
        assert registry.field_brand(user, id_field) == "UserId"

    def test_foreign_key_implies_target_brand(self, example_datamodel: Datamodel) -> None:
        registry = BrandRegistry.from_datamodel(example_datamodel)
        post = example_datamodel.get_model("Post")
        assert post is not None
        author_id = post.get_field("authorId")
        assert author_id is not None
        assert implicit_brand(post, author_id) == "UserId"
        assert registry.field_brand(post, author_id) == "UserId"

    def test_unregistered_implicit_brand_ignored(self, example_datamodel: Datamodel) -> None:
        registry = BrandRegistry.from_datamodel(example_datamodel)
        post = example_datamodel.get_model("Post")
        assert post is not None
        title = post.get_field("title")
        assert title is not None
        assert implicit_brand(post, title) is None
        assert registry.field_brand(post, title) is None


# ===========================================================================
# Emission
# ===========================================================================


class TestBrandRegistryGenerator:
    def test_single_binding_per_brand(self) -> None:
        registry = BrandRegistry.from_datamodel(_shared_brand_datamodel())
        content = BrandRegistryGenerator(GeneratorConfig(), registry).generate_branded().content
        assert content.count("export const UserId =") == 1
        assert (
            "/**\n"
            " * Brand: UserId\n"
            " * Used in: User.id, Post.authorId, Comment.userId\n"
            " */\n"
            'export const UserId = z.cuid().brand("UserId");\n'
            "export type UserId = z.infer<typeof UserId>;"
        ) in content
        assert 'export type BrandName = "UserId";' in content

    def test_union_of_names(self, example_datamodel: Datamodel) -> None:
        registry = BrandRegistry.from_datamodel(example_datamodel)
        content = BrandRegistryGenerator(GeneratorConfig(), registry).generate_branded().content
        assert 'export type BrandName = "PostId" | "UserId";' in content
        assert content.startswith(GENERATED_HEADER + '\nimport { z } from "zod/v4";\n')

    def test_no_brands(self, base_config: GeneratorConfig) -> None:
        datamodel = Datamodel.model_validate({"models": [{"name": "A", "fields": []}]})
        registry = BrandRegistry.from_datamodel(datamodel)
        content = BrandRegistryGenerator(base_config, registry).generate_branded().content
        assert "export type BrandName = never;" in content

    def test_files(self, example_datamodel: Datamodel) -> None:
        config = GeneratorConfig(generate_brand_registry=True, brands_dir="types/brands")
        registry = BrandRegistry.from_datamodel(example_datamodel)
        files: List = BrandRegistryGenerator(config, registry).generate_all()
        assert [f.relative_path for f in files] == ["types/brands/branded.ts", "types/brands/index.ts"]
        assert files[1].content == f"{GENERATED_HEADER}\nexport * from './branded';\n"
