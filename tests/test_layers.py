"""
tests/test_layers.py
Database / Runtime / External layer schemas and conversion functions.
"""

from __future__ import annotations

from typing import Dict, Optional

from zodgen.brands import BrandRegistry
from zodgen.layers import Layer, LayerGenerator, model_module
from zodgen.models import Datamodel, GeneratorConfig
from zodgen.schemas import BaseSchemaGenerator
from zodgen.utils import GENERATED_HEADER


def _layer_files(
    datamodel: Datamodel, config: GeneratorConfig, with_registry: bool = True
) -> Dict[str, str]:
    base = BaseSchemaGenerator(config, datamodel)
    registry: Optional[BrandRegistry] = (
        BrandRegistry.from_datamodel(datamodel) if with_registry else None
    )
    generator = LayerGenerator(config, base, registry)
    return {f.relative_path: f.content for f in generator.generate_all()}


class TestLayerSchemas:
    def test_file_layout(self, example_datamodel: Datamodel, full_config: GeneratorConfig) -> None:
        files = _layer_files(example_datamodel, full_config)
        assert sorted(files) == [
            "layers/index.ts",
            "layers/post.schemas.ts",
            "layers/transform-utils.ts",
            "layers/user.schemas.ts",
        ]
        assert files["layers/index.ts"] == (
            f"{GENERATED_HEADER}\n"
            "export * from './post.schemas';\n"
            "export * from './transform-utils';\n"
            "export * from './user.schemas';\n"
        )

    def test_database_layer_is_identity(self, example_datamodel: Datamodel, full_config: GeneratorConfig) -> None:
        user = _layer_files(example_datamodel, full_config)["layers/user.schemas.ts"]
        assert "export const UserDBSchema = UserSchema;" in user
        assert "export type UserDB = z.infer<typeof UserDBSchema>;" in user

    def test_runtime_layer_substitutes_brands(
        self, example_datamodel: Datamodel, full_config: GeneratorConfig
    ) -> None:
        post = _layer_files(example_datamodel, full_config)["layers/post.schemas.ts"]
        assert "export const PostRuntimeSchema = PostSchema.extend({" in post
        assert "  id: brands.PostId," in post
        assert "  author_id: brands.UserId," in post
        assert "  views: PostSchema.shape.views.pipe(z.coerce.bigint())," in post
        assert 'import * as brands from "../brands";' in post
        assert 'import { PostSchema } from "../schemas";' in post

    def test_external_layer_serialises_bigint_and_decimal(
        self, example_datamodel: Datamodel, full_config: GeneratorConfig
    ) -> None:
        post = _layer_files(example_datamodel, full_config)["layers/post.schemas.ts"]
        assert "export const PostAPISchema = PostSchema.extend({" in post
        assert (
            "  views: z.union([z.bigint(), z.number(), z.string()])"
            ".transform((val) => String(val)),"
        ) in post
        assert (
            "  rating: z.union([z.string(), z.number()])"
            ".transform((val) => String(val)).nullish(),"
        ) in post

    def test_identity_external_layer(self, example_datamodel: Datamodel, full_config: GeneratorConfig) -> None:
        user = _layer_files(example_datamodel, full_config)["layers/user.schemas.ts"]
        assert "export const UserAPISchema = UserSchema;" in user

    def test_without_registry_no_brand_import(
        self, example_datamodel: Datamodel, full_config: GeneratorConfig
    ) -> None:
        user = _layer_files(example_datamodel, full_config, with_registry=False)["layers/user.schemas.ts"]
        assert "brands" not in user
        assert "export const UserRuntimeSchema = UserSchema;" in user

    def test_nullable_bigint_is_unwrapped_then_rewrapped(self, full_config: GeneratorConfig) -> None:
        datamodel = Datamodel.model_validate(
            {
                "models": [
                    {
                        "name": "Counter",
                        "fields": [
                            {"name": "id", "type": "Int", "is_id": True},
                            {"name": "total", "type": "BigInt", "is_required": False},
                        ],
                    }
                ]
            }
        )
        counter = _layer_files(datamodel, full_config)["layers/counter.schemas.ts"]
        assert (
            "  total: CounterSchema.shape.total.unwrap().unwrap()"
            ".pipe(z.coerce.bigint()).nullish(),"
        ) in counter


class TestConversionFunctions:
    def test_functions_emitted(self, example_datamodel: Datamodel, full_config: GeneratorConfig) -> None:
        user = _layer_files(example_datamodel, full_config)["layers/user.schemas.ts"]
        assert "export function userDBToRuntime(data: UserDB): UserRuntime {" in user
        assert "  return UserRuntimeSchema.parse(data);" in user
        assert "export function userRuntimeToAPI(data: UserRuntime): UserAPI {" in user
        assert "export function userDBToAPI(data: UserDB): UserAPI {" in user
        assert "  return userRuntimeToAPI(userDBToRuntime(data));" in user


def test_transform_utils(example_datamodel: Datamodel, full_config: GeneratorConfig) -> None:
    utils = _layer_files(example_datamodel, full_config)["layers/transform-utils.ts"]
    assert "export const sqliteBoolean = " in utils
    assert "export const sqliteDateTime = " in utils
    assert "export const apiDateTime = " in utils


def test_layer_names() -> None:
    assert [layer.value for layer in Layer] == ["DB", "Runtime", "API"]
    assert model_module("UserProfile") == "userprofile.schemas"
