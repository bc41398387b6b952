"""
tests/test_schemas.py
Base schema family: per-model files, the enum constants file and the barrel.
"""

from __future__ import annotations

from typing import Dict

from zodgen.models import Datamodel, GeneratorConfig
from zodgen.schemas import BaseSchemaGenerator, schema_name
from zodgen.utils import GENERATED_HEADER


def _contents(generator: BaseSchemaGenerator) -> Dict[str, str]:
    return {f.relative_path: f.content for f in generator.generate_all()}


class TestBaseSchemaFiles:
    def test_user_scenario(self, user_datamodel: Datamodel, base_config: GeneratorConfig) -> None:
        files = _contents(BaseSchemaGenerator(base_config, user_datamodel))
        assert files["schemas/User.ts"] == "\n".join(
            [
                GENERATED_HEADER,
                'import { z } from "zod/v4";',
                "",
                "export const UserSchema = z.object({",
                '  id: z.cuid().brand("UserId"),',
                "  email: z.email(),",
                "  verified: z.boolean(),",
                "});",
                "",
            ]
        )

    def test_file_order_and_family(self, example_datamodel: Datamodel, base_config: GeneratorConfig) -> None:
        generated = BaseSchemaGenerator(base_config, example_datamodel).generate_all()
        assert [f.relative_path for f in generated] == [
            "schemas/Post.ts",
            "schemas/User.ts",
            "schemas/enums.ts",
            "schemas/index.ts",
        ]
        assert {f.family for f in generated} == {"schemas"}

    def test_relations_are_skipped(self, example_datamodel: Datamodel, base_config: GeneratorConfig) -> None:
        files = _contents(BaseSchemaGenerator(base_config, example_datamodel))
        assert "posts:" not in files["schemas/User.ts"]
        assert "  author:" not in files["schemas/Post.ts"]
        assert "  author_id: z.string()," in files["schemas/Post.ts"]

    def test_imports_sorted(self, example_datamodel: Datamodel, base_config: GeneratorConfig) -> None:
        post = _contents(BaseSchemaGenerator(base_config, example_datamodel))["schemas/Post.ts"]
        assert (
            'import { PostMetadataSchema } from "../types/post";\n'
            'import { PostStatus } from "./enums";'
        ) in post

    def test_model_documentation_becomes_jsdoc(
        self, example_datamodel: Datamodel, base_config: GeneratorConfig
    ) -> None:
        user = _contents(BaseSchemaGenerator(base_config, example_datamodel))["schemas/User.ts"]
        assert "/**\n * A registered account.\n */\nexport const UserSchema" in user
        assert "@crud" not in user

    def test_post_fields(self, example_datamodel: Datamodel, base_config: GeneratorConfig) -> None:
        post = _contents(BaseSchemaGenerator(base_config, example_datamodel))["schemas/Post.ts"]
        assert '  id: z.uuid().brand("PostId"),' in post
        assert '  slug: z.string().regex(/^[a-z0-9-]+$/, "Lowercase words joined by dashes"),' in post
        assert '  title: z.string().min(1, { message: "Title is required" }).max(200),' in post
        assert "  views: z.string()," in post
        assert "  rating: z.string().nullish()," in post
        assert "  status: z.nativeEnum(PostStatus)," in post


class TestEnumsAndIndex:
    def test_enum_constants(self, example_datamodel: Datamodel, base_config: GeneratorConfig) -> None:
        enums = _contents(BaseSchemaGenerator(base_config, example_datamodel))["schemas/enums.ts"]
        assert (
            "/**\n * Access level of a user.\n */\n"
            "export const Role = {\n"
            '  ADMIN: "ADMIN",\n'
            '  EDITOR: "EDITOR",\n'
            '  READER: "READER",\n'
            "} as const;\n"
            "export type Role = (typeof Role)[keyof typeof Role];"
        ) in enums
        assert "export const PostStatus = {" in enums

    def test_index(self, example_datamodel: Datamodel, base_config: GeneratorConfig) -> None:
        index = _contents(BaseSchemaGenerator(base_config, example_datamodel))["schemas/index.ts"]
        assert index == (
            f"{GENERATED_HEADER}\n"
            "export * from './Post';\n"
            "export * from './User';\n"
            "export * from './enums';\n"
        )

    def test_no_enum_file_without_enums(self, user_datamodel: Datamodel, base_config: GeneratorConfig) -> None:
        generator = BaseSchemaGenerator(base_config, user_datamodel)
        assert generator.generate_enums() is None
        assert "enums" not in generator.generate_index().content


def test_emitted_fields_are_cached(example_datamodel: Datamodel, base_config: GeneratorConfig) -> None:
    generator = BaseSchemaGenerator(base_config, example_datamodel)
    user = example_datamodel.get_model("User")
    assert user is not None
    assert generator.emitted_fields(user) is generator.emitted_fields(user)


def test_unknown_enum_warning_collected(base_config: GeneratorConfig) -> None:
    datamodel = Datamodel.model_validate(
        {"models": [{"name": "A", "fields": [{"name": "plan", "type": "Plan", "kind": "enum"}]}]}
    )
    generator = BaseSchemaGenerator(base_config, datamodel)
    generator.generate_all()
    assert len(generator.warnings) == 1


def test_schema_name() -> None:
    assert schema_name("User") == "UserSchema"
