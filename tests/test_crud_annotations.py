"""
tests/test_crud_annotations.py
Parsing of @crud.* business-rule directives on models and fields.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from zodgen.crud_annotations import (
    parse_array_arg,
    parse_int_arg,
    parse_json_arg,
    parse_model_rules,
    parse_string_arg,
)
from zodgen.models import Datamodel, ModelDefinition


def _model(
    documentation: str, fields: Optional[List[Dict[str, Any]]] = None
) -> ModelDefinition:
    return ModelDefinition.model_validate(
        {
            "name": "Thing",
            "documentation": documentation,
            "fields": fields or [{"name": "id", "type": "Int", "is_id": True}],
        }
    )


class TestArgumentParsers:
    def test_array_mixed_quotes(self) -> None:
        assert parse_array_arg("[\"a\", 'b', c]") == ["a", "b", "c"]

    def test_array_empty(self) -> None:
        assert parse_array_arg("[]") == []

    def test_string(self) -> None:
        assert parse_string_arg('"createdAt_desc"') == "createdAt_desc"
        assert parse_string_arg("'x'") == "x"
        assert parse_string_arg("true") == "true"

    def test_int(self) -> None:
        assert parse_int_arg("50", "list.maxPageSize") == 50
        assert parse_int_arg("lots", "list.maxPageSize") is None

    def test_json(self) -> None:
        assert parse_json_arg('{"status": "DRAFT"}', "create.defaults") == {"status": "DRAFT"}
        assert parse_json_arg("{status: DRAFT}", "create.defaults") is None


class TestModelRules:
    def test_reference_post_rules(self, example_datamodel: Datamodel) -> None:
        post = example_datamodel.get_model("Post")
        assert post is not None
        rules = parse_model_rules(post)
        assert rules.create.omit == ["slug"]
        assert rules.create.defaults == {"status": "DRAFT"}
        assert rules.update.immutable == ["authorId"]
        assert rules.update.refine == "Provide at least one change to the post"
        assert rules.list.custom_filters == ["title_contains", "publishedAt_gte"]
        assert rules.list.custom_filter_types == {"visibility": "enum(['mine', 'all'])"}
        assert rules.list.pagination == "both"
        assert rules.list.max_page_size == 50
        assert rules.list.has_where
        assert rules.org_scoped

    def test_reference_user_rules(self, example_datamodel: Datamodel) -> None:
        user = example_datamodel.get_model("User")
        assert user is not None
        rules = parse_model_rules(user)
        assert rules.list.filters == ["email", "role"]
        assert rules.list.order_by == ["createdAt", "email"]
        assert rules.list.default_order == "createdAt_desc"
        assert not rules.org_scoped

    def test_no_documentation(self) -> None:
        rules = parse_model_rules(ModelDefinition(name="Bare"))
        assert not rules.list.has_where
        assert rules.create.omit == []

    def test_invalid_pagination_ignored(self) -> None:
        rules = parse_model_rules(_model('@crud.list.pagination("pages")'))
        assert rules.list.pagination is None

    def test_invalid_json_defaults_ignored(self) -> None:
        rules = parse_model_rules(_model("@crud.create.defaults({status: 1})"))
        assert rules.create.defaults == {}

    def test_enum_directive(self) -> None:
        rules = parse_model_rules(_model('@crud.enum.StatusEnum(["draft", "published"])'))
        assert rules.enums == {"StatusEnum": ["draft", "published"]}

    def test_json_filter(self) -> None:
        rules = parse_model_rules(_model('@crud.list.jsonFilter({"path": "meta.tag"})'))
        assert rules.list.json_filters == [{"path": "meta.tag"}]
        assert rules.list.has_where

    def test_update_omit(self) -> None:
        rules = parse_model_rules(_model('@crud.update.omit(["slug"])'))
        assert rules.update.omit == ["slug"]


class TestFieldRules:
    def test_default_and_omit(self) -> None:
        model = _model(
            "",
            [
                {"name": "id", "type": "Int", "is_id": True},
                {"name": "state", "type": "String", "documentation": '@crud.default("open")'},
                {"name": "notes", "type": "String", "documentation": "@crud.default(null)"},
                {"name": "secret", "type": "String", "documentation": '@crud.omit(["create"])'},
            ],
        )
        rules = parse_model_rules(model)
        assert rules.field_rules("state").has_default
        assert rules.field_rules("state").default == "open"
        assert rules.field_rules("notes").has_default
        assert rules.field_rules("notes").default is None
        assert rules.field_rules("secret").omit_from == ["create"]
        assert not rules.field_rules("id").has_default

    def test_invalid_field_default_ignored(self) -> None:
        model = _model("", [{"name": "state", "type": "String", "documentation": "@crud.default(open)"}])
        assert "state" not in parse_model_rules(model).fields
