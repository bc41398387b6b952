# File: zodgen/crud_annotations.py
"""
zodgen - CRUD Business-Rule Annotations
========================================
Reads ``@crud.*`` directives from model and field documentation into a
``ModelCrudRules`` value.  Model-level directives::

    @crud.create.omit(["slug"])            @crud.update.omit([...])
    @crud.create.defaults({"status": "draft"})
    @crud.create.refine("Title and body must differ")
    @crud.update.immutable(["ownerId"])    @crud.update.refine("...")
    @crud.list.filters(["status"])         @crud.list.customFilters([...])
    @crud.list.customFilterTypes({"scope": "enum(['mine', 'all'])"})
    @crud.list.jsonFilter({"path": "meta.tag"})
    @crud.list.orderBy(["createdAt"])      @crud.list.defaultOrder("createdAt_desc")
    @crud.list.maxPageSize(50)             @crud.list.pagination("cursor")
    @crud.enum.StatusEnum(["draft", "published"])
    @crud.orgScoped(true)

Field-level directives: ``@crud.default(<json>)`` and
``@crud.omit(["create", "update"])``.

Directive arguments are located with the balanced scanner from
``zodgen.annotations``; JSON-shaped arguments go through ``json.loads``
and scalar/array arguments through a single item regex.  Malformed
arguments are logged and ignored.
"""

from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from zodgen.annotations import scan_rules
from zodgen.models import ModelDefinition, PaginationStrategy

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("zodgen.crud_annotations")

_ARRAY_ITEM_RE: re.Pattern[str] = re.compile(r"\"([^\"]*)\"|'([^']*)'|([^,\[\]\s\"']+)")

_PAGINATION_VALUES = tuple(p.value for p in PaginationStrategy)


# ---------------------------------------------------------------------------
# Rule containers
# ---------------------------------------------------------------------------


@dataclass(slots=True)
class CreateRules:
    omit: List[str] = field(default_factory=list)
    defaults: Dict[str, Any] = field(default_factory=dict)
    refine: Optional[str] = None


@dataclass(slots=True)
class UpdateRules:
    omit: List[str] = field(default_factory=list)
    immutable: List[str] = field(default_factory=list)
    refine: Optional[str] = None


@dataclass(slots=True)
class ListRules:
    filters: List[str] = field(default_factory=list)
    custom_filters: List[str] = field(default_factory=list)
    custom_filter_types: Dict[str, str] = field(default_factory=dict)
    json_filters: List[Any] = field(default_factory=list)
    order_by: List[str] = field(default_factory=list)
    default_order: Optional[str] = None
    max_page_size: Optional[int] = None
    pagination: Optional[str] = None

    @property
    def has_where(self) -> bool:
        """True when any filter source was declared."""
        return bool(
            self.filters
            or self.custom_filters
            or self.custom_filter_types
            or self.json_filters
        )


@dataclass(slots=True)
class FieldRules:
    has_default: bool = False
    default: Any = None
    omit_from: List[str] = field(default_factory=list)


@dataclass(slots=True)
class ModelCrudRules:
    """Every business rule declared for one model and its fields."""

    create: CreateRules = field(default_factory=CreateRules)
    update: UpdateRules = field(default_factory=UpdateRules)
    list: ListRules = field(default_factory=ListRules)
    enums: Dict[str, List[str]] = field(default_factory=dict)
    org_scoped: bool = False
    fields: Dict[str, FieldRules] = field(default_factory=dict)

    def field_rules(self, field_name: str) -> FieldRules:
        return self.fields.get(field_name) or FieldRules()


# ---------------------------------------------------------------------------
# Argument parsers
# ---------------------------------------------------------------------------


def parse_json_arg(raw: str, directive: str) -> Optional[Any]:
    """``json.loads`` with a logged warning instead of an exception."""
    try:
        return json.loads(raw)
    except json.JSONDecodeError as exc:
        logger.warning("Ignoring @crud.%s: argument is not valid JSON (%s).", directive, exc)
        return None


def parse_array_arg(raw: str) -> List[str]:
    """``["a", 'b', c]`` → ``["a", "b", "c"]``."""
    items: List[str] = []
    for double, single, bare in _ARRAY_ITEM_RE.findall(raw):
        value: str = double or single or bare
        if value:
            items.append(value)
    return items


def parse_string_arg(raw: str) -> str:
    text: str = raw.strip()
    if len(text) >= 2 and text[0] == text[-1] and text[0] in ("'", '"'):
        return text[1:-1]
    return text


def parse_int_arg(raw: str, directive: str) -> Optional[int]:
    try:
        return int(parse_string_arg(raw))
    except ValueError:
        logger.warning("Ignoring @crud.%s: %r is not an integer.", directive, raw)
        return None


# ---------------------------------------------------------------------------
# Model-level dispatch
# ---------------------------------------------------------------------------


def _apply_model_rule(rules: ModelCrudRules, key: str, raw: str) -> None:
    if key == "create.omit":
        rules.create.omit.extend(parse_array_arg(raw))
    elif key == "create.defaults":
        value = parse_json_arg(raw, key)
        if isinstance(value, dict):
            rules.create.defaults.update(value)
    elif key == "create.refine":
        rules.create.refine = parse_string_arg(raw)
    elif key == "update.omit":
        rules.update.omit.extend(parse_array_arg(raw))
    elif key == "update.immutable":
        rules.update.immutable.extend(parse_array_arg(raw))
    elif key == "update.refine":
        rules.update.refine = parse_string_arg(raw)
    elif key == "list.filters":
        rules.list.filters.extend(parse_array_arg(raw))
    elif key == "list.customFilters":
        rules.list.custom_filters.extend(parse_array_arg(raw))
    elif key == "list.customFilterTypes":
        value = parse_json_arg(raw, key)
        if isinstance(value, dict):
            rules.list.custom_filter_types.update({str(k): str(v) for k, v in value.items()})
    elif key == "list.jsonFilter":
        value = parse_json_arg(raw, key)
        if value is not None:
            rules.list.json_filters.append(value)
    elif key == "list.orderBy":
        rules.list.order_by.extend(parse_array_arg(raw))
    elif key == "list.defaultOrder":
        rules.list.default_order = parse_string_arg(raw)
    elif key == "list.maxPageSize":
        rules.list.max_page_size = parse_int_arg(raw, key)
    elif key == "list.pagination":
        strategy: str = parse_string_arg(raw)
        if strategy in _PAGINATION_VALUES:
            rules.list.pagination = strategy
        else:
            logger.warning(
                "Ignoring @crud.list.pagination(%s): expected one of %s.",
                raw,
                ", ".join(_PAGINATION_VALUES),
            )
    elif key.startswith("enum."):
        try:
            values = json.loads(raw)
        except json.JSONDecodeError:
            values = None
        if not isinstance(values, list):
            # single-quoted or bare lists
            values = parse_array_arg(raw)
        rules.enums[key[len("enum."):]] = [str(v) for v in values]
    elif key == "orgScoped":
        rules.org_scoped = parse_string_arg(raw).lower() == "true"
    else:
        logger.debug("Unrecognised model directive @crud.%s.", key)


def _field_rules(rules: Tuple[Tuple[str, str], ...]) -> Optional[FieldRules]:
    result = FieldRules()
    found: bool = False
    for key, raw in rules:
        if key == "default":
            try:
                result.default = json.loads(raw)
            except json.JSONDecodeError:
                logger.warning("Ignoring @crud.default(%s): not valid JSON.", raw)
                continue
            result.has_default = True
            found = True
        elif key == "omit":
            result.omit_from.extend(parse_array_arg(raw))
            found = True
    return result if found else None


def parse_model_rules(model: ModelDefinition) -> ModelCrudRules:
    """Collect model-level and field-level ``@crud`` rules for *model*."""
    rules = ModelCrudRules()
    if model.documentation:
        for key, raw in scan_rules(model.documentation):
            _apply_model_rule(rules, key, raw)

    for field_def in model.fields:
        if not field_def.documentation:
            continue
        parsed: Optional[FieldRules] = _field_rules(scan_rules(field_def.documentation))
        if parsed is not None:
            rules.fields[field_def.name] = parsed

    logger.debug(
        "CRUD rules for %s: %d field rules, %d enums.",
        model.name,
        len(rules.fields),
        len(rules.enums),
    )
    return rules


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "CreateRules",
    "FieldRules",
    "ListRules",
    "ModelCrudRules",
    "UpdateRules",
    "parse_array_arg",
    "parse_int_arg",
    "parse_json_arg",
    "parse_model_rules",
    "parse_string_arg",
]

logger.debug("zodgen.crud_annotations loaded — %d public symbols.", len(__all__))
