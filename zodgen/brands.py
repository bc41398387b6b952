# File: zodgen/brands.py
"""
zodgen - Brand Registry
========================
Collects every ``.brand("Name")`` declaration across the datamodel into a
single run-scoped registry, then emits it as the brand family:

    brands/branded.ts   one schema + inferred type per brand, plus BrandName
    brands/index.ts     barrel

The registry is built once per run and handed to the layer and CRUD
generators, which consult it read-only.

Conflict policy
---------------
Two sites declaring the same brand must resolve to the same base chain.
With ``strict=True`` a mismatch raises ``BrandConflictError``; otherwise
the first declaration (in model/field declaration order) is kept and the
conflict is recorded on ``BrandRegistry.conflicts``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple

from zodgen.annotations import NULLABILITY_VALIDATORS, ZodAnnotation, parse_annotation
from zodgen.fields import top_level_base
from zodgen.models import (
    Datamodel,
    DatabaseProvider,
    FieldDefinition,
    GeneratedFile,
    GeneratorConfig,
    ModelDefinition,
)
from zodgen.schemas import ZOD_IMPORT
from zodgen.type_mapper import zod_base_expression
from zodgen.utils import GENERATED_HEADER, build_barrel, jsdoc_block, ts_string

# ---------------------------------------------------------------------------
# Logger
# ---------------------------------------------------------------------------
logger: logging.Logger = logging.getLogger("zodgen.brands")

_SELECTOR_BASES: Dict[str, str] = {
    "string": "z.string()",
    "number": "z.number()",
    "boolean": "z.boolean()",
    "bigint": "z.bigint()",
    "date": "z.date()",
}


# ---------------------------------------------------------------------------
# Registry entries
# ---------------------------------------------------------------------------


class BrandConflictError(ValueError):
    """Raised when one brand name resolves to two different base chains."""

    def __init__(self, conflict: "BrandConflict") -> None:
        self.conflict: BrandConflict = conflict
        super().__init__(conflict.describe())


@dataclass(frozen=True)
class BrandConflict:
    brand: str
    kept_chain: str
    kept_site: str
    rejected_chain: str
    rejected_site: str

    def describe(self) -> str:
        return (
            f"Brand '{self.brand}' declared as {self.kept_chain} at "
            f"{self.kept_site} but as {self.rejected_chain} at {self.rejected_site}."
        )


@dataclass(slots=True)
class BrandedType:
    """One unique brand: its resolved base chain and every declaring site."""

    name: str
    base_chain: str
    sites: List[str] = field(default_factory=list)

    @property
    def schema_expression(self) -> str:
        return f"{self.base_chain}.brand({ts_string(self.name)})"


def resolve_brand_chain(
    provider: DatabaseProvider,
    field_def: FieldDefinition,
    annotation: ZodAnnotation,
) -> str:
    """
    Base validator chain for a brand, derived from the declaring annotation.

    The opening primitive comes from a top-level validator, else the type
    selector, else the type mapper.  Constraint validators follow;
    nullability and default-value validators are per-site concerns and
    are left out so every site of a brand agrees.
    """
    base: Optional[str] = top_level_base(annotation)
    remaining: Tuple[str, ...] = annotation.validators
    if base is not None:
        remaining = remaining[1:]
    elif annotation.type_selector in _SELECTOR_BASES:
        base = _SELECTOR_BASES[annotation.type_selector]
    else:
        base = zod_base_expression(provider, field_def.type)

    return base + "".join(v for v in remaining if v not in NULLABILITY_VALIDATORS)


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class BrandRegistry:
    """
    Brand name → ``BrandedType`` for one datamodel.

    Usage::

        registry = BrandRegistry.from_datamodel(datamodel, strict=True)
        if "UserId" in registry: ...
    """

    def __init__(self, provider: DatabaseProvider, strict: bool = True) -> None:
        self._provider: DatabaseProvider = provider
        self._strict: bool = strict
        self._brands: Dict[str, BrandedType] = {}
        self.conflicts: List[BrandConflict] = []

    @classmethod
    def from_datamodel(cls, datamodel: Datamodel, strict: bool = True) -> "BrandRegistry":
        registry = cls(datamodel.provider, strict=strict)
        for model in datamodel.models:
            for field_def in model.fields:
                annotation: Optional[ZodAnnotation] = parse_annotation(
                    field_def.documentation
                )
                if annotation is not None and annotation.brand:
                    registry.register(model, field_def, annotation)
        logger.info(
            "Brand registry: %d brands, %d conflicts.",
            len(registry),
            len(registry.conflicts),
        )
        return registry

    def register(
        self,
        model: ModelDefinition,
        field_def: FieldDefinition,
        annotation: ZodAnnotation,
    ) -> BrandedType:
        brand: str = annotation.brand or ""
        site: str = f"{model.name}.{field_def.name}"
        chain: str = resolve_brand_chain(self._provider, field_def, annotation)

        existing: Optional[BrandedType] = self._brands.get(brand)
        if existing is None:
            entry = BrandedType(name=brand, base_chain=chain, sites=[site])
            self._brands[brand] = entry
            logger.debug("Registered brand %s = %s (%s).", brand, chain, site)
            return entry

        if existing.base_chain != chain:
            conflict = BrandConflict(
                brand=brand,
                kept_chain=existing.base_chain,
                kept_site=existing.sites[0],
                rejected_chain=chain,
                rejected_site=site,
            )
            if self._strict:
                raise BrandConflictError(conflict)
            logger.warning("%s Keeping the first declaration.", conflict.describe())
            self.conflicts.append(conflict)
            return existing

        if site not in existing.sites:
            existing.sites.append(site)
        return existing

    # -----------------------------------------------------------------
    # Lookup
    # -----------------------------------------------------------------

    def __contains__(self, brand: object) -> bool:
        return brand in self._brands

    def __len__(self) -> int:
        return len(self._brands)

    def __iter__(self) -> Iterator[BrandedType]:
        return iter(self._brands[name] for name in self.names)

    def get(self, brand: str) -> Optional[BrandedType]:
        return self._brands.get(brand)

    @property
    def names(self) -> List[str]:
        return sorted(self._brands)

    def field_brand(self, model: ModelDefinition, field_def: FieldDefinition) -> Optional[str]:
        """
        Brand to substitute for *field_def*, if one resolves in the registry.

        An explicit annotation wins; otherwise a primary key implies
        ``<Model>Id`` and a foreign key implies ``<Target>Id``.
        """
        annotation: Optional[ZodAnnotation] = parse_annotation(field_def.documentation)
        if annotation is not None and annotation.brand:
            return annotation.brand if annotation.brand in self else None

        implicit: Optional[str] = implicit_brand(model, field_def)
        if implicit is not None and implicit in self:
            return implicit
        return None


def implicit_brand(model: ModelDefinition, field_def: FieldDefinition) -> Optional[str]:
    """``<Model>Id`` for a primary key, ``<Target>Id`` for a foreign key."""
    if field_def.is_id:
        return f"{model.name}Id"
    target: Optional[str] = model.foreign_key_target(field_def.name)
    if target is not None:
        return f"{target}Id"
    return None


# ---------------------------------------------------------------------------
# Emission
# ---------------------------------------------------------------------------


class BrandRegistryGenerator:
    """Renders a ``BrandRegistry`` as ``branded.ts`` + ``index.ts``."""

    def __init__(self, config: GeneratorConfig, registry: BrandRegistry) -> None:
        self._config: GeneratorConfig = config
        self._registry: BrandRegistry = registry

    def generate_branded(self) -> GeneratedFile:
        lines: List[str] = [GENERATED_HEADER, ZOD_IMPORT, ""]

        for brand in self._registry:
            lines.extend(
                jsdoc_block([f"Brand: {brand.name}", f"Used in: {', '.join(brand.sites)}"])
            )
            lines.append(f"export const {brand.name} = {brand.schema_expression};")
            lines.append(f"export type {brand.name} = z.infer<typeof {brand.name}>;")
            lines.append("")

        union: str = " | ".join(ts_string(name) for name in self._registry.names) or "never"
        lines.extend(jsdoc_block(["Union of all brand names"]))
        lines.append(f"export type BrandName = {union};")
        lines.append("")

        return GeneratedFile(
            family="brands",
            relative_path=f"{self._config.brands_dir}/branded.ts",
            content="\n".join(lines),
        )

    def generate_index(self) -> GeneratedFile:
        return GeneratedFile(
            family="brands",
            relative_path=f"{self._config.brands_dir}/index.ts",
            content=GENERATED_HEADER + "\n" + build_barrel(["branded"]),
        )

    def generate_all(self) -> List[GeneratedFile]:
        return [self.generate_branded(), self.generate_index()]


# ---------------------------------------------------------------------------
# Module-level exports
# ---------------------------------------------------------------------------

__all__: List[str] = [
    "BrandConflict",
    "BrandConflictError",
    "BrandRegistry",
    "BrandRegistryGenerator",
    "BrandedType",
    "implicit_brand",
    "resolve_brand_chain",
]

logger.debug("zodgen.brands loaded — %d public symbols.", len(__all__))
