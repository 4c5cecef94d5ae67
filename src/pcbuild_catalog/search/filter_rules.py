"""Per-category filter rules.

Each category maps query parameter names to the candidate document paths
that hold the same logical attribute. Catalog documents were ingested in
several batches with different key names ("Socket" vs "Enchufe") and at
different depths (nested under Características vs flattened to the top
level), so every rule lists all known locations and the stage OR's them.

Query parameter names are the front-end's wire contract and stay in Spanish.
"""

import logging
from dataclasses import dataclass
from typing import Any, Mapping, Union

from ..parsers import first_text, is_blank, parse_flag, parse_range
from .plan import (
    BooleanStage,
    IntegratedGpuStage,
    NumericRangeStage,
    Stage,
    TextMatchStage,
)

logger = logging.getLogger(__name__)


# =============================================================================
# DOCUMENT FIELDS
# =============================================================================

NAME_FIELD = "Nombre"
BRAND_FIELD = "Marca"
ATTRIBUTES_FIELD = "Características"


def attr(key: str) -> str:
    """Path of a key nested in the attributes map."""
    return f"{ATTRIBUTES_FIELD}.{key}"


# =============================================================================
# YES/NO TOKENS
# =============================================================================
# Whole-word, case-insensitive. Entries are regex fragments.

AFFIRMATIVE_TOKENS: tuple[str, ...] = ("si", "sí", "yes", "true")
NEGATIVE_TOKENS: tuple[str, ...] = ("no", "false")


def token_pattern(tokens: tuple[str, ...]) -> str:
    return r"\b(?:" + "|".join(tokens) + r")\b"


# =============================================================================
# RULE TYPES
# =============================================================================

def _lookup(criteria: Mapping[str, Any], names: tuple[str, ...]) -> Any:
    """First non-blank value among a parameter and its aliases."""
    for name in names:
        value = criteria.get(name)
        if not is_blank(value):
            return value
    return None


@dataclass(frozen=True)
class TextRule:
    """Case-insensitive substring match on any candidate path."""
    param: str
    paths: tuple[str, ...]
    aliases: tuple[str, ...] = ()
    kind = "text"

    def compile(self, criteria: Mapping[str, Any]) -> Stage | None:
        text = first_text(_lookup(criteria, (self.param,) + self.aliases))
        if text is None:
            return None
        return TextMatchStage.substring(self.param, self.paths, text)


@dataclass(frozen=True)
class BrandRule:
    """Brand match on name or brand field, with per-brand synonym clauses.

    GPU listings often name the chip family ("RTX 4070") rather than the
    chip vendor, so known brands expand to their product-line patterns.
    """
    param: str
    paths: tuple[str, ...] = (NAME_FIELD, BRAND_FIELD)
    synonyms: Mapping[str, tuple[tuple[str, str], ...]] | None = None
    aliases: tuple[str, ...] = ("brand",)
    kind = "brand"

    def compile(self, criteria: Mapping[str, Any]) -> Stage | None:
        brand = first_text(_lookup(criteria, (self.param,) + self.aliases))
        if brand is None:
            return None
        brand = brand.lower()
        if self.synonyms and brand in self.synonyms:
            return TextMatchStage(self.param, self.synonyms[brand])
        return TextMatchStage.substring(self.param, self.paths, brand)


@dataclass(frozen=True)
class RangeRule:
    """Inclusive numeric range over values coerced from text or numbers."""
    param: str
    paths: tuple[str, ...]
    integer: bool = True
    kind = "range"

    def compile(self, criteria: Mapping[str, Any]) -> Stage | None:
        raw = criteria.get(self.param)
        if is_blank(raw):
            return None
        bounds = parse_range(raw, integer=self.integer)
        if bounds is None:
            logger.warning(f"Ignoring malformed range for {self.param}: {raw!r}")
            return None
        return NumericRangeStage(self.param, self.paths, bounds[0], bounds[1])


@dataclass(frozen=True)
class BooleanRule:
    """Yes/no text attribute plus its flattened boolean flag."""
    param: str
    paths: tuple[str, ...]
    flag: str
    extra_affirmative: tuple[str, ...] = ()
    kind = "boolean"

    def compile(self, criteria: Mapping[str, Any]) -> Stage | None:
        wanted = parse_flag(criteria.get(self.param))
        if wanted is None:
            return None
        return BooleanStage(
            self.param,
            self.paths,
            self.flag,
            wanted,
            affirmative=token_pattern(AFFIRMATIVE_TOKENS + self.extra_affirmative),
            negative=token_pattern(NEGATIVE_TOKENS),
        )


@dataclass(frozen=True)
class IntegratedGpuRule:
    """Integrated graphics, where the text holds either a GPU model or "No"."""
    param: str
    path: str
    flag: str
    kind = "boolean"

    @property
    def paths(self) -> tuple[str, ...]:
        return (self.path,)

    def compile(self, criteria: Mapping[str, Any]) -> Stage | None:
        wanted = parse_flag(criteria.get(self.param))
        if wanted is None:
            return None
        return IntegratedGpuStage(self.param, self.path, self.flag, wanted)


FilterRule = Union[TextRule, BrandRule, RangeRule, BooleanRule, IntegratedGpuRule]


# =============================================================================
# RULE TABLE
# =============================================================================

NAME_RULE = TextRule("name", (NAME_FIELD,))

GPU_BRAND_SYNONYMS: dict[str, tuple[tuple[str, str], ...]] = {
    "nvidia": (
        (NAME_FIELD, "nvidia"),
        (NAME_FIELD, "rtx"),
        (NAME_FIELD, "gtx"),
        (NAME_FIELD, "quadro"),
        (NAME_FIELD, "geforce"),
        (BRAND_FIELD, "nvidia"),
    ),
    "amd": (
        (NAME_FIELD, "amd"),
        (NAME_FIELD, "radeon"),
        (NAME_FIELD, r"rx\s?\d"),
        (BRAND_FIELD, "amd"),
    ),
}

CATEGORY_RULES: dict[str, tuple[FilterRule, ...]] = {
    "cpu": (
        BrandRule("processorBrand"),
        TextRule("socket", (attr("Enchufe"), attr("Socket")), aliases=("enchufe",)),
        RangeRule("nucleos", (attr("Núcleos"), "nucleos")),
        RangeRule("reloj_base", (attr("Reloj base"), "reloj_base"), integer=False),
        RangeRule("tdp", (attr("TDP"), "tdp")),
        BooleanRule("enfriador_incluido", (attr("Enfriador incluido"),), "enfriador_incluido"),
        IntegratedGpuRule("gpu_integrada", attr("GPU integrada"), "gpu_integrada"),
    ),
    "gpu": (
        BrandRule("gpuBrand", synonyms=GPU_BRAND_SYNONYMS),
        RangeRule("memoria", (attr("Memoria"), "memoria")),
        RangeRule("longitud", (attr("Longitud"), "longitud")),
        TextRule("tipo_de_memoria", (attr("Tipo de memoria"), "tipo_de_memoria")),
        TextRule("interfaz", (attr("Interfaz"), "interfaz")),
        RangeRule("tdp", (attr("TDP"), "tdp")),
    ),
    "motherboard": (
        TextRule("factor_de_forma", (attr("Factor de forma"), "factor_de_forma", attr("Formato"))),
        TextRule("socket", (attr("Socket"), attr("Enchufe"), "enchufe"), aliases=("enchufe",)),
        TextRule("tipo_de_memoria", (attr("Tipo de memoria"), "tipo_de_memoria")),
        RangeRule("ranuras_de_ram", (attr("Ranuras de RAM"), "ranuras_de_ram")),
        RangeRule("ranuras_m2", (attr("Ranuras M.2"), "ranuras_m2")),
        BooleanRule(
            "redes_inalambricas",
            (attr("WiFi"),),
            "redes_inalambricas",
            extra_affirmative=("incluido", "integrado", "wi-?fi"),
        ),
    ),
    "memory": (
        TextRule("tipo_de_memoria", (attr("Tipo"), attr("Tipo de memoria"), "tipo_de_memoria")),
        RangeRule("velocidad", (attr("Velocidad"), "velocidad")),
        TextRule("configuracion", (attr("Configuración"), "configuracion")),
        BooleanRule("refrigeracion_pasiva", (attr("Refrigeración pasiva"),), "refrigeracion_pasiva"),
        RangeRule("latencia_cas", (attr("Latencia CAS"), "latencia_cas")),
    ),
    "storage": (
        TextRule(
            "tipo_de_almacenamiento",
            (attr("Tipo"), attr("Tipo de almacenamiento"), "tipo_de_almacenamiento"),
        ),
        # Capacities mix units ("1TB", "500 GB"); matched as text, not as a range.
        TextRule("capacidad", (attr("Capacidad"), "capacidad")),
        TextRule("interfaz", (attr("Interfaz"), "interfaz")),
        TextRule("factor_de_forma", (attr("Factor de forma"), "factor_de_forma")),
        BooleanRule(
            "compatibilidad_con_nvme", (attr("Compatible con NVMe"),), "compatibilidad_con_nvme"
        ),
    ),
    "power-supply": (
        RangeRule("potencia", (attr("Potencia"), "potencia")),
        TextRule(
            "calificacion_de_eficiencia",
            (attr("Certificación"), attr("Calificación de eficiencia"), "calificacion_de_eficiencia"),
        ),
        BooleanRule("modular", (attr("Modular"),), "modular", extra_affirmative=("completo", "semi")),
        TextRule("factor_de_forma", (attr("Factor de forma"), "factor_de_forma")),
        RangeRule("longitud", (attr("Longitud"), "longitud")),
    ),
    "case": (
        RangeRule("longitud_maxima_de_gpu", (attr("Longitud máxima de GPU"), "longitud_maxima_de_gpu")),
        TextRule("factores_de_forma", (attr("Factores de forma"), "factores_de_forma")),
        TextRule(
            "ranuras_de_expansion",
            (attr("Ranuras de expansión de altura completa"), "ranuras_de_expansion_de_altura"),
        ),
    ),
    "cooler": (
        BooleanRule("refrigerado_por_agua", (attr("Refrigerado por agua"),), "refrigerado_por_agua"),
        BooleanRule("sin_ventilador", (attr("Sin ventilador"),), "sin_ventilador"),
        RangeRule("ruido_maximo", (attr("Ruido máximo"), "ruido_maximo")),
        RangeRule("rpm_maximas", (attr("RPM máximas"), "rpm_maximas")),
        RangeRule("longitud_del_radiador", (attr("Longitud del radiador"), "longitud_del_radiador")),
    ),
}


def rules_for(category: str) -> tuple[FilterRule, ...]:
    """Name rule followed by the category's own rules (unknown category -> name only)."""
    return (NAME_RULE,) + CATEGORY_RULES.get(category, ())


def build_stages(category: str, criteria: Mapping[str, Any]) -> tuple[Stage, ...]:
    """Compile criteria into stages in rule-table order.

    Parameters the category does not know are ignored.
    """
    stages: list[Stage] = []
    for rule in rules_for(category):
        stage = rule.compile(criteria)
        if stage is not None:
            logger.debug(f"Applying {category} {rule.kind} filter {rule.param}: {stage}")
            stages.append(stage)
    return tuple(stages)


def describe_rules(category: str) -> list[dict[str, Any]]:
    """Parameter table for one category (for help output)."""
    described = []
    for rule in rules_for(category):
        entry: dict[str, Any] = {"param": rule.param, "kind": rule.kind, "paths": list(rule.paths)}
        aliases = getattr(rule, "aliases", ())
        if aliases:
            entry["aliases"] = list(aliases)
        flag = getattr(rule, "flag", None)
        if flag:
            entry["paths"].append(flag)
        if isinstance(rule, BrandRule) and rule.synonyms:
            entry["synonyms"] = sorted(rule.synonyms)
        described.append(entry)
    return described


def is_known_param(category: str, name: str) -> bool:
    for rule in rules_for(category):
        if name == rule.param or name in getattr(rule, "aliases", ()):
            return True
    return False
