"""Query plan: predicate stages and the leaf conditions they lower to.

A plan is an ordered tuple of stages. Stages are conjunctive; inside a stage
the candidate paths of one logical attribute are OR'd together. Each stage
knows how to expand itself into leaf conditions over single document paths,
which is the only vocabulary the SQL lowering in query_builder understands.
"""

import re
from dataclasses import dataclass
from typing import Union


# =============================================================================
# LEAF CONDITIONS
# =============================================================================
# Paths are dotted document paths ("Características.Socket"). Patterns are
# Python regexes matched case-insensitively with re.search.

@dataclass(frozen=True)
class TextMatch:
    """String value (or any string element of an array) matches pattern."""
    path: str
    pattern: str


@dataclass(frozen=True)
class TextEquals:
    """String value equals text exactly."""
    path: str
    text: str


@dataclass(frozen=True)
class TextNotEquals:
    """Path is present and its value is not the string text."""
    path: str
    text: str


@dataclass(frozen=True)
class FlagIs:
    """Value is the JSON boolean ``value``."""
    path: str
    value: bool


@dataclass(frozen=True)
class Missing:
    path: str


@dataclass(frozen=True)
class AllMissing:
    """None of the paths is present."""
    paths: tuple[str, ...]


@dataclass(frozen=True)
class InRange:
    """Value coerces to a number within [minimum, maximum]."""
    path: str
    minimum: float
    maximum: float


Condition = Union[TextMatch, TextEquals, TextNotEquals, FlagIs, Missing, AllMissing, InRange]


# =============================================================================
# STAGES
# =============================================================================

@dataclass(frozen=True)
class TextMatchStage:
    """Case-insensitive regex match over (path, pattern) clauses.

    Most text filters use one pattern on several paths; brand synonym
    expansion uses several patterns on the same path.
    """
    param: str
    clauses: tuple[tuple[str, str], ...]

    @classmethod
    def substring(cls, param: str, paths: tuple[str, ...], text: str) -> "TextMatchStage":
        """Literal substring of ``text`` on every path."""
        pattern = re.escape(text)
        return cls(param, tuple((path, pattern) for path in paths))

    def conditions(self) -> list[Condition]:
        return [TextMatch(path, pattern) for path, pattern in self.clauses]


@dataclass(frozen=True)
class NumericRangeStage:
    """Any path coerces to a number within the inclusive range."""
    param: str
    paths: tuple[str, ...]
    minimum: float
    maximum: float

    def conditions(self) -> list[Condition]:
        return [InRange(path, self.minimum, self.maximum) for path in self.paths]


@dataclass(frozen=True)
class BooleanStage:
    """Yes/no attribute stored as free text and as a flattened boolean flag.

    wanted=True: affirmative token on a text path, or flag is true.
    wanted=False: negative token on a text path, flag is false, or the
    attribute is absent everywhere (absence reads as "no").
    """
    param: str
    paths: tuple[str, ...]
    flag: str
    wanted: bool
    affirmative: str
    negative: str

    def conditions(self) -> list[Condition]:
        pattern = self.affirmative if self.wanted else self.negative
        conditions: list[Condition] = [TextMatch(path, pattern) for path in self.paths]
        conditions.append(FlagIs(self.flag, self.wanted))
        if not self.wanted:
            conditions.append(AllMissing(self.paths + (self.flag,)))
        return conditions


@dataclass(frozen=True)
class IntegratedGpuStage:
    """Integrated graphics: the text attribute holds a GPU name or "No".

    wanted=True: text present and not "No", or flag true.
    wanted=False: text is "No" or absent, or flag false or absent.
    """
    param: str
    path: str
    flag: str
    wanted: bool
    literal_no: str = "No"

    def conditions(self) -> list[Condition]:
        if self.wanted:
            return [TextNotEquals(self.path, self.literal_no), FlagIs(self.flag, True)]
        return [
            TextEquals(self.path, self.literal_no),
            Missing(self.path),
            FlagIs(self.flag, False),
            Missing(self.flag),
        ]


Stage = Union[TextMatchStage, NumericRangeStage, BooleanStage, IntegratedGpuStage]


@dataclass(frozen=True)
class QueryPlan:
    """Stages compiled for one request against one collection."""
    category: str
    collection: str
    stages: tuple[Stage, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.stages

    def describe(self) -> list[dict]:
        """Plain-data view of the plan for logs and tool responses."""
        described = []
        for stage in self.stages:
            entry = {"param": stage.param, "stage": type(stage).__name__}
            if isinstance(stage, TextMatchStage):
                entry["clauses"] = [list(c) for c in stage.clauses]
            elif isinstance(stage, NumericRangeStage):
                entry["paths"] = list(stage.paths)
                entry["range"] = [stage.minimum, stage.maximum]
            elif isinstance(stage, BooleanStage):
                entry["paths"] = list(stage.paths) + [stage.flag]
                entry["value"] = stage.wanted
            else:
                entry["paths"] = [stage.path, stage.flag]
                entry["value"] = stage.wanted
            described.append(entry)
        return described
