"""Search package: filter rules, query plans and their SQL lowering.

This package turns loosely typed query parameters into a query plan and
runs it against the component store.
"""

from .engine import FilterCompiler
from .filter_rules import CATEGORY_RULES, NAME_RULE, build_stages, describe_rules
from .plan import (
    BooleanStage,
    IntegratedGpuStage,
    NumericRangeStage,
    QueryPlan,
    TextMatchStage,
)
from .query_builder import build_select, build_where_clause

__all__ = [
    "FilterCompiler",
    "CATEGORY_RULES",
    "NAME_RULE",
    "build_stages",
    "describe_rules",
    "BooleanStage",
    "IntegratedGpuStage",
    "NumericRangeStage",
    "QueryPlan",
    "TextMatchStage",
    "build_select",
    "build_where_clause",
]
