"""SQL lowering for query plans.

Collections are tables of JSON documents (``id INTEGER PRIMARY KEY, doc
TEXT``). Conditions read document fields with SQLite's json_type and
json_extract; the two registered functions ``text_match`` and
``coerce_number`` (see db.connection) supply regex matching and numeric
coercion, which SQLite has no native form of.

Every builder returns ``(sql, params)``; user input only ever travels as a
bound parameter.
"""

from typing import Any

from .plan import (
    AllMissing,
    Condition,
    FlagIs,
    InRange,
    Missing,
    QueryPlan,
    Stage,
    TextEquals,
    TextMatch,
    TextNotEquals,
)

DOC_COLUMN = "doc"


def quote_identifier(name: str) -> str:
    """Quote a table name for SQLite ("graphic-card_productos")."""
    return '"' + name.replace('"', '""') + '"'


def json_path(path: str) -> str:
    """Convert a document path to a JSON path.

    The first dot separates the top-level field from the nested key; the
    nested key is kept verbatim because attribute names contain dots
    ("Características.Ranuras M.2" -> '$."Características"."Ranuras M.2"').
    """
    parts = path.split(".", 1)
    for part in parts:
        if '"' in part:
            raise ValueError(f"Unsupported document path: {path!r}")
    return "$" + "".join(f'."{part}"' for part in parts)


def build_condition_clause(condition: Condition) -> tuple[str, list[Any]]:
    """Lower one leaf condition."""
    if isinstance(condition, TextMatch):
        jp = json_path(condition.path)
        sql = f"text_match(json_type({DOC_COLUMN}, ?), json_extract({DOC_COLUMN}, ?), ?)"
        return sql, [jp, jp, condition.pattern]

    if isinstance(condition, TextEquals):
        jp = json_path(condition.path)
        sql = f"(json_type({DOC_COLUMN}, ?) = 'text' AND json_extract({DOC_COLUMN}, ?) = ?)"
        return sql, [jp, jp, condition.text]

    if isinstance(condition, TextNotEquals):
        jp = json_path(condition.path)
        sql = (
            f"(json_type({DOC_COLUMN}, ?) IS NOT NULL"
            f" AND NOT (json_type({DOC_COLUMN}, ?) = 'text' AND json_extract({DOC_COLUMN}, ?) = ?))"
        )
        return sql, [jp, jp, jp, condition.text]

    if isinstance(condition, FlagIs):
        # json_extract reports booleans as 1/0, so compare the JSON type instead
        return f"json_type({DOC_COLUMN}, ?) = ?", [json_path(condition.path), "true" if condition.value else "false"]

    if isinstance(condition, Missing):
        return f"json_type({DOC_COLUMN}, ?) IS NULL", [json_path(condition.path)]

    if isinstance(condition, AllMissing):
        parts = [f"json_type({DOC_COLUMN}, ?) IS NULL" for _ in condition.paths]
        return "(" + " AND ".join(parts) + ")", [json_path(p) for p in condition.paths]

    if isinstance(condition, InRange):
        jp = json_path(condition.path)
        sql = f"coerce_number(json_type({DOC_COLUMN}, ?), json_extract({DOC_COLUMN}, ?)) BETWEEN ? AND ?"
        return sql, [jp, jp, condition.minimum, condition.maximum]

    raise TypeError(f"Unknown condition: {condition!r}")


def build_stage_clause(stage: Stage) -> tuple[str, list[Any]]:
    """Lower a stage to the OR of its conditions."""
    or_conditions = []
    params: list[Any] = []
    for condition in stage.conditions():
        sql, condition_params = build_condition_clause(condition)
        or_conditions.append(sql)
        params.extend(condition_params)
    if not or_conditions:
        return "0", []
    return "(" + " OR ".join(or_conditions) + ")", params


def build_where_clause(plan: QueryPlan) -> tuple[str, list[Any]]:
    """AND all stages together. Empty plans produce no WHERE clause."""
    if plan.is_empty:
        return "", []
    clauses = []
    params: list[Any] = []
    for stage in plan.stages:
        sql, stage_params = build_stage_clause(stage)
        clauses.append(sql)
        params.extend(stage_params)
    return "WHERE " + "\n  AND ".join(clauses), params


def build_select(plan: QueryPlan, limit: int | None = None) -> tuple[str, list[Any]]:
    """Full SELECT for a plan, in insertion (natural) order."""
    where_sql, params = build_where_clause(plan)
    sql = f"SELECT {DOC_COLUMN} FROM {quote_identifier(plan.collection)}"
    if where_sql:
        sql += f"\n{where_sql}"
    sql += "\nORDER BY id"
    if limit is not None:
        sql += "\nLIMIT ?"
        params = params + [limit]
    return sql, params
