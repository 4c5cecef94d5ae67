"""Tests for SQL lowering of query plans."""

import sqlite3

import pytest

from pcbuild_catalog.db.connection import register_functions, text_match
from pcbuild_catalog.search.plan import (
    AllMissing,
    FlagIs,
    InRange,
    Missing,
    NumericRangeStage,
    QueryPlan,
    TextEquals,
    TextMatch,
    TextMatchStage,
    TextNotEquals,
)
from pcbuild_catalog.search.query_builder import (
    build_condition_clause,
    build_select,
    build_stage_clause,
    build_where_clause,
    json_path,
    quote_identifier,
)


class TestJsonPath:

    def test_top_level(self):
        assert json_path("Nombre") == '$."Nombre"'

    def test_nested(self):
        assert json_path("Características.Socket") == '$."Características"."Socket"'

    def test_nested_key_with_dot(self):
        assert json_path("Características.Ranuras M.2") == '$."Características"."Ranuras M.2"'

    def test_rejects_quotes(self):
        with pytest.raises(ValueError):
            json_path('Características.Factor "x"')


def test_quote_identifier():
    assert quote_identifier("graphic-card_productos") == '"graphic-card_productos"'
    assert quote_identifier('a"b') == '"a""b"'


class TestBuildConditionClause:

    def test_text_match(self):
        sql, params = build_condition_clause(TextMatch("Nombre", "ryzen"))
        assert "text_match(" in sql
        assert params == ['$."Nombre"', '$."Nombre"', "ryzen"]

    def test_flag_compares_json_type(self):
        sql, params = build_condition_clause(FlagIs("modular", False))
        assert sql == "json_type(doc, ?) = ?"
        assert params == ['$."modular"', "false"]

    def test_missing(self):
        sql, params = build_condition_clause(Missing("gpu_integrada"))
        assert sql == "json_type(doc, ?) IS NULL"
        assert params == ['$."gpu_integrada"']

    def test_all_missing(self):
        sql, params = build_condition_clause(AllMissing(("Características.WiFi", "redes_inalambricas")))
        assert sql.count("IS NULL") == 2
        assert params == ['$."Características"."WiFi"', '$."redes_inalambricas"']

    def test_in_range(self):
        sql, params = build_condition_clause(InRange("potencia", 650.0, 850.0))
        assert "coerce_number(" in sql and "BETWEEN ? AND ?" in sql
        assert params[-2:] == [650.0, 850.0]

    def test_text_equals_and_not_equals(self):
        _, params = build_condition_clause(TextEquals("Características.GPU integrada", "No"))
        assert params[-1] == "No"
        _, params = build_condition_clause(TextNotEquals("Características.GPU integrada", "No"))
        assert len(params) == 4

    def test_unknown_condition(self):
        with pytest.raises(TypeError):
            build_condition_clause(object())


class TestBuildSelect:

    def test_empty_plan_selects_everything_in_order(self):
        sql, params = build_select(QueryPlan("gpu", "graphic-card_productos"))
        assert sql == 'SELECT doc FROM "graphic-card_productos"\nORDER BY id'
        assert params == []

    def test_limit_is_bound(self):
        sql, params = build_select(QueryPlan("cpu", "processor_productos"), limit=1)
        assert sql.endswith("LIMIT ?")
        assert params == [1]

    def test_stages_and_together(self):
        plan = QueryPlan(
            "cpu",
            "processor_productos",
            (
                TextMatchStage("name", (("Nombre", "ryzen"),)),
                NumericRangeStage("nucleos", ("Características.Núcleos", "nucleos"), 8.0, 16.0),
            ),
        )
        where, params = build_where_clause(plan)
        assert where.startswith("WHERE ")
        assert where.count("\n  AND ") == 1
        assert params.count(8.0) == 2

    def test_stage_ors_its_paths(self):
        stage = TextMatchStage.substring("socket", ("Características.Enchufe", "Características.Socket"), "AM5")
        sql, params = build_stage_clause(stage)
        assert sql.count(" OR ") == 1
        assert params.count("AM5") == 2


class TestFunctionsInSqlite:
    """Lowered clauses evaluated against an in-memory database."""

    @pytest.fixture
    def conn(self):
        conn = sqlite3.connect(":memory:")
        register_functions(conn)
        yield conn
        conn.close()

    def _matches(self, conn, condition, doc: str) -> bool:
        sql, params = build_condition_clause(condition)
        (value,) = conn.execute(f"SELECT {sql} FROM (SELECT ? AS doc)", params + [doc]).fetchone()
        return bool(value)

    def test_text_match_nested_key_with_dot(self, conn):
        doc = '{"Características": {"Ranuras M.2": "3 x M.2"}}'
        assert self._matches(conn, TextMatch("Características.Ranuras M.2", "m\\.2"), doc)

    def test_text_match_array_element(self, conn):
        doc = '{"factores_de_forma": ["ATX", "E-ATX"]}'
        assert self._matches(conn, TextMatch("factores_de_forma", "e-atx"), doc)
        assert not self._matches(conn, TextMatch("factores_de_forma", "itx"), doc)

    def test_text_match_ignores_numbers(self, conn):
        assert not self._matches(conn, TextMatch("memoria", "8"), '{"memoria": 8}')

    def test_flag_is_not_integer(self, conn):
        assert self._matches(conn, FlagIs("modular", True), '{"modular": true}')
        assert not self._matches(conn, FlagIs("modular", True), '{"modular": 1}')
        assert not self._matches(conn, FlagIs("modular", False), '{"modular": 0}')

    def test_in_range_coerces_text(self, conn):
        doc = '{"Características": {"Reloj base": "4.70 GHz"}}'
        assert self._matches(conn, InRange("Características.Reloj base", 4.0, 5.0), doc)
        assert not self._matches(conn, InRange("Características.Reloj base", 5.0, 6.0), doc)

    def test_in_range_skips_booleans(self, conn):
        assert not self._matches(conn, InRange("potencia", 0.0, 5.0), '{"potencia": true}')

    def test_text_not_equals_requires_presence(self, conn):
        condition = TextNotEquals("gpu", "No")
        assert self._matches(conn, condition, '{"gpu": "Radeon Graphics"}')
        assert not self._matches(conn, condition, '{"gpu": "No"}')
        assert not self._matches(conn, condition, "{}")


class TestTextMatchFunction:

    def test_case_insensitive(self):
        assert text_match("text", "AMD Ryzen 7", "ryzen") == 1

    def test_non_text_types(self):
        assert text_match("integer", 8, "8") == 0
        assert text_match(None, None, "x") == 0
