"""Unit tests for accent-insensitive search and ranking."""

from __future__ import annotations

from dataclasses import dataclass

import pytest

from modules.core.search import normalize_text, rank_by_name, relevance

pytestmark = pytest.mark.unit


@dataclass
class Row:
    id: int
    name: str


def _names(rows):
    return [row.name for row in rows]


class TestNormalizeText:
    @pytest.mark.parametrize("raw", [None, "", "   ", "\t\n"])
    def test_blank_input_gives_empty_string(self, raw):
        assert normalize_text(raw) == ""

    def test_strips_diacritics_and_lowercases(self):
        assert normalize_text("Café Ñandú ÁRBOL") == "cafe nandu arbol"

    def test_plain_ascii_is_only_lowercased(self):
        assert normalize_text("Olla GRANDE") == "olla grande"


class TestRelevance:
    def test_prefix_match_beats_inner_match(self):
        assert relevance("olla", "ol") < relevance("farol", "ol")

    def test_missing_term_sorts_last_by_position(self):
        assert relevance("mesa", "olla")[1] > relevance("mesa olla", "olla")[1]


class TestRankByName:
    def test_empty_query_orders_by_name_then_id(self):
        rows = [Row(3, "Taza"), Row(2, "Olla"), Row(1, "Taza")]
        ranked = rank_by_name(rows, "", name_of=lambda r: r.name, key_of=lambda r: r.id)
        assert [(r.id, r.name) for r in ranked] == [(2, "Olla"), (1, "Taza"), (3, "Taza")]

    def test_filters_rows_without_the_term(self):
        rows = [Row(1, "Olla de barro"), Row(2, "Sartén")]
        assert _names(rank_by_name(rows, "olla", name_of=lambda r: r.name)) == [
            "Olla de barro"
        ]

    def test_match_is_accent_insensitive_both_ways(self):
        rows = [Row(1, "Sartén"), Row(2, "Cafetera")]
        assert _names(rank_by_name(rows, "sarten", name_of=lambda r: r.name)) == ["Sartén"]
        assert _names(rank_by_name(rows, "CAFÉ", name_of=lambda r: r.name)) == ["Cafetera"]

    def test_ranking_prefers_prefix_then_position_then_length(self):
        rows = [
            Row(1, "Tapa de olla"),
            Row(2, "Olla de presión grande"),
            Row(3, "Olla"),
            Row(4, "Una olla"),
        ]
        ranked = rank_by_name(rows, "olla", name_of=lambda r: r.name)
        assert _names(ranked) == [
            "Olla",
            "Olla de presión grande",
            "Una olla",
            "Tapa de olla",
        ]

    def test_ties_broken_by_key(self):
        rows = [Row(9, "Vaso"), Row(4, "Vaso")]
        ranked = rank_by_name(rows, "vaso", name_of=lambda r: r.name, key_of=lambda r: r.id)
        assert [r.id for r in ranked] == [4, 9]
