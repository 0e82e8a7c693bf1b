"""Table-driven tests for the scoring rule table.

Tests cover:
- ViolationKind codes, weights and disqualifying flags
- Every grammar rule matches its own example
- Grammar rules stay quiet on clean copy
"""

import pytest

from copywriter.services.scoring_rules import (
    DISQUALIFYING_KINDS,
    GRAMMAR_RULES,
    GrammarRule,
    ViolationKind,
)


class TestViolationKind:
    """Tests for the closed violation enumeration."""

    def test_codes_are_unique(self) -> None:
        codes = [kind.code for kind in ViolationKind]
        assert len(codes) == len(set(codes))

    def test_weights_are_positive(self) -> None:
        assert all(kind.weight > 0 for kind in ViolationKind)

    def test_disqualifying_kinds(self) -> None:
        assert DISQUALIFYING_KINDS == {
            ViolationKind.LEAD2_SCENE_ONLY,
            ViolationKind.LEAD2_NO_ACTION,
            ViolationKind.LEAD2_NO_TIME_PLACE,
        }

    def test_disqualifying_kinds_outweigh_everything_else(self) -> None:
        heaviest_regular = max(
            kind.weight for kind in ViolationKind if not kind.disqualifying
        )
        assert all(kind.weight > heaviest_regular for kind in DISQUALIFYING_KINDS)

    @pytest.mark.parametrize(
        ("kind", "code", "weight"),
        [
            (ViolationKind.LEAD_ABSTRACT, "lead_abstract", 4),
            (ViolationKind.SPEC_INFLATION, "spec_inflation", 8),
            (ViolationKind.GRAMMAR_PARTICLE, "grammar_particle", 6),
            (ViolationKind.BULLET_COUNT, "bullet_count", 3),
        ],
    )
    def test_kind_data(self, kind: ViolationKind, code: str, weight: int) -> None:
        assert kind.code == code
        assert kind.weight == weight


class TestGrammarRules:
    """Tests for the grammar-breakage rule table."""

    @pytest.mark.parametrize(
        "rule", GRAMMAR_RULES, ids=[rule.kind.code for rule in GRAMMAR_RULES]
    )
    def test_rule_matches_its_example(self, rule: GrammarRule) -> None:
        assert rule.pattern.search(rule.example)

    @pytest.mark.parametrize(
        "rule", GRAMMAR_RULES, ids=[rule.kind.code for rule in GRAMMAR_RULES]
    )
    def test_rule_ignores_clean_copy(self, rule: GrammarRule, good_text: str) -> None:
        assert rule.pattern.search(good_text) is None

    @pytest.mark.parametrize(
        ("text", "kind"),
        [
            ("水がをこぼれにくい", ViolationKind.GRAMMAR_PARTICLE),
            ("真空構造の真空構造のボトル", ViolationKind.GRAMMAR_DUPLICATE_PHRASE),
            ("キッチンでもキッチンで使える", ViolationKind.GRAMMAR_DUPLICATE_PLACE),
        ],
    )
    def test_rule_hits(self, text: str, kind: ViolationKind) -> None:
        hits = [rule.kind for rule in GRAMMAR_RULES if rule.pattern.search(text)]
        assert kind in hits

    def test_places_in_separate_sentences_do_not_hit(self) -> None:
        rule = next(
            r for r in GRAMMAR_RULES if r.kind is ViolationKind.GRAMMAR_DUPLICATE_PLACE
        )
        assert rule.pattern.search("オフィスで使えます。オフィスにも合います。") is None

    @pytest.mark.parametrize(
        "text",
        ["家で家族と過ごせます。", "家電を家で使えます。", "会議の後の会議室で使えます。"],
    )
    def test_place_inside_compound_word_does_not_hit(self, text: str) -> None:
        rule = next(
            r for r in GRAMMAR_RULES if r.kind is ViolationKind.GRAMMAR_DUPLICATE_PLACE
        )
        assert rule.pattern.search(text) is None

    def test_every_rule_is_a_grammar_kind(self) -> None:
        assert all(rule.kind.code.startswith("grammar_") for rule in GRAMMAR_RULES)
