"""Unit tests for densityA evaluation.

Tests cover:
- InputSet construction (fixed size, representative selling point)
- UsedSet matching (exact, contiguous window, numeric+unit)
- densityA value and cardinality bounds
- Garbled-line exclusion
- Remote-work audience allowance
- Log masking of unused phrases
"""

import pytest

from copywriter.services.density import (
    DensityConfig,
    DensityResult,
    build_input_set,
    compute_density_a,
    compute_used_set,
    evaluate_density_a,
    extract_numeric_unit_tokens,
    is_fact_like,
    is_likely_garbled,
    mask_for_log,
    normalize_line,
)
from copywriter.services.normalizer import NormalizedInput

ENGLISH_INPUT_SET = [
    "Acme Tumbler",
    "keep drinks warm at a desk",
    "office workers",
    "vacuum double-wall construction",
]


def _input(**overrides) -> NormalizedInput:
    fields = {
        "product_name": "Acme Tumbler",
        "category": "drinkware",
        "goal": "keep drinks warm at a desk",
        "audience": "office workers",
        "selling_points": ("vacuum double-wall construction",),
    }
    fields.update(overrides)
    return NormalizedInput(**fields)


# ---------------------------------------------------------------------------
# Test: InputSet
# ---------------------------------------------------------------------------


class TestBuildInputSet:
    """Tests for InputSet construction."""

    def test_three_base_phrases_plus_selling_point(self) -> None:
        """Product, goal, audience and one selling point, in that order."""
        assert build_input_set(_input()) == ENGLISH_INPUT_SET

    def test_without_selling_points_has_three_entries(self) -> None:
        assert len(build_input_set(_input(selling_points=()))) == 3

    def test_prefers_fact_like_selling_point(self) -> None:
        """A selling point with a number or spec hint is the representative."""
        data = _input(selling_points=("looks nice", "holds 350mL"))
        assert build_input_set(data)[-1] == "holds 350mL"

    def test_falls_back_to_first_selling_point(self) -> None:
        data = _input(selling_points=("looks nice", "feels good"))
        assert build_input_set(data)[-1] == "looks nice"

    def test_never_more_than_four_entries(self) -> None:
        data = _input(selling_points=("350mL", "12 hours", "2 colors", "stainless"))
        assert len(build_input_set(data)) == 4

    def test_duplicates_collapse(self) -> None:
        data = _input(goal="Acme Tumbler", selling_points=("Acme Tumbler",))
        assert build_input_set(data) == ["Acme Tumbler", "office workers"]

    def test_whitespace_is_normalized(self) -> None:
        data = _input(product_name="  Acme   Tumbler ")
        assert build_input_set(data)[0] == "Acme Tumbler"

    def test_empty_fields_are_skipped(self) -> None:
        data = _input(goal="", audience="", selling_points=())
        assert build_input_set(data) == ["Acme Tumbler"]

    def test_garbled_lines_are_excluded(self) -> None:
        data = _input(goal="#$%&*!@#$%^&*()", selling_points=("�broken",))
        assert build_input_set(data) == ["Acme Tumbler", "office workers"]


# ---------------------------------------------------------------------------
# Test: UsedSet and densityA
# ---------------------------------------------------------------------------


class TestComputeUsedSet:
    """Tests for UsedSet matching rules."""

    def test_verbatim_phrases_are_used(self) -> None:
        """Two of four phrases appear verbatim -> densityA 0.5."""
        output = "Acme Tumbler uses vacuum double-wall construction."
        used, unused = compute_used_set(ENGLISH_INPUT_SET, output)

        assert used == ["Acme Tumbler", "vacuum double-wall construction"]
        assert unused == ["keep drinks warm at a desk", "office workers"]
        assert compute_density_a(used, ENGLISH_INPUT_SET) == 0.5

    def test_contiguous_window_counts_as_used(self) -> None:
        """Any 4-character run of the phrase is enough."""
        used, _ = compute_used_set(["真空二重構造"], "二重構造のボトルです。")
        assert used == ["真空二重構造"]

    def test_window_shorter_than_minimum_does_not_count(self) -> None:
        used, unused = compute_used_set(["真空二重構造"], "二重のボトルです。")
        assert used == []
        assert unused == ["真空二重構造"]

    def test_window_length_is_configurable(self) -> None:
        config = DensityConfig(min_consecutive_match=2)
        used, _ = compute_used_set(["真空二重構造"], "二重のボトルです。", config)
        assert used == ["真空二重構造"]

    def test_numeric_unit_token_counts_as_used(self) -> None:
        used, _ = compute_used_set(["容量 350 mL"], "たっぷり350mL入ります。")
        assert used == ["容量 350 mL"]

    def test_used_and_unused_partition_input_set(self) -> None:
        used, unused = compute_used_set(ENGLISH_INPUT_SET, "Acme Tumbler")
        assert sorted(used + unused) == sorted(ENGLISH_INPUT_SET)
        assert not set(used) & set(unused)

    def test_empty_input_set_density_is_zero(self) -> None:
        assert compute_density_a([], []) == 0.0


class TestEvaluateDensityA:
    """Tests for the full evaluation."""

    def test_scenario_half_density(self) -> None:
        result = evaluate_density_a(
            _input(), "Acme Tumbler uses vacuum double-wall construction."
        )

        assert isinstance(result, DensityResult)
        assert result.input_count == 4
        assert result.used_count == 2
        assert result.density_a == 0.5
        assert result.unused_top3 == ["keep drinks warm at a desk", "office workers"]

    def test_three_of_four(self) -> None:
        output = (
            "Acme Tumbler helps office workers with vacuum double-wall construction."
        )
        result = evaluate_density_a(_input(), output)
        assert result.density_a == 0.75

    def test_density_is_bounded(self) -> None:
        for output in ("", "Acme Tumbler", " ".join(ENGLISH_INPUT_SET)):
            result = evaluate_density_a(_input(), output)
            assert 0.0 <= result.density_a <= 1.0
            assert result.used_count <= result.input_count

    def test_adding_phrases_never_lowers_density(self) -> None:
        base = "Acme Tumbler"
        extended = base + " for office workers"
        assert (
            evaluate_density_a(_input(), extended).density_a
            >= evaluate_density_a(_input(), base).density_a
        )

    def test_unused_phrases_are_masked(self) -> None:
        data = _input(selling_points=("holds 350mL",))
        result = evaluate_density_a(data, "Acme Tumbler")
        assert "***** XXX**" in result.unused_top3_masked
        assert all("350" not in p for p in result.unused_top3_masked)

    def test_to_dict_is_log_safe(self) -> None:
        result = evaluate_density_a(_input(), "Acme Tumbler")
        data = result.to_dict()
        assert set(data) == {"input_count", "used_count", "density_a", "unused_top3_masked"}
        assert "Acme" not in str(data)


class TestAudienceAllowance:
    """Tests for the remote-work audience paraphrase allowance."""

    @pytest.mark.parametrize("token", ["在宅", "自宅", "リモート", "テレワーク"])
    def test_remote_audience_matched_by_token(self, token: str) -> None:
        data = _input(audience="在宅勤務の会社員", selling_points=())
        result = evaluate_density_a(data, f"Acme Tumbler は{token}に便利です。")
        assert "在宅勤務の会社員" in result.used_set

    def test_non_remote_audience_gets_no_allowance(self) -> None:
        data = _input(audience="キャンプ好きの人", selling_points=())
        result = evaluate_density_a(data, "Acme Tumbler は在宅に便利です。")
        assert "キャンプ好きの人" in result.unused_set

    def test_allowance_needs_output_token(self) -> None:
        data = _input(audience="テレワーク中の会社員", selling_points=())
        result = evaluate_density_a(data, "Acme Tumbler は便利です。")
        assert "テレワーク中の会社員" in result.unused_set


# ---------------------------------------------------------------------------
# Test: Helpers
# ---------------------------------------------------------------------------


class TestGarbledDetection:
    """Tests for the character-class sanity check."""

    @pytest.mark.parametrize(
        "line",
        ["真空二重構造", "容量350mL", "Acme Tumbler", "保温・保冷どちらも対応", ""],
    )
    def test_sane_lines(self, line: str) -> None:
        assert is_likely_garbled(line) is False

    def test_katakana_marks_are_not_symbols(self) -> None:
        assert is_likely_garbled("ーー・ー・ー") is False
        assert is_likely_garbled("コーヒー・ティー・スープ") is False

    @pytest.mark.parametrize(
        "line",
        ["�broken", "#$%&*!@#$%^&*()", "ÃƒÂ©ÃƒÂ¨ÃƒÂ"],
    )
    def test_garbled_lines(self, line: str) -> None:
        assert is_likely_garbled(line) is True

    def test_short_symbol_runs_are_tolerated(self) -> None:
        """The symbol ratio only applies from six characters up."""
        assert is_likely_garbled("A&B") is False

    def test_thresholds_are_configurable(self) -> None:
        assert is_likely_garbled("ab-cd-ef", symbol_ratio=0.1) is True


class TestHelpers:
    """Tests for small density helpers."""

    def test_normalize_line(self) -> None:
        assert normalize_line("  a \t b\n c ") == "a b c"
        assert normalize_line(None) == ""

    def test_extract_numeric_unit_tokens(self) -> None:
        assert extract_numeric_unit_tokens("容量 350 mL、重さ1,200g、350mL") == [
            "350mL",
            "1,200g",
        ]

    @pytest.mark.parametrize(
        ("phrase", "expected"),
        [
            ("容量350mL", True),
            ("真空二重構造", True),
            ("ステンレス製", True),
            ("おしゃれ", False),
        ],
    )
    def test_is_fact_like(self, phrase: str, expected: bool) -> None:
        assert is_fact_like(phrase) is expected

    def test_mask_for_log(self) -> None:
        assert mask_for_log("Acme 350mL") == "**** XXX**"

    def test_mask_keeps_digits_as_x(self) -> None:
        assert mask_for_log("2024年 350") == "XXXX年 XXX"

    def test_mask_truncates(self) -> None:
        assert len(mask_for_log("x" * 50, max_len=20)) == 20
