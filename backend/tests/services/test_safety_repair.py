"""Unit tests for the final safety repair.

Tests cover:
- Duplicated particles collapse
- Duplicated place phrases collapse
- Punctuation runs collapse
- Clean text passes through unchanged
"""

import pytest

from copywriter.services.safety_repair import SAFETY_FIXES, apply_safety_repair


class TestApplySafetyRepair:
    """Tests for apply_safety_repair."""

    @pytest.mark.parametrize(
        ("text", "expected"),
        [
            ("コーヒーをを楽しめます。", "コーヒーを楽しめます。"),
            ("温かさがが続きます。", "温かさが続きます。"),
            ("飲み物をが保ちます。", "飲み物を保ちます。"),
            ("オフィスでオフィスで使えます。", "オフィスで使えます。"),
            ("デスクでデスクで使えます。", "デスクで使えます。"),
            ("使えます、。", "使えます。"),
            ("使えます。。。", "使えます。"),
            ("朝、、昼も", "朝、昼も"),
        ],
    )
    def test_fixes(self, text: str, expected: str) -> None:
        assert apply_safety_repair(text) == expected

    def test_clean_text_is_unchanged(self, good_text: str) -> None:
        assert apply_safety_repair(good_text) == good_text

    def test_repair_never_grows_text(self, good_text: str) -> None:
        noisy = good_text.replace("が", "がが").replace("。", "。。")
        assert len(apply_safety_repair(noisy)) <= len(noisy)

    def test_empty_text(self) -> None:
        assert apply_safety_repair("") == ""

    def test_fix_names_are_unique(self) -> None:
        names = [fix.name for fix in SAFETY_FIXES]
        assert len(names) == len(set(names))
