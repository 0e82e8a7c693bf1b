"""Final safety repair applied once to the winning text.

A fixed list of pattern -> literal replacements. Each pair only removes
a duplicated particle, place phrase or punctuation mark, so the text
keeps all of its content.
"""

import re
from dataclasses import dataclass

from copywriter.services.lexicon import PLACE_WORDS


@dataclass(frozen=True)
class SafetyFix:
    """One meaning-preserving replacement."""

    name: str
    pattern: re.Pattern[str]
    replacement: str


def _place_fixes() -> list[SafetyFix]:
    return [
        SafetyFix(
            name=f"duplicate_place_{place}",
            pattern=re.compile(rf"{re.escape(place)}で{re.escape(place)}で"),
            replacement=f"{place}で",
        )
        for place in PLACE_WORDS
    ]


SAFETY_FIXES: tuple[SafetyFix, ...] = (
    SafetyFix("particle_wo_wo", re.compile(r"をを"), "を"),
    SafetyFix("particle_ga_ga", re.compile(r"がが"), "が"),
    SafetyFix("particle_wo_ga", re.compile(r"をが"), "を"),
    *_place_fixes(),
    SafetyFix("touten_kuten", re.compile(r"、。"), "。"),
    SafetyFix("double_kuten", re.compile(r"。{2,}"), "。"),
    SafetyFix("double_touten", re.compile(r"、{2,}"), "、"),
)


def apply_safety_repair(text: str) -> str:
    """Apply every safety fix in order."""
    out = text or ""
    for fix in SAFETY_FIXES:
        out = fix.pattern.sub(fix.replacement, out)
    return out
