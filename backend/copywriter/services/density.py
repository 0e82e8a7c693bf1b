"""Input density (densityA) evaluation.

Measures how much of a fixed "must-use" input set survives into a
generated text:
- InputSet: product_name, goal, audience and at most one representative
  selling point (so the denominator is always 3 or 4)
- UsedSet: phrases found by exact substring, any contiguous window of
  `min_consecutive_match` characters, or a numeric+unit token
- densityA = |UsedSet| / |InputSet|

No semantic matching and no synonym dictionary. The only paraphrase
allowance is a fixed, minimal remote-work token set for the audience.

Garbled input lines (mojibake, symbol noise) are excluded from the
InputSet instead of being scored.
"""

import re
from dataclasses import dataclass, field
from typing import Any

from copywriter.services.normalizer import NormalizedInput

DEFAULT_MIN_CONSECUTIVE_MATCH = 4
DEFAULT_LOG_MASK_MAX_LEN = 20
DEFAULT_ALLOWED_CHAR_RATIO = 0.6
DEFAULT_SYMBOL_RATIO = 0.55
SYMBOL_RATIO_MIN_LENGTH = 6

NUMBER_PATTERN = r"(?:\d{1,3}(?:,\d{3})+|\d+)(?:\.\d+)?"
UNIT_PATTERN = (
    r"(?:%|％|℃|°C|円|個|本|枚|回|分|秒|時間|日|年|mL|ml|L|l|g|kg|mg|cm|mm|m|km)"
)
NUMERIC_UNIT_RE = re.compile(rf"{NUMBER_PATTERN}\s*{UNIT_PATTERN}")

FACT_HINT_RE = re.compile(
    r"[0-9０-９]|構造|素材|仕様|容量|重量|サイズ|製|搭載|対応|加工|採用"
)

# Audience-only allowance; fixed on purpose, never extended.
REMOTE_AUDIENCE_RE = re.compile(r"在宅|リモート|テレワーク")
REMOTE_OUTPUT_TOKENS = ("在宅", "自宅", "リモート", "テレワーク")

_WHITESPACE_RE = re.compile(r"\s+")

_JA_PUNCTUATION = frozenset(
    "、。・ー「」『』【】〜…—！？（）"
)


@dataclass(frozen=True)
class DensityConfig:
    """Tunable thresholds for densityA evaluation."""

    min_consecutive_match: int = DEFAULT_MIN_CONSECUTIVE_MATCH
    log_mask_max_len: int = DEFAULT_LOG_MASK_MAX_LEN
    allowed_char_ratio: float = DEFAULT_ALLOWED_CHAR_RATIO
    symbol_ratio: float = DEFAULT_SYMBOL_RATIO


@dataclass
class DensityResult:
    """Result of one densityA evaluation."""

    input_set: list[str] = field(default_factory=list)
    used_set: list[str] = field(default_factory=list)
    unused_set: list[str] = field(default_factory=list)
    density_a: float = 0.0
    unused_top3: list[str] = field(default_factory=list)
    unused_top3_masked: list[str] = field(default_factory=list)

    @property
    def input_count(self) -> int:
        return len(self.input_set)

    @property
    def used_count(self) -> int:
        return len(self.used_set)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a log-safe dictionary (phrases masked)."""
        return {
            "input_count": self.input_count,
            "used_count": self.used_count,
            "density_a": round(self.density_a, 4),
            "unused_top3_masked": self.unused_top3_masked,
        }


def normalize_line(text: str | None) -> str:
    """Trim and collapse runs of whitespace to a single space."""
    return _WHITESPACE_RE.sub(" ", (text or "").strip())


def unique_preserve_order(items: list[str]) -> list[str]:
    seen: set[str] = set()
    out: list[str] = []
    for item in items:
        if item in seen:
            continue
        seen.add(item)
        out.append(item)
    return out


def _is_ascii_symbol(cp: int) -> bool:
    return not (
        0x30 <= cp <= 0x39 or 0x41 <= cp <= 0x5A or 0x61 <= cp <= 0x7A
    )


def is_likely_garbled(
    line: str,
    allowed_ratio: float = DEFAULT_ALLOWED_CHAR_RATIO,
    symbol_ratio: float = DEFAULT_SYMBOL_RATIO,
) -> bool:
    """Character-class sanity check for an input line.

    Allowed: printable ASCII, hiragana, katakana, CJK ideographs,
    full-width forms and common Japanese punctuation.
    """
    s = (line or "").strip()
    if not s:
        return False
    if "�" in s:
        return True

    allowed = 0
    symbols = 0
    for ch in s:
        cp = ord(ch)
        if 0x20 <= cp <= 0x7E:
            allowed += 1
            if _is_ascii_symbol(cp):
                symbols += 1
        elif 0x3040 <= cp <= 0x30FF or 0x4E00 <= cp <= 0x9FFF:
            allowed += 1
        elif 0xFF01 <= cp <= 0xFF60:
            allowed += 1
            if (
                cp <= 0xFF0F
                or 0xFF1A <= cp <= 0xFF20
                or 0xFF3B <= cp <= 0xFF40
                or 0xFF5B <= cp <= 0xFF60
            ):
                symbols += 1
        elif ch in _JA_PUNCTUATION:
            allowed += 1
            symbols += 1

    total = len(s)
    if allowed / total < allowed_ratio:
        return True
    if total >= SYMBOL_RATIO_MIN_LENGTH and symbols / total > symbol_ratio:
        return True
    return False


def is_fact_like(phrase: str) -> bool:
    """True when a phrase carries a number or a spec/material hint."""
    return bool(FACT_HINT_RE.search(phrase))


def _pick_representative(candidates: list[str]) -> str | None:
    for phrase in candidates:
        if is_fact_like(phrase):
            return phrase
    return candidates[0] if candidates else None


def build_input_set(
    data: NormalizedInput, config: DensityConfig | None = None
) -> list[str]:
    """Build the fixed-size InputSet (3 entries, or 4 with a selling point)."""
    config = config or DensityConfig()

    def _sane(line: str) -> bool:
        return bool(line) and not is_likely_garbled(
            line, config.allowed_char_ratio, config.symbol_ratio
        )

    base = [
        normalize_line(data.product_name),
        normalize_line(data.goal),
        normalize_line(data.audience),
    ]
    input_set = unique_preserve_order([line for line in base if _sane(line)])

    pool = [
        line
        for line in unique_preserve_order(
            [normalize_line(sp) for sp in data.selling_points]
        )
        if _sane(line) and line not in input_set
    ]
    representative = _pick_representative(pool)
    if representative is not None:
        input_set.append(representative)
    return input_set


def extract_numeric_unit_tokens(text: str) -> list[str]:
    """Numeric+unit tokens with inner whitespace removed."""
    return unique_preserve_order(
        [_WHITESPACE_RE.sub("", m.group(0)) for m in NUMERIC_UNIT_RE.finditer(text or "")]
    )


def _contains_window(output: str, phrase: str, min_len: int) -> bool:
    if len(phrase) < min_len:
        return False
    return any(
        phrase[i : i + min_len] in output for i in range(len(phrase) - min_len + 1)
    )


def _contains_numeric_unit(output: str, phrase: str) -> bool:
    tokens = extract_numeric_unit_tokens(phrase)
    if not tokens:
        return False
    compact = _WHITESPACE_RE.sub("", output)
    return any(token in compact for token in tokens)


def compute_used_set(
    input_set: list[str], output_text: str, config: DensityConfig | None = None
) -> tuple[list[str], list[str]]:
    """Split the InputSet into (used, unused) phrases for one output."""
    config = config or DensityConfig()
    out = output_text or ""
    used: list[str] = []
    unused: list[str] = []
    for phrase in input_set:
        if phrase and (
            phrase in out
            or _contains_window(out, phrase, config.min_consecutive_match)
            or _contains_numeric_unit(out, phrase)
        ):
            used.append(phrase)
        else:
            unused.append(phrase)
    return unique_preserve_order(used), unique_preserve_order(unused)


def compute_density_a(used_set: list[str], input_set: list[str]) -> float:
    if not input_set:
        return 0.0
    return len(used_set) / len(input_set)


def _apply_audience_allowance(
    audience: str, output_text: str, used: list[str], unused: list[str]
) -> tuple[list[str], list[str]]:
    phrase = normalize_line(audience)
    if not phrase or phrase not in unused:
        return used, unused
    if not REMOTE_AUDIENCE_RE.search(phrase):
        return used, unused
    if not any(token in (output_text or "") for token in REMOTE_OUTPUT_TOKENS):
        return used, unused
    return (
        unique_preserve_order([*used, phrase]),
        [p for p in unused if p != phrase],
    )


def mask_for_log(raw: str, max_len: int = DEFAULT_LOG_MASK_MAX_LEN) -> str:
    """Mask a phrase for logs: digits become X, ASCII letters become *."""
    s = (raw or "").strip()[:max_len]
    s = re.sub(r"[A-Za-z]", "*", s)
    return re.sub(r"[0-9]", "X", s)


def evaluate_density_a(
    data: NormalizedInput,
    output_text: str,
    config: DensityConfig | None = None,
) -> DensityResult:
    """Build the InputSet, match it against the output and compute densityA."""
    config = config or DensityConfig()
    input_set = build_input_set(data, config)
    used, unused = compute_used_set(input_set, output_text, config)
    used, unused = _apply_audience_allowance(data.audience, output_text, used, unused)

    top3 = unused[:3]
    return DensityResult(
        input_set=input_set,
        used_set=used,
        unused_set=unused,
        density_a=compute_density_a(used, input_set),
        unused_top3=top3,
        unused_top3_masked=[mask_for_log(p, config.log_mask_max_len) for p in top3],
    )
