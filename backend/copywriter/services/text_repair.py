"""Deterministic repair pass applied to every candidate before scoring.

Two transformations, both meaning-preserving and idempotent:
- Bullet repair: split collapsed bullet lines at clause boundaries,
  merge dangling punctuation/hiragana fragments back into the previous
  bullet, and keep at most three bullets.
- Audience enforcement: make sure the audience phrase appears verbatim
  once in the lead.

Also exposes the lead/body structure helpers the scorer uses.
"""

import re
from dataclasses import dataclass

from copywriter.services.lexicon import CLAUSE_LEADING_WORDS, PLACE_PATTERN, alternation

MAX_BULLETS = 3

BULLET_LINE_RE = re.compile(r"^\s*[・\-\*•●]")
BULLET_PREFIX_RE = re.compile(r"^\s*[・\-\*•●]\s*")
HEADING_LINE_RE = re.compile(r"^\s*#")
INTERNAL_MARKERS = "・•●"

CLAUSE_START_PATTERN = (
    r"(?:[0-9０-９A-Za-zＡ-Ｚａ-ｚ「『（(【\[\"'“]|" + alternation(CLAUSE_LEADING_WORDS) + ")"
)
# A marker only splits when a new clause follows it; 保温・保冷 stays intact.
COLLAPSED_SPLIT_RE = re.compile(rf"\s*[{INTERNAL_MARKERS}](?={CLAUSE_START_PATTERN})")

DANGLING_FRAGMENT_RE = re.compile(r"^(?:[。、．，.,!?！？」』）)]+|[ぁ-ん]{1,4}。?)$")

SENTENCE_RE = re.compile(r"[^。！？!?]+[。！？!?]*")
SENTENCE_TERMINATORS = "。！？!?"

LOCATION_START_RE = re.compile(
    rf"^{PLACE_PATTERN}[^。、]{{0,4}}?(?:では|でも|で|にて)"
)
ACTION_START_RE = re.compile(r"^[^。、]{1,12}?(?:ながら|とき|時に|時は|間に|間も|際に|際は)")


@dataclass(frozen=True)
class TextStructure:
    """Lead/body split of a text."""

    lead_lines: tuple[str, ...]
    body_lines: tuple[str, ...]

    @property
    def lead(self) -> str:
        return "\n".join(self.lead_lines)

    @property
    def body(self) -> str:
        return "\n".join(self.body_lines)

    @property
    def bullet_lines(self) -> list[str]:
        return [line for line in self.body_lines if is_bullet_line(line)]


def is_bullet_line(line: str) -> bool:
    return bool(BULLET_LINE_RE.match(line))


def is_heading_line(line: str) -> bool:
    return bool(HEADING_LINE_RE.match(line))


def split_lead_body(text: str) -> TextStructure:
    """Lead is every line before the first bullet line; body is the rest."""
    lines = (text or "").split("\n")
    for i, line in enumerate(lines):
        if is_bullet_line(line):
            return TextStructure(tuple(lines[:i]), tuple(lines[i:]))
    return TextStructure(tuple(lines), ())


def split_sentences(text: str) -> list[str]:
    sentences: list[str] = []
    for line in (text or "").split("\n"):
        for match in SENTENCE_RE.finditer(line):
            sentence = match.group(0).strip()
            if sentence:
                sentences.append(sentence)
    return sentences


def lead_sentences(structure: TextStructure) -> list[str]:
    """Sentences of the lead, headings excluded."""
    return split_sentences(
        "\n".join(line for line in structure.lead_lines if not is_heading_line(line))
    )


def _split_collapsed(line: str) -> list[str]:
    prefix_match = BULLET_PREFIX_RE.match(line)
    prefix = prefix_match.group(0) if prefix_match else ""
    content = line[len(prefix) :]
    fragments = [f.strip() for f in COLLAPSED_SPLIT_RE.split(content)]
    fragments = [f for f in fragments if f]
    if len(fragments) <= 1:
        return [line]
    return [prefix + fragments[0]] + [f"・{f}" for f in fragments[1:]]


def repair_bullets(text: str) -> str:
    """Split collapsed bullets, merge dangling fragments, cap at three bullets."""
    out: list[str] = []
    for line in (text or "").split("\n"):
        if is_bullet_line(line):
            out.extend(_split_collapsed(line))
        elif out and is_bullet_line(out[-1]) and DANGLING_FRAGMENT_RE.match(line.strip()):
            out[-1] = out[-1].rstrip() + line.strip()
        else:
            out.append(line)

    kept: list[str] = []
    bullets = 0
    for line in out:
        if is_bullet_line(line):
            bullets += 1
            if bullets > MAX_BULLETS:
                continue
        kept.append(line)
    return "\n".join(kept)


def audience_connector(sentence: str) -> str:
    """Pick the particle used when prefixing a sentence with the audience."""
    if LOCATION_START_RE.match(sentence) or ACTION_START_RE.match(sentence):
        return "が"
    return "には、"


def _second_lead_sentence_position(lines: list[str], lead_count: int) -> tuple[int, int] | None:
    seen = 0
    for i in range(lead_count):
        line = lines[i]
        if is_heading_line(line):
            continue
        for match in SENTENCE_RE.finditer(line):
            sentence = match.group(0)
            if not sentence.strip():
                continue
            seen += 1
            if seen == 2:
                offset = match.start() + (len(sentence) - len(sentence.lstrip()))
                return i, offset
    return None


def enforce_audience(text: str, audience: str) -> str:
    """Inject the audience phrase once into the lead when it is missing."""
    phrase = (audience or "").strip()
    if not phrase or not (text or "").strip() or phrase in text:
        return text

    lines = (text or "").split("\n")
    lead_count = len(split_lead_body(text).lead_lines)

    position = _second_lead_sentence_position(lines, lead_count)
    if position is not None:
        i, offset = position
        line = lines[i]
        sentence = line[offset:]
        lines[i] = f"{line[:offset]}{phrase}{audience_connector(sentence)}{sentence}"
        return "\n".join(lines)

    addition = f"{phrase}に向いています。"
    for i in range(lead_count - 1, -1, -1):
        line = lines[i]
        if line.strip() and not is_heading_line(line):
            stripped = line.rstrip()
            joiner = "" if stripped[-1] in SENTENCE_TERMINATORS else "。"
            lines[i] = f"{stripped}{joiner}{addition}"
            return "\n".join(lines)

    lines.insert(lead_count, addition)
    return "\n".join(lines)


def repair_text(text: str, audience: str) -> str:
    """Bullet repair followed by audience enforcement."""
    normalized = (text or "").replace("\r\n", "\n")
    return enforce_audience(repair_bullets(normalized), audience)
