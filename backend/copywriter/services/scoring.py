"""L3 scoring engine.

Scores one repaired candidate against the rule table in scoring_rules.
The score starts at 0 and only accumulates penalties; the final
concrete-signal adjustment may subtract a small bonus, and the result is
clamped at 0. Lower is better.

Check order (reasons are reported in this order):
1. Structure: heading, lead sentence count, product name in lead
2. Vocabulary: hype in lead/body, can-do boilerplate
3. Grammar-breakage rules (table driven)
4. Certainty claims, repeated lead endings
5. Bullets: count deviation, collapsed residue
6. Input alignment: goal, spec inflation, missing specs,
   feature->effect links, unneeded FAQ
7. Second lead sentence (disqualifying)
8. Concrete-signal adjustment on the body
"""

import re
from dataclasses import dataclass, field

from copywriter.services.candidates import RepairedCandidate, ScoredCandidate, ScoreFacts
from copywriter.services.density import (
    NUMERIC_UNIT_RE,
    DensityConfig,
    evaluate_density_a,
    extract_numeric_unit_tokens,
    is_fact_like,
)
from copywriter.services.lexicon import ACTION_VERB_PATTERN, PLACE_PATTERN, TIME_PATTERN
from copywriter.services.normalizer import NormalizedInput
from copywriter.services.scoring_rules import (
    ABSTRACT_WORDS,
    CAN_DO_RE,
    CONCRETE_BONUS,
    CONCRETE_BONUS_MIN_CATEGORIES,
    FAQ_RE,
    FEATURE_EFFECT_RE,
    GENERIC_GOAL_RE,
    GOAL_MIN_WINDOW,
    GRAMMAR_RULES,
    HARD_CERTAINTY_WORDS,
    HEADING_RE,
    PREDICATE_END_RE,
    REPEATED_ENDING_LENGTH,
    SOFT_CERTAINTY_WORDS,
    ViolationKind,
)
from copywriter.services.text_repair import (
    BULLET_PREFIX_RE,
    INTERNAL_MARKERS,
    MAX_BULLETS,
    lead_sentences,
    split_lead_body,
)

FULLWIDTH_DIGITS = str.maketrans("０１２３４５６７８９．，％", "0123456789.,%")
NUMBER_TOKEN_RE = re.compile(r"\d+(?:\.\d+)?")

ACTION_VERB_RE = re.compile(ACTION_VERB_PATTERN)
TIME_PLACE_RE = re.compile(f"{TIME_PATTERN}|{PLACE_PATTERN}")
TIME_RE = re.compile(TIME_PATTERN)
PLACE_RE = re.compile(PLACE_PATTERN)
DIGIT_RE = re.compile(r"[0-9]")
TERMINATOR_RE = re.compile(r"[。！？!?]+$")


@dataclass
class _ScoreSheet:
    """Accumulates penalties and reason codes for one candidate."""

    score: int = 0
    reasons: list[str] = field(default_factory=list)
    disqualifying: list[str] = field(default_factory=list)

    def add(self, kind: ViolationKind, times: int = 1) -> None:
        if times <= 0:
            return
        self.score += kind.weight * times
        if kind.code not in self.reasons:
            self.reasons.append(kind.code)
        if kind.disqualifying and kind.code not in self.disqualifying:
            self.disqualifying.append(kind.code)


def normalize_digits(text: str) -> str:
    """Full-width digits to ASCII and thousands separators removed."""
    converted = (text or "").translate(FULLWIDTH_DIGITS)
    return re.sub(r"(?<=\d),(?=\d{3})", "", converted)


def input_corpus(data: NormalizedInput) -> str:
    """Every piece of request text, used as the ground truth for numbers."""
    parts = [
        data.product_name,
        data.category,
        data.goal,
        data.audience,
        data.platform or "",
        data.length_hint or "",
        *data.keywords,
        *data.constraints,
        *data.selling_points,
        *data.objections,
        *data.evidence,
        *data.cta_preference,
    ]
    return normalize_digits("\n".join(parts))


def fabricated_numbers(text: str, data: NormalizedInput) -> list[str]:
    """Numeric tokens in the output that the request never mentioned."""
    known = set(NUMBER_TOKEN_RE.findall(input_corpus(data)))
    found = NUMBER_TOKEN_RE.findall(normalize_digits(text))
    return list(dict.fromkeys(n for n in found if n not in known))


def missing_spec_tokens(text: str, data: NormalizedInput) -> list[str]:
    """Numeric+unit tokens the request supplied that the output dropped."""
    source = normalize_digits("\n".join([*data.selling_points, *data.evidence]))
    output = re.sub(r"\s+", "", normalize_digits(text))
    return [t for t in extract_numeric_unit_tokens(source) if t not in output]


def has_fact_material(data: NormalizedInput) -> bool:
    return any(is_fact_like(p) for p in (*data.selling_points, *data.evidence))


def is_generic_goal(goal: str) -> bool:
    return bool(GENERIC_GOAL_RE.search(goal or ""))


def goal_in_lead(goal: str, lead: str) -> bool:
    phrase = (goal or "").strip()
    if not phrase or phrase in lead:
        return True
    if len(phrase) < GOAL_MIN_WINDOW:
        return False
    return any(
        phrase[i : i + GOAL_MIN_WINDOW] in lead
        for i in range(len(phrase) - GOAL_MIN_WINDOW + 1)
    )


def _sentence_core(sentence: str) -> str:
    return TERMINATOR_RE.sub("", sentence.strip())


def has_collapsed_residue(line: str) -> bool:
    prefix = BULLET_PREFIX_RE.match(line)
    content = line[prefix.end() :] if prefix else line
    markers = sum(content.count(m) for m in INTERNAL_MARKERS)
    if markers >= 2:
        return True
    return any(f" {m}" in content or f"　{m}" in content for m in INTERNAL_MARKERS)


def concrete_signal_categories(body: str) -> int:
    normalized = normalize_digits(body)
    return sum(
        1
        for found in (
            DIGIT_RE.search(normalized),
            NUMERIC_UNIT_RE.search(normalized),
            TIME_RE.search(body),
            PLACE_RE.search(body),
        )
        if found
    )


def _check_second_lead_sentence(sheet: _ScoreSheet, sentence: str | None) -> None:
    core = _sentence_core(sentence or "")
    if not core or not PREDICATE_END_RE.search(core):
        sheet.add(ViolationKind.LEAD2_SCENE_ONLY)
    if not ACTION_VERB_RE.search(core):
        sheet.add(ViolationKind.LEAD2_NO_ACTION)
    if not TIME_PLACE_RE.search(core):
        sheet.add(ViolationKind.LEAD2_NO_TIME_PLACE)


def score_candidate(
    repaired: RepairedCandidate,
    data: NormalizedInput,
    density_config: DensityConfig | None = None,
) -> ScoredCandidate:
    """Compute the L3 score, facts and densityA for one repaired candidate."""
    text = repaired.text
    structure = split_lead_body(text)
    lead = structure.lead
    body = structure.body
    sentences = lead_sentences(structure)
    bullets = structure.bullet_lines[:MAX_BULLETS]
    bullet_count = len(structure.bullet_lines)
    product = data.product_name.strip()

    sheet = _ScoreSheet()

    # 1. Structure
    has_heading = bool(HEADING_RE.search(text))
    if has_heading:
        sheet.add(ViolationKind.HEADING)
    if len(sentences) != 2:
        sheet.add(ViolationKind.LEAD_SENTENCE_COUNT)
    first_sentence = sentences[0] if sentences else ""
    has_product = bool(product) and product in first_sentence
    if product and not has_product:
        sheet.add(ViolationKind.PRODUCT_NOT_IN_LEAD)

    # 2. Vocabulary
    if any(word in lead for word in ABSTRACT_WORDS):
        sheet.add(ViolationKind.LEAD_ABSTRACT)
    if any(word in body for word in ABSTRACT_WORDS):
        sheet.add(ViolationKind.BODY_ABSTRACT)
    if CAN_DO_RE.search(lead):
        sheet.add(ViolationKind.LEAD_CAN_DO)

    # 3. Grammar breakage
    for rule in GRAMMAR_RULES:
        sheet.add(rule.kind, len(rule.pattern.findall(text)))

    # 4. Certainty and endings
    if any(word in text for word in HARD_CERTAINTY_WORDS):
        sheet.add(ViolationKind.CERTAINTY_HARD)
    all_sentences = sentences + [
        BULLET_PREFIX_RE.sub("", line) for line in structure.bullet_lines
    ]
    if any(s.startswith(SOFT_CERTAINTY_WORDS) for s in all_sentences):
        sheet.add(ViolationKind.CERTAINTY_SOFT)
    endings = [_sentence_core(s)[-REPEATED_ENDING_LENGTH:] for s in sentences]
    if any(a and a == b for a, b in zip(endings, endings[1:])):
        sheet.add(ViolationKind.LEAD_REPEATED_ENDING)

    # 5. Bullets
    sheet.add(ViolationKind.BULLET_COUNT, abs(bullet_count - MAX_BULLETS))
    collapsed = any(has_collapsed_residue(line) for line in structure.bullet_lines)
    if collapsed:
        sheet.add(ViolationKind.COLLAPSED_BULLETS)

    # 6. Input alignment
    if not is_generic_goal(data.goal) and not goal_in_lead(data.goal, lead):
        sheet.add(ViolationKind.GOAL_NOT_IN_LEAD)
    sheet.add(ViolationKind.SPEC_INFLATION, len(fabricated_numbers(text, data)))
    sheet.add(ViolationKind.SPEC_MISSING, len(missing_spec_tokens(text, data)))
    if has_fact_material(data):
        linked = sum(
            1 for line in bullets if FEATURE_EFFECT_RE.search(BULLET_PREFIX_RE.sub("", line))
        )
        if linked < 2:
            sheet.add(ViolationKind.FEATURE_EFFECT_WEAK)
    if not data.objections and not data.cta_preference and FAQ_RE.search(text):
        sheet.add(ViolationKind.UNNEEDED_FAQ)

    # 7. Second lead sentence
    _check_second_lead_sentence(sheet, sentences[1] if len(sentences) >= 2 else None)

    # 8. Concrete signals
    categories = concrete_signal_categories(body)
    if categories == 0:
        sheet.add(ViolationKind.CONCRETE_NONE)
    elif categories >= CONCRETE_BONUS_MIN_CATEGORIES:
        sheet.score -= CONCRETE_BONUS
    score = max(0, sheet.score)

    density = evaluate_density_a(data, text, density_config)
    density_a = density.density_a if density.input_count else None

    facts = ScoreFacts(
        lead_sentence_count=len(sentences),
        bullet_count=bullet_count,
        has_heading=has_heading,
        has_product_name_in_lead=has_product,
        has_collapsed_bullets=collapsed,
    )
    preference_penalty = (
        abs(len(sentences) - 2)
        + (0 if has_product else 1)
        + int(has_heading)
        + abs(bullet_count - MAX_BULLETS)
        + int(collapsed)
    )

    return ScoredCandidate(
        repaired=repaired,
        score=score,
        reasons=tuple(sheet.reasons),
        facts=facts,
        density_a=density_a,
        input_count=density.input_count,
        used_count=density.used_count,
        disqualified=bool(sheet.disqualifying),
        preference_penalty=preference_penalty,
        disqualifying_reasons=tuple(sheet.disqualifying),
        unused_top3=tuple(density.unused_top3),
        unused_top3_masked=tuple(density.unused_top3_masked),
    )
