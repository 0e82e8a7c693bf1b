"""Violation rule table for L3 scoring.

Every violation kind carries its reason code, penalty weight and whether
it is disqualifying. Grammar-breakage detection is expressed as data
(pattern + kind) so the table can be tested independently of the scorer.

Weights:
- Disqualifying second-lead-sentence checks: 10 each
- Spec inflation (fabricated numbers): 8 per token
- Grammar breakage: 5-6 per rule hit
- Structure (heading, lead count, product, collapsed bullets): 3-5
- Style (hype, boilerplate, soft certainty, endings): 2-4
"""

import re
from dataclasses import dataclass
from enum import Enum

from copywriter.services.lexicon import PLACE_PATTERN

# Place words only count as whole words, not as the head of a compound
WORD_CHAR = "[一-龥ァ-ヶー]"


class ViolationKind(Enum):
    """Closed set of violation kinds: (code, weight, disqualifying)."""

    HEADING = ("heading", 3, False)
    LEAD_SENTENCE_COUNT = ("lead_sentence_count", 4, False)
    PRODUCT_NOT_IN_LEAD = ("product_not_in_lead", 5, False)
    LEAD_ABSTRACT = ("lead_abstract", 4, False)
    BODY_ABSTRACT = ("body_abstract", 2, False)
    LEAD_CAN_DO = ("lead_can_do", 2, False)
    GRAMMAR_PARTICLE = ("grammar_particle", 6, False)
    GRAMMAR_DUPLICATE_PHRASE = ("grammar_duplicate_phrase", 6, False)
    GRAMMAR_DUPLICATE_PLACE = ("grammar_duplicate_place", 5, False)
    CERTAINTY_HARD = ("certainty_hard", 5, False)
    CERTAINTY_SOFT = ("certainty_soft", 2, False)
    LEAD_REPEATED_ENDING = ("lead_repeated_ending", 2, False)
    BULLET_COUNT = ("bullet_count", 3, False)
    COLLAPSED_BULLETS = ("collapsed_bullets", 4, False)
    GOAL_NOT_IN_LEAD = ("goal_not_in_lead", 3, False)
    SPEC_INFLATION = ("spec_inflation", 8, False)
    SPEC_MISSING = ("spec_missing", 3, False)
    FEATURE_EFFECT_WEAK = ("feature_effect_weak", 3, False)
    UNNEEDED_FAQ = ("unneeded_faq", 3, False)
    CONCRETE_NONE = ("concrete_none", 2, False)
    LEAD2_SCENE_ONLY = ("lead2_scene_only", 10, True)
    LEAD2_NO_ACTION = ("lead2_no_action", 10, True)
    LEAD2_NO_TIME_PLACE = ("lead2_no_time_place", 10, True)

    def __init__(self, code: str, weight: int, disqualifying: bool) -> None:
        self.code = code
        self.weight = weight
        self.disqualifying = disqualifying


# Subtracted when the body carries at least two concrete-signal categories
CONCRETE_BONUS = 1
CONCRETE_BONUS_MIN_CATEGORIES = 2

DISQUALIFYING_KINDS = frozenset(k for k in ViolationKind if k.disqualifying)


@dataclass(frozen=True)
class GrammarRule:
    """One grammar-breakage pattern and the violation it raises."""

    kind: ViolationKind
    pattern: re.Pattern[str]
    example: str


GRAMMAR_RULES: tuple[GrammarRule, ...] = (
    GrammarRule(
        kind=ViolationKind.GRAMMAR_PARTICLE,
        pattern=re.compile(r"(?:を|が)(?:を|が)"),
        example="コーヒーをを楽しめます",
    ),
    GrammarRule(
        kind=ViolationKind.GRAMMAR_DUPLICATE_PHRASE,
        pattern=re.compile(r"([一-龥ァ-ヶー]{2,}[のをにがで])\1"),
        example="保温性の保温性の高さ",
    ),
    GrammarRule(
        kind=ViolationKind.GRAMMAR_DUPLICATE_PLACE,
        pattern=re.compile(
            rf"(?<!{WORD_CHAR})({PLACE_PATTERN})(?!{WORD_CHAR})"
            rf"[^。]{{0,6}}?(?<!{WORD_CHAR})\1(?!{WORD_CHAR})"
        ),
        example="オフィスでオフィスの机に",
    ),
)

# Generic hype / filler vocabulary
ABSTRACT_WORDS: tuple[str, ...] = (
    "最高",
    "究極",
    "革命的",
    "圧倒的",
    "素晴らしい",
    "魅力的",
    "抜群",
    "理想的",
    "至福",
    "贅沢な",
    "特別な",
    "ワンランク上",
    "極上",
    "感動",
    "夢のような",
)

CAN_DO_RE = re.compile(r"ことができ|ことが可能|が可能です|を実現し|を叶え")

HARD_CERTAINTY_WORDS: tuple[str, ...] = (
    "絶対",
    "必ず",
    "100%",
    "完璧",
    "確実",
    "間違いなく",
    "一生",
    "永久",
)

# Only penalized when they open a sentence
SOFT_CERTAINTY_WORDS: tuple[str, ...] = ("きっと", "もちろん", "まさに", "誰もが")

HEADING_RE = re.compile(r"^\s*(?:#{1,6}\s|#{1,6}$|■)", re.MULTILINE)

FAQ_RE = re.compile(r"^\s*(?:Q[.．:：]|A[.．:：]|Ｑ[.．:：]|よくある質問|FAQ)", re.MULTILINE)

FEATURE_EFFECT_RE = re.compile(r"(?:ので|から|ため|により|によって|→|で)[^。]{2,}")

GENERIC_GOAL_RE = re.compile(
    r"(?:説明文|紹介文|商品説明|文章|コピー).{0,3}(?:作成|書|生成)"
    r"|write\s+(?:a\s+|the\s+)?(?:product\s+)?description",
    re.IGNORECASE,
)

PREDICATE_END_RE = re.compile(
    r"(?:ます|です|ました|でした|ません|ましょう|る|た|だ|い|う|ず|く|て|よ|ね)$"
)

GOAL_MIN_WINDOW = 4
REPEATED_ENDING_LENGTH = 4
