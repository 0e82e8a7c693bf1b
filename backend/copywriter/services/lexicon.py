"""Shared Japanese word lists used by repair and scoring."""

import re

PLACE_WORDS: tuple[str, ...] = (
    "オフィス",
    "デスク",
    "自宅",
    "職場",
    "会社",
    "家",
    "車内",
    "キッチン",
    "外出先",
    "屋外",
    "アウトドア",
    "リビング",
    "寝室",
    "通勤",
    "移動中",
    "旅行",
    "会議",
)

TIME_WORDS: tuple[str, ...] = (
    "朝",
    "昼",
    "夜",
    "夕方",
    "午前",
    "午後",
    "休憩",
    "ランチ",
    "毎日",
    "平日",
    "週末",
    "一日中",
    "長時間",
    "作業中",
    "仕事中",
    "合間",
    "とき",
    "時",
)

ACTION_VERB_STEMS: tuple[str, ...] = (
    "使",
    "飲",
    "持",
    "入れ",
    "置",
    "運",
    "注",
    "洗",
    "楽しめ",
    "楽しむ",
    "過ごせ",
    "過ごす",
    "続け",
    "作業",
    "移動",
    "保て",
    "保ち",
    "守",
    "防",
    "届",
    "選",
    "始め",
    "休憩",
)

# Words that commonly open a new clause after a list marker
CLAUSE_LEADING_WORDS: tuple[str, ...] = (
    "また",
    "さらに",
    "しかも",
    "そして",
    "加えて",
    "おかげで",
    "だから",
    "なので",
    "すぐ",
    "いつでも",
    "どこでも",
    "しっかり",
    "たっぷり",
    "ずっと",
)


def alternation(words: tuple[str, ...]) -> str:
    """Regex alternation group for a word list, longest first."""
    ordered = sorted(words, key=len, reverse=True)
    return "(?:" + "|".join(re.escape(w) for w in ordered) + ")"


PLACE_PATTERN = alternation(PLACE_WORDS)
TIME_PATTERN = alternation(TIME_WORDS)
ACTION_VERB_PATTERN = alternation(ACTION_VERB_STEMS)
