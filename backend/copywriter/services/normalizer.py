"""Request normalization for the writer pipeline.

Accepts either a JSON object (or a JSON array whose first element is the
object) or labelled free text such as:

    商品名：Acme Tumbler
    目的：デスクで温かい飲み物を保つ
    ターゲット：在宅ワーカー
    セールスポイント：真空二重構造、300mL

and produces an immutable NormalizedInput. List fields are split on
`、` or `,`, trimmed and de-duplicated in order.
"""

import json
import re
from dataclasses import dataclass
from typing import Any

from copywriter.core.logging import get_logger

logger = get_logger(__name__)

LIST_SPLIT_RE = re.compile(r"[、,]")

# Label -> field for free-text requests
TEXT_LABELS: dict[str, str] = {
    "product_name": "商品名",
    "category": "カテゴリ",
    "goal": "目的",
    "audience": "ターゲット",
    "platform": "媒体",
    "brand_voice": "ブランドボイス",
    "tone": "トーン",
    "style": "スタイル",
    "length_hint": "ボリューム",
}

TEXT_LIST_LABELS: dict[str, str] = {
    "keywords": "キーワード",
    "constraints": "制約条件",
    "selling_points": "セールスポイント",
    "objections": "よくある不安",
    "evidence": "根拠",
    "cta_preference": "CTA希望",
}

LP_HINT_RE = re.compile(r"(lp|ランディングページ)", re.IGNORECASE)


class InputNormalizationError(Exception):
    """Raised when a request cannot be turned into a NormalizedInput."""


@dataclass(frozen=True)
class NormalizedInput:
    """A validated, immutable writer request.

    Optional extension fields form a closed set; unset fields are None
    (scalars) or an empty tuple (lists).
    """

    product_name: str
    category: str
    goal: str
    audience: str
    platform: str | None = None
    brand_voice: str | None = None
    tone: str | None = None
    style: str | None = None
    length_hint: str | None = None
    keywords: tuple[str, ...] = ()
    constraints: tuple[str, ...] = ()
    selling_points: tuple[str, ...] = ()
    objections: tuple[str, ...] = ()
    evidence: tuple[str, ...] = ()
    cta_preference: tuple[str, ...] = ()
    raw: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "product_name": self.product_name,
            "category": self.category,
            "goal": self.goal,
            "audience": self.audience,
            "platform": self.platform,
            "brand_voice": self.brand_voice,
            "tone": self.tone,
            "style": self.style,
            "length_hint": self.length_hint,
            "keywords": list(self.keywords),
            "constraints": list(self.constraints),
            "selling_points": list(self.selling_points),
            "objections": list(self.objections),
            "evidence": list(self.evidence),
            "cta_preference": list(self.cta_preference),
        }


def _text(value: Any) -> str:
    return "" if value is None else str(value).strip()


def _optional_text(value: Any) -> str | None:
    text = _text(value)
    return text or None


def _text_list(value: Any) -> tuple[str, ...]:
    if isinstance(value, (list, tuple)):
        items = [str(v).strip() for v in value if v is not None]
    elif isinstance(value, str):
        items = [part.strip() for part in LIST_SPLIT_RE.split(value)]
    else:
        items = []
    # dict.fromkeys keeps first-seen order
    return tuple(dict.fromkeys(item for item in items if item))


def coerce_to_input(data: dict[str, Any], raw: str | None = None) -> NormalizedInput:
    """Coerce an arbitrary mapping into a NormalizedInput."""
    return NormalizedInput(
        product_name=_text(
            data.get("product_name") or data.get("title") or data.get("name")
        ),
        category=_text(data.get("category")),
        goal=_text(data.get("goal")),
        audience=_text(data.get("audience")),
        platform=_optional_text(data.get("platform")),
        brand_voice=_optional_text(data.get("brand_voice")),
        tone=_optional_text(data.get("tone")),
        style=_optional_text(data.get("style")),
        length_hint=_optional_text(data.get("length_hint")),
        keywords=_text_list(data.get("keywords")),
        constraints=_text_list(data.get("constraints")),
        selling_points=_text_list(data.get("selling_points")),
        objections=_text_list(data.get("objections")),
        evidence=_text_list(data.get("evidence")),
        cta_preference=_text_list(data.get("cta_preference")),
        raw=raw,
    )


def _pick_label(text: str, label: str) -> str:
    match = re.search(rf"{re.escape(label)}[：:]\s*(.+)", text, re.IGNORECASE)
    return match.group(1).strip() if match else ""


def _parse_labelled_text(text: str) -> dict[str, Any]:
    data: dict[str, Any] = {
        field_name: _pick_label(text, label)
        for field_name, label in TEXT_LABELS.items()
    }
    for field_name, label in TEXT_LIST_LABELS.items():
        data[field_name] = _pick_label(text, label)
    if not data["platform"] and LP_HINT_RE.search(text):
        data["platform"] = "lp"
    return data


def normalize_input(raw: str | dict[str, Any] | None) -> NormalizedInput:
    """Normalize a JSON string, labelled free text or mapping.

    JSON-looking text that fails to parse falls back to the labelled
    free-text reader.

    Raises:
        InputNormalizationError: If the parsed JSON is not an object
    """
    if isinstance(raw, dict):
        return coerce_to_input(raw, raw=None)

    text = (raw or "").strip()
    if text.startswith(("{", "[")):
        try:
            parsed = json.loads(text)
        except json.JSONDecodeError as e:
            logger.debug(
                "Writer input is not valid JSON, reading as labelled text",
                extra={"error": str(e), "input_length": len(text)},
            )
        else:
            if isinstance(parsed, list):
                parsed = parsed[0] if parsed else {}
            if not isinstance(parsed, dict):
                raise InputNormalizationError(
                    f"Expected a JSON object, got {type(parsed).__name__}"
                )
            return coerce_to_input(parsed, raw=text)

    return coerce_to_input(_parse_labelled_text(text), raw=text)
