"""Immutable candidate records passed between pipeline stages.

Candidate -> RepairedCandidate -> ScoredCandidate -> SelectionResult.
Each stage derives a new frozen record; nothing is mutated in place.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

ERROR_PREVIEW_MAX_LENGTH = 300


@dataclass(frozen=True)
class Candidate:
    """One generation attempt's result."""

    index: int
    success: bool
    text: str = ""
    latency_ms: float = 0.0
    status: int = 0
    status_text: str = ""
    error_preview: str | None = None

    def summary(self) -> dict[str, Any]:
        """Compact diagnostic summary (no generated text)."""
        data: dict[str, Any] = {
            "index": self.index,
            "ok": self.success,
            "status": self.status,
            "status_text": self.status_text,
            "latency_ms": round(self.latency_ms, 2),
        }
        if not self.success:
            data["error_preview"] = (self.error_preview or "")[:120]
        return data


@dataclass(frozen=True)
class RepairedCandidate:
    """A Candidate's text after the repair pass."""

    source: Candidate
    text: str
    did_repair: bool

    @property
    def index(self) -> int:
        return self.source.index


@dataclass(frozen=True)
class ScoreFacts:
    """Structural facts observed while scoring."""

    lead_sentence_count: int
    bullet_count: int
    has_heading: bool
    has_product_name_in_lead: bool
    has_collapsed_bullets: bool

    def to_dict(self) -> dict[str, Any]:
        return {
            "lead_sentence_count": self.lead_sentence_count,
            "bullet_count": self.bullet_count,
            "has_heading": self.has_heading,
            "has_product_name_in_lead": self.has_product_name_in_lead,
            "has_collapsed_bullets": self.has_collapsed_bullets,
        }


@dataclass(frozen=True)
class ScoredCandidate:
    """A RepairedCandidate with its L3 score and density diagnostics."""

    repaired: RepairedCandidate
    score: int
    reasons: tuple[str, ...]
    facts: ScoreFacts
    density_a: float | None
    input_count: int
    used_count: int
    disqualified: bool
    preference_penalty: int
    disqualifying_reasons: tuple[str, ...] = ()
    unused_top3: tuple[str, ...] = ()
    unused_top3_masked: tuple[str, ...] = ()

    @property
    def index(self) -> int:
        return self.repaired.index

    @property
    def text(self) -> str:
        return self.repaired.text

    def summary(self) -> dict[str, Any]:
        """Compact per-candidate summary for the diagnostic trace."""
        return {
            "index": self.index,
            "score": self.score,
            "reasons": list(self.reasons),
            "disqualified": self.disqualified,
            "preference_penalty": self.preference_penalty,
            "density_a": self.density_a,
            "did_repair": self.repaired.did_repair,
            "length": len(self.text),
        }


class RescueStatus(str, Enum):
    """Outcome of the single rescue attempt."""

    NOT_TRIGGERED = "not_triggered"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class RescueOutcome:
    """Rescue metadata for one selection."""

    attempted: bool = False
    outcome: RescueStatus = RescueStatus.NOT_TRIGGERED
    trigger_reason: str | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "attempted": self.attempted,
            "outcome": self.outcome.value,
            "trigger_reason": self.trigger_reason,
            "error": self.error,
        }


@dataclass(frozen=True)
class SelectionResult:
    """Ordered candidates, the winner and rescue metadata."""

    ordered: tuple[ScoredCandidate, ...]
    winner: ScoredCandidate
    rescue: RescueOutcome = field(default_factory=RescueOutcome)
    failed_attempts: tuple[Candidate, ...] = ()

    def to_trace(self) -> dict[str, Any]:
        return {
            "selected": {
                "index": self.winner.index,
                "score": self.winner.score,
                "reasons": list(self.winner.reasons),
                "facts": self.winner.facts.to_dict(),
            },
            "candidates": [c.summary() for c in self.ordered],
            "failed_attempts": [c.summary() for c in self.failed_attempts],
            "rescue": self.rescue.to_dict(),
        }
