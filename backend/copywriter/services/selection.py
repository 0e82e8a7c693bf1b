"""Candidate selection with a single bounded rescue attempt.

Ordering key (first element wins):
1. Non-empty text before empty text
2. Ascending L3 score
3. Ascending preference penalty
4. Descending densityA
5. Ascending text length

Disqualified candidates are never removed from the pool; their
disqualifying violations only add weight to the score.

Rescue is requested at most once per selection, when:
- every candidate carries the lead_abstract violation, or
- the InputSet has 3 or 4 entries and the winner's densityA is below
  the threshold for that size, or
- rescue_on_all_disqualified is enabled and every candidate is
  disqualified.
A failed rescue is recorded and the original pool is used unchanged.
"""

from copywriter.core.config import WriterPipelineConfig
from copywriter.core.logging import get_logger, writer_logger
from copywriter.integrations.openai import GenerationClient, GenerationRequest
from copywriter.services.candidates import (
    Candidate,
    RepairedCandidate,
    RescueOutcome,
    RescueStatus,
    ScoredCandidate,
    SelectionResult,
)
from copywriter.services.density import DensityConfig
from copywriter.services.generation import generate_candidates, successful
from copywriter.services.normalizer import NormalizedInput
from copywriter.services.scoring import score_candidate
from copywriter.services.scoring_rules import ViolationKind
from copywriter.services.text_repair import repair_text
from copywriter.services.writer_errors import ContentEmptyError, GenerationFailedError

logger = get_logger(__name__)

SHORT_AUDIENCE_MAX_LENGTH = 8
RESCUE_COUNT = 1

TRIGGER_ALL_LEAD_ABSTRACT = "all_lead_abstract"
TRIGGER_LOW_DENSITY = "low_density"
TRIGGER_ALL_DISQUALIFIED = "all_disqualified"


def density_threshold(input_count: int, audience: str) -> float:
    """Minimum acceptable densityA for an InputSet of the given size."""
    if input_count == 4:
        if len((audience or "").strip()) <= SHORT_AUDIENCE_MAX_LENGTH:
            return 0.75
        return 1.0
    if input_count == 3:
        return 1.0
    return 0.34


def repair_candidate(candidate: Candidate, audience: str) -> RepairedCandidate:
    repaired = repair_text(candidate.text, audience)
    return RepairedCandidate(
        source=candidate,
        text=repaired,
        did_repair=repaired != candidate.text,
    )


def score_pool(
    candidates: tuple[Candidate, ...],
    data: NormalizedInput,
    density_config: DensityConfig | None = None,
) -> tuple[ScoredCandidate, ...]:
    """Repair and score every successful candidate from its raw text."""
    return tuple(
        score_candidate(repair_candidate(c, data.audience), data, density_config)
        for c in successful(candidates)
    )


def ordering_key(candidate: ScoredCandidate) -> tuple[bool, int, int, float, int]:
    return (
        not candidate.text.strip(),
        candidate.score,
        candidate.preference_penalty,
        -(candidate.density_a or 0.0),
        len(candidate.text),
    )


def order_candidates(
    scored: tuple[ScoredCandidate, ...],
) -> tuple[ScoredCandidate, ...]:
    """Stable sort; ties keep generation order."""
    return tuple(sorted(scored, key=ordering_key))


def choose_best_candidate(scored: tuple[ScoredCandidate, ...]) -> ScoredCandidate:
    """Winner of a non-empty pool. Never excludes disqualified candidates."""
    if not scored:
        raise ValueError("Cannot choose a winner from an empty pool")
    return order_candidates(scored)[0]


def rescue_trigger(
    ordered: tuple[ScoredCandidate, ...],
    audience: str,
    config: WriterPipelineConfig,
) -> str | None:
    """Reason the pool needs a rescue attempt, or None."""
    if not ordered:
        return None
    if all(ViolationKind.LEAD_ABSTRACT.code in c.reasons for c in ordered):
        return TRIGGER_ALL_LEAD_ABSTRACT

    winner = ordered[0]
    if winner.input_count in (3, 4) and winner.density_a is not None:
        if winner.density_a < density_threshold(winner.input_count, audience):
            return TRIGGER_LOW_DENSITY

    if config.rescue_on_all_disqualified and all(c.disqualified for c in ordered):
        return TRIGGER_ALL_DISQUALIFIED
    return None


class CandidateSelector:
    """Orders scored candidates and runs the single rescue round."""

    def __init__(
        self,
        client: GenerationClient,
        config: WriterPipelineConfig | None = None,
    ) -> None:
        self._client = client
        self._config = config or WriterPipelineConfig()
        self._density_config = DensityConfig(
            min_consecutive_match=self._config.min_consecutive_match,
            allowed_char_ratio=self._config.allowed_char_ratio,
            symbol_ratio=self._config.symbol_ratio,
        )

    @property
    def density_config(self) -> DensityConfig:
        return self._density_config

    async def _rescue(
        self,
        pool: tuple[Candidate, ...],
        request: GenerationRequest,
        correlation_id: str,
        reason: str,
    ) -> tuple[tuple[Candidate, ...], RescueOutcome]:
        writer_logger.rescue_triggered(correlation_id, reason)
        try:
            extra = await generate_candidates(
                self._client,
                request,
                count=RESCUE_COUNT,
                correlation_id=correlation_id,
                start_index=max((c.index for c in pool), default=0) + 1,
                round_name="rescue",
            )
        except GenerationFailedError as e:
            writer_logger.rescue_complete(correlation_id, RescueStatus.FAILED.value, e.message)
            return pool, RescueOutcome(
                attempted=True,
                outcome=RescueStatus.FAILED,
                trigger_reason=reason,
                error=e.message,
            )

        writer_logger.rescue_complete(correlation_id, RescueStatus.SUCCEEDED.value)
        return pool + extra, RescueOutcome(
            attempted=True,
            outcome=RescueStatus.SUCCEEDED,
            trigger_reason=reason,
        )

    async def select(
        self,
        candidates: tuple[Candidate, ...],
        data: NormalizedInput,
        request: GenerationRequest,
        correlation_id: str = "",
    ) -> SelectionResult:
        """Repair, score and order the pool; rescue at most once.

        Args:
            candidates: Every attempt from the initial round
            data: Normalized request
            request: Generation request reused for the rescue call
            correlation_id: Pipeline correlation ID for logs

        Returns:
            SelectionResult with the winner and rescue metadata

        Raises:
            ContentEmptyError: If the winner's repaired text is empty
        """
        pool = successful(candidates)
        failed = tuple(c for c in candidates if not c.success)

        ordered = order_candidates(score_pool(pool, data, self._density_config))
        rescue = RescueOutcome()

        reason = (
            rescue_trigger(ordered, data.audience, self._config)
            if self._config.rescue_enabled
            else None
        )
        if reason is not None:
            pool, rescue = await self._rescue(pool, request, correlation_id, reason)
            if rescue.outcome is RescueStatus.SUCCEEDED:
                ordered = order_candidates(score_pool(pool, data, self._density_config))

        if not ordered:
            raise ContentEmptyError(
                "No successful candidate to select from",
                correlation_id=correlation_id or None,
            )
        winner = ordered[0]
        if not winner.text.strip():
            raise ContentEmptyError(
                "Selected candidate is empty after repair",
                correlation_id=correlation_id or None,
            )

        writer_logger.selection_complete(
            correlation_id,
            winner.index,
            winner.score,
            list(winner.reasons),
            len(ordered),
            winner.density_a,
        )
        return SelectionResult(
            ordered=ordered,
            winner=winner,
            rescue=rescue,
            failed_attempts=failed,
        )
