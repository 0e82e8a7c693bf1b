"""Services layer - Business logic and orchestration.

Services implement the writer quality-control pipeline. They contain no
direct external API access - that's delegated to integrations.
"""

from copywriter.services.candidates import (
    Candidate,
    RepairedCandidate,
    RescueOutcome,
    RescueStatus,
    ScoredCandidate,
    ScoreFacts,
    SelectionResult,
)
from copywriter.services.density import (
    DensityConfig,
    DensityResult,
    build_input_set,
    compute_density_a,
    compute_used_set,
    evaluate_density_a,
    mask_for_log,
)
from copywriter.services.generation import generate_candidates
from copywriter.services.normalizer import (
    InputNormalizationError,
    NormalizedInput,
    normalize_input,
)
from copywriter.services.safety_repair import apply_safety_repair
from copywriter.services.scoring import score_candidate
from copywriter.services.scoring_rules import GRAMMAR_RULES, GrammarRule, ViolationKind
from copywriter.services.selection import (
    CandidateSelector,
    choose_best_candidate,
    density_threshold,
    order_candidates,
)
from copywriter.services.text_repair import (
    enforce_audience,
    repair_bullets,
    repair_text,
)
from copywriter.services.writer_errors import (
    ContentEmptyError,
    GenerationFailedError,
    WriterInternalError,
    WriterPipelineError,
)
from copywriter.services.writer_pipeline import (
    WriterMeta,
    WriterPipeline,
    WriterResult,
)

__all__ = [
    # Candidates
    "Candidate",
    "RepairedCandidate",
    "RescueOutcome",
    "RescueStatus",
    "ScoredCandidate",
    "ScoreFacts",
    "SelectionResult",
    # Density
    "DensityConfig",
    "DensityResult",
    "build_input_set",
    "compute_density_a",
    "compute_used_set",
    "evaluate_density_a",
    "mask_for_log",
    # Generation
    "generate_candidates",
    # Normalizer
    "InputNormalizationError",
    "NormalizedInput",
    "normalize_input",
    # Repair
    "apply_safety_repair",
    "enforce_audience",
    "repair_bullets",
    "repair_text",
    # Scoring
    "GRAMMAR_RULES",
    "GrammarRule",
    "ViolationKind",
    "score_candidate",
    # Selection
    "CandidateSelector",
    "choose_best_candidate",
    "density_threshold",
    "order_candidates",
    # Pipeline
    "ContentEmptyError",
    "GenerationFailedError",
    "WriterInternalError",
    "WriterMeta",
    "WriterPipeline",
    "WriterPipelineError",
    "WriterResult",
]
