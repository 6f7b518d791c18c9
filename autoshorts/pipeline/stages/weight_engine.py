"""
Weight engine stage - scores candidates and selects exactly one winner.

The model only supplies raw per-axis scores. Clamping, totals and the
selection itself are computed here, so for a fixed set of axis scores
the outcome is deterministic.

Tie-break: when several candidates share the maximum total, the one that
comes first in input order wins.
"""
from dataclasses import dataclass
from typing import Dict, List, Optional

from pydantic import BaseModel

from autoshorts.core.errors import GenerationError, InvalidInputError
from autoshorts.core.logging import get_logger
from autoshorts.llm.structured import StructuredGenerator
from autoshorts.pipeline.models import (
    SCORE_AXIS_MAX,
    SCORE_AXIS_MIN,
    CandidateTheme,
    ChannelState,
    ScoredCandidateBatch,
    ScoringBreakdown,
)
from autoshorts.pipeline.prompts import WEIGHT_ENGINE_INSTRUCTION, build_scoring_prompt
from autoshorts.pipeline.stages.base import Stage

logger = get_logger("stages.weight_engine")


@dataclass
class WeightEngineInput:
    candidates: List[CandidateTheme]
    channel_state: ChannelState


class CandidateScore(BaseModel):
    """Raw axis scores for one candidate as returned by the model."""
    id: str
    virality: float
    feasibility: float
    trend_alignment: float
    rationale: Optional[str] = None


def clamp_axis(value: float) -> float:
    return max(SCORE_AXIS_MIN, min(SCORE_AXIS_MAX, float(value)))


def to_breakdown(score: CandidateScore) -> ScoringBreakdown:
    return ScoringBreakdown(
        virality=clamp_axis(score.virality),
        feasibility=clamp_axis(score.feasibility),
        trend_alignment=clamp_axis(score.trend_alignment),
    )


def _check_unique_ids(candidates: List[CandidateTheme]) -> None:
    seen = set()
    for candidate in candidates:
        if candidate.id in seen:
            raise InvalidInputError(f"Duplicate candidate id '{candidate.id}' in scoring input.")
        seen.add(candidate.id)


def select_winner(
    candidates: List[CandidateTheme],
    scores: Dict[str, ScoringBreakdown],
) -> ScoredCandidateBatch:
    """
    Apply scores and mark the single best candidate as selected.

    Pure: the input candidates are not modified. Output order equals
    input order. Ties go to the earliest candidate.

    Raises:
        InvalidInputError: if candidates is empty or ids repeat
        GenerationError: if a candidate has no score
    """
    if not candidates:
        raise InvalidInputError("Cannot score an empty candidate list.")
    _check_unique_ids(candidates)

    scored: List[CandidateTheme] = []
    for candidate in candidates:
        breakdown = scores.get(candidate.id)
        if breakdown is None:
            raise GenerationError(f"No score returned for candidate '{candidate.id}'")
        scored.append(candidate.model_copy(update={
            "scoring_breakdown": breakdown,
            "total_score": round(breakdown.total, 4),
            "selected": False,
        }, deep=True))

    winner_index = 0
    for index, candidate in enumerate(scored):
        # strict > keeps the earliest candidate on ties
        if candidate.total_score > scored[winner_index].total_score:
            winner_index = index
    scored[winner_index] = scored[winner_index].model_copy(update={"selected": True})

    return ScoredCandidateBatch(candidates=scored)


class WeightEngine(Stage[WeightEngineInput, ScoredCandidateBatch]):
    """Scores candidates on virality, feasibility and trend alignment."""

    def __init__(self, generator: StructuredGenerator):
        self._generator = generator

    @property
    def stage_type(self) -> str:
        return "weight_engine"

    @property
    def description(self) -> str:
        return "Scores candidates on three axes and selects the winner."

    async def score(self, candidates: List[CandidateTheme], channel_state: ChannelState) -> ScoredCandidateBatch:
        return await self.run(WeightEngineInput(candidates=candidates, channel_state=channel_state))

    async def run(self, data: WeightEngineInput) -> ScoredCandidateBatch:
        # checked before any generation call
        if not data.candidates:
            raise InvalidInputError("Cannot score an empty candidate list.")
        _check_unique_ids(data.candidates)

        raw_scores = await self._generator.generate(
            build_scoring_prompt(data.candidates, data.channel_state),
            WEIGHT_ENGINE_INSTRUCTION,
            List[CandidateScore],
        )

        scores: Dict[str, ScoringBreakdown] = {}
        for raw in raw_scores:
            if raw.id in scores:
                logger.warning(f"Duplicate score for candidate '{raw.id}' ignored")
                continue
            scores[raw.id] = to_breakdown(raw)

        batch = select_winner(data.candidates, scores)
        winner = batch.winner
        logger.info(
            f"Scored {len(batch.candidates)} candidates; winner '{winner.id}' "
            f"with total {winner.total_score}"
        )
        return batch
