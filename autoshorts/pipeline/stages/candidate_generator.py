"""
Candidate generator stage - trend signals to candidate content concepts.
"""
from typing import List, Optional

from pydantic import BaseModel, Field

from autoshorts.core.errors import GenerationError
from autoshorts.core.logging import get_logger
from autoshorts.llm.structured import StructuredGenerator
from autoshorts.pipeline.models import CandidateTheme, TrendSignals
from autoshorts.pipeline.prompts import CANDIDATE_GENERATOR_INSTRUCTION, build_candidate_prompt
from autoshorts.pipeline.stages.base import Stage

logger = get_logger("stages.candidate_generator")


class CandidateDraft(BaseModel):
    """Shape the model is asked to produce; scoring fields are ours to set."""
    id: str = ""
    subject_type: str
    action_verb: str
    object_type: str
    structure_type: str
    algorithm_signals: List[str] = Field(default_factory=list)
    rationale: Optional[str] = None


class CandidateGenerator(Stage[TrendSignals, List[CandidateTheme]]):
    """
    Expands signals into several candidate concepts.

    Every returned candidate is unscored and unselected. Missing or
    duplicate ids are replaced with positional ids (cand_1, cand_2, ...).
    """

    def __init__(self, generator: StructuredGenerator, count: int = 3, language: str = "en"):
        self._generator = generator
        self._count = count
        self._language = language

    @property
    def stage_type(self) -> str:
        return "candidate_generator"

    async def run(self, data: TrendSignals) -> List[CandidateTheme]:
        drafts = await self._generator.generate(
            build_candidate_prompt(data, self._count, self._language),
            CANDIDATE_GENERATOR_INSTRUCTION,
            List[CandidateDraft],
        )
        if not drafts:
            raise GenerationError("Candidate generation returned no candidates")

        seen = set()
        candidates = []
        for index, draft in enumerate(drafts, start=1):
            candidate_id = draft.id.strip()
            if not candidate_id or candidate_id in seen:
                candidate_id = f"cand_{index}"
                while candidate_id in seen:
                    candidate_id = f"{candidate_id}_{index}"
                logger.warning(f"Candidate {index} had a missing/duplicate id, assigned '{candidate_id}'")
            seen.add(candidate_id)
            candidates.append(CandidateTheme(
                id=candidate_id,
                subject_type=draft.subject_type,
                action_verb=draft.action_verb,
                object_type=draft.object_type,
                structure_type=draft.structure_type,
                algorithm_signals=draft.algorithm_signals,
                rationale=draft.rationale,
                total_score=0.0,
                selected=False,
            ))

        logger.info(f"Generated {len(candidates)} candidates: {[c.id for c in candidates]}")
        return candidates
