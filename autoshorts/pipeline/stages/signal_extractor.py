"""
Signal extractor stage - performance records to trend frequency maps.
"""
from typing import List

from autoshorts.core.errors import GenerationError, InvalidInputError
from autoshorts.core.logging import get_logger
from autoshorts.llm.structured import StructuredGenerator
from autoshorts.pipeline.models import PerformanceRecord, TrendSignals
from autoshorts.pipeline.prompts import TREND_EXTRACTOR_INSTRUCTION, build_extraction_prompt
from autoshorts.pipeline.stages.base import Stage

logger = get_logger("stages.signal_extractor")


class SignalExtractor(Stage[List[PerformanceRecord], TrendSignals]):
    """Reduces raw records into frequency-based trend signals."""

    def __init__(self, generator: StructuredGenerator):
        self._generator = generator

    @property
    def stage_type(self) -> str:
        return "signal_extractor"

    @property
    def description(self) -> str:
        return "Extracts frequency maps of verbs, subjects, objects, structures and signals."

    async def run(self, data: List[PerformanceRecord]) -> TrendSignals:
        if not data:
            raise InvalidInputError("Performance record list cannot be empty.")

        signals = await self._generator.generate(
            build_extraction_prompt(data),
            TREND_EXTRACTOR_INSTRUCTION,
            TrendSignals,
        )
        if signals.is_empty():
            raise GenerationError("Trend extraction returned no signals")

        logger.info(
            f"Extracted signals from {len(data)} records: "
            f"{len(signals.action_verb_frequency)} verbs, "
            f"{len(signals.algorithm_signal_frequency)} algorithm signals"
        )
        return signals
