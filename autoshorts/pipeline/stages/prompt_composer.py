"""
Prompt composer stage - selected candidate to production prompt and metadata.
"""
from pydantic import BaseModel

from autoshorts.core.errors import GenerationError, PreconditionViolationError
from autoshorts.core.logging import get_logger
from autoshorts.llm.structured import StructuredGenerator
from autoshorts.pipeline.models import CandidateTheme, PromptOutput
from autoshorts.pipeline.prompts import PROMPT_COMPOSER_INSTRUCTION, build_composer_prompt
from autoshorts.pipeline.stages.base import Stage

logger = get_logger("stages.prompt_composer")


class PromptDraft(BaseModel):
    prompt: str = ""
    title_template: str = ""
    description_template: str = ""


class PromptComposer(Stage[CandidateTheme, PromptOutput]):
    """Only ever composes for the WeightEngine winner."""

    def __init__(self, generator: StructuredGenerator, language: str = "en"):
        self._generator = generator
        self._language = language

    @property
    def stage_type(self) -> str:
        return "prompt_composer"

    async def compose(self, selected: CandidateTheme) -> PromptOutput:
        return await self.run(selected)

    async def run(self, data: CandidateTheme) -> PromptOutput:
        if not data.selected:
            raise PreconditionViolationError(
                f"Candidate '{data.id}' is not selected; only the winner can be composed."
            )

        draft = await self._generator.generate(
            build_composer_prompt(data, self._language),
            PROMPT_COMPOSER_INSTRUCTION,
            PromptDraft,
        )

        missing = [
            name for name in ("prompt", "title_template", "description_template")
            if not getattr(draft, name).strip()
        ]
        if missing:
            raise GenerationError(f"Prompt composition returned empty fields: {', '.join(missing)}")

        output = PromptOutput(
            candidate_id=data.id,
            candidate_reference=data.model_copy(deep=True),
            prompt=draft.prompt.strip(),
            title_template=draft.title_template.strip(),
            description_template=draft.description_template.strip(),
        )
        logger.info(f"Composed prompt for '{data.id}': {output.title_template}")
        return output
