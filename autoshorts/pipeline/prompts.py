"""
System instructions and prompt templates for the planning stages.
"""
import json
from typing import Any, Iterable

from pydantic import BaseModel


TREND_EXTRACTOR_INSTRUCTION = """You are the Trend Signal Extractor.
You analyze raw short-form video performance data and extract statistical trend signals.
Count how often each of the following appears across the dataset:
- Action verbs (e.g. crushing, cooking, reacting)
- Subject types (e.g. human, dog, machine)
- Object types (e.g. diamond, steak, homework)
- Structure types (e.g. experiment, skit, POV)
- Algorithm signals (hashtags and keywords of fast-growing videos)
Counts are non-negative integers. Use lowercase keys."""


CANDIDATE_GENERATOR_INSTRUCTION = """You are the Candidate Theme Generator.
Based on the provided trend signals, propose new short-form video concepts.
Each concept combines a subject, an action verb, an object and a structure type,
and lists the algorithm signals it rides on. Give every concept a short unique id.
Be creative but grounded in the data provided."""


WEIGHT_ENGINE_INSTRUCTION = """You are the Candidate Weight Engine.
You receive candidate themes and the channel context.
Score every candidate on three independent axes, each from 0 to 10:
1. virality - broad appeal and shareability
2. feasibility - how easily a generative video model can produce it
3. trend_alignment - fit with the current signals and the channel niche
Return one score entry per candidate id, with a one-sentence rationale."""


PROMPT_COMPOSER_INSTRUCTION = """You are the Prompt Composer.
You receive the SELECTED candidate theme.
Write a detailed production prompt for a vertical 9:16 generative video
(subject, action, camera, lighting, pacing), a catchy title and a description
with relevant hashtags including #Shorts."""


SEGMENT_CONTINUITY_NOTE = (
    "This is part {part} of {total} of one continuous video. "
    "Keep subject, wardrobe, setting and lighting identical across parts; "
    "continue the action where the previous part ended."
)


def to_json(data: Any) -> str:
    """Pretty JSON for embedding models or plain values into prompts."""
    if isinstance(data, BaseModel):
        return data.model_dump_json(indent=2, exclude_none=True)
    if isinstance(data, (list, tuple)):
        return json.dumps(
            [d.model_dump(mode="json", exclude_none=True) if isinstance(d, BaseModel) else d for d in data],
            indent=2,
            ensure_ascii=False,
        )
    return json.dumps(data, indent=2, ensure_ascii=False)


def build_extraction_prompt(records: Iterable[Any]) -> str:
    return (
        "Analyze the following short-form video dataset:\n"
        f"{to_json(list(records))}\n\n"
        "Return the frequency maps for action verbs, subject types, object types, "
        "structure types and algorithm signals."
    )


def build_candidate_prompt(signals: Any, count: int, language: str) -> str:
    return (
        "Using these trend signals:\n"
        f"{to_json(signals)}\n\n"
        f"Generate {count} potential viral short-form video concepts. "
        f"Write human-readable fields in language '{language}'."
    )


def build_scoring_prompt(candidates: Iterable[Any], channel_state: Any) -> str:
    return (
        "Channel context:\n"
        f"{to_json(channel_state)}\n\n"
        "Candidates to evaluate:\n"
        f"{to_json(list(candidates))}\n\n"
        "Score every candidate on virality, feasibility and trend_alignment (0-10 each)."
    )


def build_composer_prompt(candidate: Any, language: str) -> str:
    return (
        "Create production assets for this selected candidate:\n"
        f"{to_json(candidate)}\n\n"
        f"Title and description must be written in language '{language}'."
    )


def build_segment_prompt(prompt: str, part: int, total: int) -> str:
    if total <= 1:
        return prompt
    return f"{prompt}\n\n{SEGMENT_CONTINUITY_NOTE.format(part=part, total=total)}"
