"""
Tests for signal extraction, candidate generation and prompt composition.
"""
import asyncio

import pytest

from autoshorts.core.errors import GenerationError, InvalidInputError, PreconditionViolationError
from autoshorts.pipeline.mock_data import get_mock_records
from autoshorts.pipeline.models import TrendSignals
from autoshorts.pipeline.stages.candidate_generator import CandidateGenerator
from autoshorts.pipeline.stages.prompt_composer import PromptComposer
from autoshorts.pipeline.stages.signal_extractor import SignalExtractor


class TestSignalExtractor:

    def test_extracts_signals(self, scripted_generator, fakes):
        generator, llm = scripted_generator([fakes.SIGNALS_REPLY])

        signals = asyncio.run(SignalExtractor(generator).run(get_mock_records()))

        assert signals.subject_type_frequency["human"] == 3
        assert "hydraulic press" in llm.calls[0]["prompt"]
        assert llm.calls[0]["json_mode"] is True

    def test_empty_records_rejected(self, scripted_generator):
        generator, llm = scripted_generator([])
        with pytest.raises(InvalidInputError):
            asyncio.run(SignalExtractor(generator).run([]))
        assert llm.calls == []

    def test_negative_counts_rejected(self, scripted_generator):
        generator, _ = scripted_generator([{"action_verb_frequency": {"crushing": -1}}])
        with pytest.raises(GenerationError):
            asyncio.run(SignalExtractor(generator).run(get_mock_records()))

    def test_all_empty_maps_rejected(self, scripted_generator):
        generator, _ = scripted_generator([{}])
        with pytest.raises(GenerationError, match="no signals"):
            asyncio.run(SignalExtractor(generator).run(get_mock_records()))


class TestCandidateGenerator:

    def test_generates_unscored_candidates(self, scripted_generator, fakes):
        generator, llm = scripted_generator([fakes.CANDIDATES_REPLY])
        stage = CandidateGenerator(generator, count=3, language="en")

        candidates = asyncio.run(stage.run(TrendSignals(**fakes.SIGNALS_REPLY)))

        assert [c.id for c in candidates] == ["c1", "c2", "c3"]
        assert all(not c.selected for c in candidates)
        assert all(c.total_score == 0 for c in candidates)
        assert "Generate 3" in llm.calls[0]["prompt"]

    def test_model_cannot_preselect(self, scripted_generator):
        reply = {"items": [{"id": "a", "subject_type": "cat", "action_verb": "jumping",
                            "object_type": "box", "structure_type": "fail",
                            "selected": True, "total_score": 30}]}
        generator, _ = scripted_generator([reply])

        candidates = asyncio.run(CandidateGenerator(generator).run(TrendSignals()))

        assert candidates[0].selected is False
        assert candidates[0].total_score == 0

    def test_missing_and_duplicate_ids_are_reassigned(self, scripted_generator):
        base = {"subject_type": "cat", "action_verb": "jumping", "object_type": "box", "structure_type": "fail"}
        reply = {"items": [dict(base, id="same"), dict(base, id="same"), dict(base)]}
        generator, _ = scripted_generator([reply])

        candidates = asyncio.run(CandidateGenerator(generator).run(TrendSignals()))

        ids = [c.id for c in candidates]
        assert ids == ["same", "cand_2", "cand_3"]
        assert len(set(ids)) == len(ids)

    def test_empty_reply_raises(self, scripted_generator):
        generator, _ = scripted_generator([{"items": []}])
        with pytest.raises(GenerationError):
            asyncio.run(CandidateGenerator(generator).run(TrendSignals()))


class TestPromptComposer:

    def test_unselected_candidate_rejected(self, scripted_generator, selected_candidate):
        generator, llm = scripted_generator([])
        candidate = selected_candidate.model_copy(update={"selected": False})

        with pytest.raises(PreconditionViolationError):
            asyncio.run(PromptComposer(generator).compose(candidate))

        assert llm.calls == []

    def test_selected_candidate_composed(self, scripted_generator, selected_candidate, fakes):
        generator, _ = scripted_generator([fakes.COMPOSER_REPLY])

        output = asyncio.run(PromptComposer(generator).compose(selected_candidate))

        assert output.prompt
        assert output.title_template
        assert output.description_template
        assert output.candidate_id == "c1"
        assert output.candidate_reference.selected is True

    def test_reference_is_a_copy(self, scripted_generator, selected_candidate, fakes):
        generator, _ = scripted_generator([fakes.COMPOSER_REPLY])
        output = asyncio.run(PromptComposer(generator).compose(selected_candidate))
        assert output.candidate_reference is not selected_candidate
        assert output.candidate_reference == selected_candidate

    @pytest.mark.parametrize("field", ["prompt", "title_template", "description_template"])
    def test_blank_field_rejected(self, scripted_generator, selected_candidate, fakes, field):
        reply = dict(fakes.COMPOSER_REPLY)
        reply[field] = "   "
        generator, _ = scripted_generator([reply])

        with pytest.raises(GenerationError, match=field):
            asyncio.run(PromptComposer(generator).compose(selected_candidate))
