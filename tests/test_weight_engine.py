"""
Tests for candidate scoring and winner selection.
"""
import asyncio

import pytest

from autoshorts.core.errors import GenerationError, InvalidInputError
from autoshorts.pipeline.models import CandidateTheme, ChannelState, ScoringBreakdown
from autoshorts.pipeline.stages.weight_engine import WeightEngine, clamp_axis, select_winner


def make_candidate(candidate_id: str, **overrides) -> CandidateTheme:
    data = {
        "id": candidate_id,
        "subject_type": "human",
        "action_verb": "crushing",
        "object_type": "can",
        "structure_type": "experiment",
    }
    data.update(overrides)
    return CandidateTheme(**data)


def breakdown(v: float, f: float, t: float) -> ScoringBreakdown:
    return ScoringBreakdown(virality=v, feasibility=f, trend_alignment=t)


class TestSelectWinner:
    """Pure selection over precomputed axis scores."""

    def test_exactly_one_selected_with_max_score(self):
        candidates = [make_candidate("a"), make_candidate("b"), make_candidate("c")]
        scores = {"a": breakdown(5, 5, 5), "b": breakdown(9, 9, 9), "c": breakdown(1, 2, 3)}

        batch = select_winner(candidates, scores)

        selected = [c for c in batch.candidates if c.selected]
        assert len(selected) == 1
        assert selected[0].id == "b"
        assert selected[0].total_score == max(c.total_score for c in batch.candidates)

    def test_total_is_sum_of_axes(self):
        batch = select_winner([make_candidate("a")], {"a": breakdown(7, 8, 6.5)})
        assert batch.candidates[0].total_score == 21.5
        assert batch.candidates[0].scoring_breakdown.virality == 7

    def test_tie_goes_to_first_in_input_order(self):
        candidates = [make_candidate("x"), make_candidate("y"), make_candidate("z")]
        scores = {"x": breakdown(1, 1, 1), "y": breakdown(8, 8, 8), "z": breakdown(8, 8, 8)}

        batch = select_winner(candidates, scores)

        assert batch.winner.id == "y"
        assert not batch.candidates[2].selected

    def test_all_equal_selects_first(self):
        candidates = [make_candidate("a"), make_candidate("b")]
        scores = {"a": breakdown(5, 5, 5), "b": breakdown(5, 5, 5)}
        assert select_winner(candidates, scores).winner.id == "a"

    def test_preserves_input_order(self):
        candidates = [make_candidate("low"), make_candidate("high")]
        scores = {"low": breakdown(1, 1, 1), "high": breakdown(9, 9, 9)}
        batch = select_winner(candidates, scores)
        assert [c.id for c in batch.candidates] == ["low", "high"]

    def test_does_not_mutate_inputs(self):
        candidates = [make_candidate("a", selected=True, total_score=99), make_candidate("b")]
        scores = {"a": breakdown(1, 1, 1), "b": breakdown(2, 2, 2)}

        batch = select_winner(candidates, scores)

        assert candidates[0].selected is True
        assert candidates[0].total_score == 99
        assert candidates[1].selected is False
        assert batch.winner.id == "b"
        assert not batch.candidates[0].selected

    def test_empty_list_raises_invalid_input(self):
        with pytest.raises(InvalidInputError, match="empty"):
            select_winner([], {})

    def test_missing_score_raises(self):
        with pytest.raises(GenerationError, match="b"):
            select_winner([make_candidate("a"), make_candidate("b")], {"a": breakdown(1, 1, 1)})

    def test_clamp_axis(self):
        assert clamp_axis(-3) == 0.0
        assert clamp_axis(14) == 10.0
        assert clamp_axis(6.5) == 6.5


class TestWeightEngine:
    """WeightEngine over a scripted generator."""

    def test_empty_candidates_fail_before_generation(self, scripted_generator):
        generator, llm = scripted_generator([])
        engine = WeightEngine(generator)

        with pytest.raises(InvalidInputError):
            asyncio.run(engine.score([], ChannelState()))

        assert llm.calls == []

    def test_duplicate_candidate_ids_fail_before_generation(self, scripted_generator, fakes):
        generator, llm = scripted_generator([fakes.SCORES_REPLY])
        engine = WeightEngine(generator)

        with pytest.raises(InvalidInputError, match="Duplicate candidate id 'c1'"):
            asyncio.run(engine.score([make_candidate("c1"), make_candidate("c1")], ChannelState()))

        assert llm.calls == []

    def test_scores_and_selects(self, scripted_generator, fakes):
        generator, llm = scripted_generator([fakes.SCORES_REPLY])
        engine = WeightEngine(generator)
        candidates = [make_candidate("c1"), make_candidate("c2"), make_candidate("c3")]

        batch = asyncio.run(engine.score(candidates, ChannelState(niche="Science")))

        assert batch.winner.id == "c1"
        assert batch.winner.total_score == 26
        assert [c.total_score for c in batch.candidates] == [26, 22, 21]
        assert len(llm.calls) == 1
        assert "Science" in llm.calls[0]["prompt"]

    def test_out_of_range_scores_are_clamped(self, scripted_generator):
        reply = {"items": [
            {"id": "a", "virality": 15, "feasibility": -2, "trend_alignment": 10},
            {"id": "b", "virality": 9, "feasibility": 9, "trend_alignment": 9},
        ]}
        generator, _ = scripted_generator([reply])
        engine = WeightEngine(generator)

        batch = asyncio.run(engine.score([make_candidate("a"), make_candidate("b")], ChannelState()))

        first = batch.candidates[0]
        assert first.scoring_breakdown.virality == 10
        assert first.scoring_breakdown.feasibility == 0
        assert first.total_score == 20
        assert batch.winner.id == "b"

    def test_unscored_candidate_raises_generation_error(self, scripted_generator):
        reply = {"items": [{"id": "a", "virality": 5, "feasibility": 5, "trend_alignment": 5}]}
        generator, _ = scripted_generator([reply])
        engine = WeightEngine(generator)

        with pytest.raises(GenerationError):
            asyncio.run(engine.score([make_candidate("a"), make_candidate("b")], ChannelState()))

    def test_duplicate_scores_keep_first(self, scripted_generator):
        reply = {"items": [
            {"id": "a", "virality": 1, "feasibility": 1, "trend_alignment": 1},
            {"id": "a", "virality": 10, "feasibility": 10, "trend_alignment": 10},
            {"id": "b", "virality": 2, "feasibility": 2, "trend_alignment": 2},
        ]}
        generator, _ = scripted_generator([reply])
        engine = WeightEngine(generator)

        batch = asyncio.run(engine.score([make_candidate("a"), make_candidate("b")], ChannelState()))

        assert batch.candidates[0].total_score == 3
        assert batch.winner.id == "b"
