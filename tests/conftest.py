"""
Shared fakes and fixtures.

The fakes stand in for the network collaborators (text generation,
video backend, video platform) so stages and the orchestrator run
without any external service.
"""
import json
from types import SimpleNamespace
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import pytest

from autoshorts.core.config import Settings
from autoshorts.llm.base import LLMAdapter, LLMResponse
from autoshorts.llm.structured import StructuredGenerator
from autoshorts.pipeline.models import (
    CandidateTheme,
    ChannelConfig,
    PlatformCredentials,
    PromptOutput,
    VideoAsset,
)
from autoshorts.platforms.base import PlatformAPIError, PublishRequest, RemoteVideo, VideoPlatformClient
from autoshorts.video.base import VideoBackend, VideoJob, VideoJobStatus


# ===== FAKE COLLABORATORS =====

class ScriptedLLM(LLMAdapter):
    """Returns queued replies in order; an Exception in the queue is raised."""

    def __init__(self, replies: Optional[List[Any]] = None):
        self.replies = list(replies or [])
        self.calls: List[Dict[str, Any]] = []

    @property
    def provider_name(self) -> str:
        return "scripted"

    @property
    def model_name(self) -> str:
        return "scripted-1"

    async def generate(self, prompt, system_prompt=None, max_tokens=2000, temperature=0.2, json_mode=False, **kwargs):
        self.calls.append({"prompt": prompt, "system_prompt": system_prompt, "json_mode": json_mode})
        if not self.replies:
            raise AssertionError("ScriptedLLM ran out of replies")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        if not isinstance(reply, str):
            reply = json.dumps(reply)
        return LLMResponse(content=reply, model=self.model_name, provider=self.provider_name)

    def is_available(self) -> bool:
        return True


class FakeVideoBackend(VideoBackend):
    """Finishes each job after `polls_until_done` polls."""

    def __init__(self, polls_until_done: int = 1, payload: bytes = b"fake-mp4-bytes"):
        self.polls_until_done = polls_until_done
        self.payload = payload
        self.submitted: List[str] = []
        self.poll_count = 0
        self.downloads = 0
        self._polls: Dict[str, int] = {}

    @property
    def model_name(self) -> str:
        return "fake-video"

    async def submit_video_job(self, prompt: str, options: Dict[str, Any]) -> VideoJob:
        self.submitted.append(prompt)
        job_id = f"operations/job-{len(self.submitted)}"
        self._polls[job_id] = 0
        return VideoJob(job_id=job_id, prompt=prompt, options=dict(options))

    async def poll_video_job(self, job: VideoJob) -> VideoJobStatus:
        self.poll_count += 1
        self._polls[job.job_id] += 1
        if self._polls[job.job_id] >= self.polls_until_done:
            return VideoJobStatus(done=True, result_uri=f"https://files.example/{job.job_id}.mp4")
        return VideoJobStatus(done=False)

    async def download_video(self, result_uri: str) -> bytes:
        self.downloads += 1
        return self.payload


class FakePlatform(VideoPlatformClient):
    """Records uploads; optionally fails or returns trend items."""

    def __init__(self, trend_items: Optional[List[Dict[str, Any]]] = None, upload_error: Optional[Exception] = None):
        self.trend_items = trend_items or []
        self.upload_error = upload_error
        self.search_calls: List[Dict[str, Any]] = []
        self.uploads: List[Dict[str, Any]] = []

    @property
    def platform_name(self) -> str:
        return "youtube"

    async def search_trending(self, query, region_code, max_results, credentials):
        self.search_calls.append({"query": query, "region_code": region_code, "max_results": max_results})
        if isinstance(self.trend_items, Exception):
            raise self.trend_items
        return self.trend_items

    async def upload(self, payload: bytes, request: PublishRequest, credentials: PlatformCredentials) -> RemoteVideo:
        self.uploads.append({"payload": payload, "request": request, "credentials": credentials})
        if self.upload_error is not None:
            raise self.upload_error
        video_id = f"yt_{len(self.uploads)}"
        return RemoteVideo(remote_id=video_id, remote_url=f"https://youtube.com/shorts/{video_id}")


# ===== CANNED GENERATION REPLIES =====

SIGNALS_REPLY = {
    "action_verb_frequency": {"crushing": 1, "cooking": 1, "reacting": 1, "forgetting": 1},
    "subject_type_frequency": {"human": 3, "dog": 1},
    "object_type_frequency": {"diamond": 1, "steak": 1, "homework": 1, "wall": 1},
    "structure_type_frequency": {"experiment": 2, "pov": 1, "reaction": 1},
    "algorithm_signal_frequency": {"#satisfying": 1, "#lifehack": 1, "#funny": 1},
}

CANDIDATES_REPLY = {
    "items": [
        {"id": "c1", "subject_type": "human", "action_verb": "crushing", "object_type": "gummy bear",
         "structure_type": "experiment", "algorithm_signals": ["#satisfying"]},
        {"id": "c2", "subject_type": "dog", "action_verb": "reacting", "object_type": "mirror",
         "structure_type": "reaction", "algorithm_signals": ["#funny"]},
        {"id": "c3", "subject_type": "human", "action_verb": "cooking", "object_type": "egg",
         "structure_type": "experiment", "algorithm_signals": ["#lifehack"]},
    ]
}

SCORES_REPLY = {
    "items": [
        {"id": "c1", "virality": 9, "feasibility": 8, "trend_alignment": 9},
        {"id": "c2", "virality": 7, "feasibility": 9, "trend_alignment": 6},
        {"id": "c3", "virality": 6, "feasibility": 7, "trend_alignment": 8},
    ]
}

COMPOSER_REPLY = {
    "prompt": "Vertical 9:16 close-up of a hydraulic press slowly crushing a giant gummy bear, studio lighting.",
    "title_template": "Hydraulic Press vs Giant Gummy Bear",
    "description_template": "Oddly satisfying. #Shorts #satisfying #science",
}


def pipeline_replies() -> List[Any]:
    """Replies for one full run, in stage order."""
    return [SIGNALS_REPLY, CANDIDATES_REPLY, SCORES_REPLY, COMPOSER_REPLY]


# ===== FIXTURES =====

@pytest.fixture
def settings(tmp_path):
    return Settings(
        _env_file=None,
        openai_api_key="test-key",
        video_api_key="test-key",
        temp_dir=str(tmp_path / "work"),
        render_poll_interval_sec=0.0,
        render_max_poll_attempts=3,
    )


@pytest.fixture
def fixed_clock():
    """A clock pinned to mid-2024."""
    return lambda: datetime(2024, 6, 1, 12, 0, tzinfo=timezone.utc)


@pytest.fixture
def credentials():
    return PlatformCredentials(access_token="ya29.test-token")


@pytest.fixture
def channel(credentials):
    return ChannelConfig(
        id="chan-1",
        name="Lab Experiments",
        niche="Science experiments",
        search_keywords=["hydraulic press"],
        region_code="US",
        auth=credentials,
    )


@pytest.fixture
def selected_candidate():
    return CandidateTheme(
        id="c1",
        subject_type="human",
        action_verb="crushing",
        object_type="gummy bear",
        structure_type="experiment",
        algorithm_signals=["#satisfying"],
        total_score=26.0,
        selected=True,
    )


@pytest.fixture
def prompt_output(selected_candidate):
    return PromptOutput(
        candidate_id=selected_candidate.id,
        candidate_reference=selected_candidate,
        prompt=COMPOSER_REPLY["prompt"],
        title_template=COMPOSER_REPLY["title_template"],
        description_template=COMPOSER_REPLY["description_template"],
    )


@pytest.fixture
def video_asset():
    return VideoAsset(candidate_id="c1", payload=b"rendered-video")


@pytest.fixture
def scripted_generator():
    """Factory: StructuredGenerator over a ScriptedLLM with the given replies."""
    def make(replies):
        llm = ScriptedLLM(replies)
        return StructuredGenerator(llm), llm
    return make


@pytest.fixture
def fake_platform():
    return FakePlatform()


@pytest.fixture
def fake_video_backend():
    return FakeVideoBackend()


@pytest.fixture
def fakes():
    """Fake classes and canned replies for tests that need custom instances."""
    return SimpleNamespace(
        ScriptedLLM=ScriptedLLM,
        FakeVideoBackend=FakeVideoBackend,
        FakePlatform=FakePlatform,
        PlatformAPIError=PlatformAPIError,
        pipeline_replies=pipeline_replies,
        SIGNALS_REPLY=SIGNALS_REPLY,
        CANDIDATES_REPLY=CANDIDATES_REPLY,
        SCORES_REPLY=SCORES_REPLY,
        COMPOSER_REPLY=COMPOSER_REPLY,
    )
