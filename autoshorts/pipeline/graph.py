"""
LangGraph pipeline orchestrator.

Graph structure:
  trend_source -> signal_extractor -> candidate_generator -> weight_engine
    -> winner_check -> prompt_composer -> video_renderer
    -> [segment_stitcher, only when several segments were rendered]
    -> upload_scheduler -> END

Every edge is conditional: a node that failed records `error` in the
state and the run routes straight to END. Each node appends exactly one
timestamped line to the log trail, whether it succeeded or failed.

Stage instances belong to one orchestrator; run_pipeline() builds a
fresh orchestrator per call so concurrent runs never share state.
"""
from datetime import datetime
from typing import Any, Awaitable, Callable, Dict, List, Optional, Tuple

from langchain_core.runnables import RunnableConfig
from langgraph.graph import END, StateGraph
from pydantic import BaseModel

from autoshorts.core.config import Settings, get_render_options, get_settings
from autoshorts.core.errors import NoWinnerSelectedError, StageFailedError
from autoshorts.core.logging import get_logger
from autoshorts.llm.factory import get_llm
from autoshorts.llm.structured import StructuredGenerator
from autoshorts.pipeline.models import ChannelConfig, PipelineResult
from autoshorts.pipeline.stages import (
    CandidateGenerator,
    PromptComposer,
    SegmentStitcher,
    SignalExtractor,
    TrendRequest,
    TrendSource,
    UploadRequest,
    UploadScheduler,
    VideoRenderer,
    WeightEngine,
    WeightEngineInput,
)
from autoshorts.pipeline.state import PipelineState
from autoshorts.platforms.youtube import YouTubeClient
from autoshorts.utils.datauri import encode_data_url
from autoshorts.utils.timing import TimingTracker
from autoshorts.video.veo_client import VeoVideoClient

logger = get_logger("graph")

StepResult = Tuple[Dict[str, Any], str]
Step = Callable[[PipelineState], Awaitable[StepResult]]

# node name -> label used in the log trail
NODE_LABELS = {
    "trend_source": "Trend scan",
    "signal_extractor": "Signal extraction",
    "candidate_generator": "Candidate generation",
    "weight_engine": "Scoring",
    "winner_check": "Winner check",
    "prompt_composer": "Prompt composition",
    "video_renderer": "Render",
    "segment_stitcher": "Stitch",
    "upload_scheduler": "Upload",
}


def _copy(value: Any) -> Any:
    """Hand a stage its own copy of an upstream output."""
    if value is None:
        return None
    if isinstance(value, BaseModel):
        return value.model_copy(deep=True)
    if isinstance(value, list):
        return [_copy(v) for v in value]
    return value


def route_on_error(state: PipelineState) -> str:
    return "stop" if state.get("error") else "continue"


def route_after_render(state: PipelineState) -> str:
    if state.get("error"):
        return "stop"
    if state.get("segments"):
        return "stitch"
    return "publish"


class PipelineOrchestrator:
    """Runs the stages in order and turns any failure into a PipelineResult."""

    def __init__(
        self,
        trend_source: TrendSource,
        signal_extractor: SignalExtractor,
        candidate_generator: CandidateGenerator,
        weight_engine: WeightEngine,
        prompt_composer: PromptComposer,
        video_renderer: VideoRenderer,
        upload_scheduler: UploadScheduler,
        segment_stitcher: Optional[SegmentStitcher] = None,
        max_segments: int = 4,
        resources: Optional[List[Any]] = None,
        clock: Callable[[], datetime] = datetime.now,
    ):
        self.trend_source = trend_source
        self.signal_extractor = signal_extractor
        self.candidate_generator = candidate_generator
        self.weight_engine = weight_engine
        self.prompt_composer = prompt_composer
        self.video_renderer = video_renderer
        self.upload_scheduler = upload_scheduler
        self.segment_stitcher = segment_stitcher
        self.max_segments = max_segments
        self._resources = list(resources or [])
        self._clock = clock
        self._graph = self._build_graph()

    # ===== LOG TRAIL =====

    def _line(self, message: str) -> str:
        return f"[{self._clock().strftime('%H:%M:%S')}] {message}"

    # ===== GRAPH =====

    def _node(self, name: str, step: Step):
        label = NODE_LABELS[name]

        async def node(state: PipelineState, config: RunnableConfig) -> Dict[str, Any]:
            tracker: Optional[TimingTracker] = (config or {}).get("configurable", {}).get("timing")
            if tracker:
                tracker.start(name)
            try:
                update, message = await step(state)
            except Exception as e:
                failure = StageFailedError(name, e)
                logger.error(str(failure))
                return {
                    "error": str(failure),
                    "error_type": failure.error_type,
                    "failed_stage": name,
                    "logs": [self._line(f"{label} failed: {e}")],
                }
            finally:
                if tracker:
                    tracker.end(name)
            update["logs"] = [self._line(f"{label}: {message}")]
            return update

        node.__name__ = name
        return node

    def _build_graph(self):
        workflow = StateGraph(PipelineState)

        stage_steps = [
            (self.trend_source, self._fetch_trends),
            (self.signal_extractor, self._extract_signals),
            (self.candidate_generator, self._generate_candidates),
            (self.weight_engine, self._score_candidates),
            (self.prompt_composer, self._compose_prompt),
            (self.video_renderer, self._render_video),
            (self.upload_scheduler, self._publish),
        ]
        for stage, step in stage_steps:
            workflow.add_node(stage.stage_type, self._node(stage.stage_type, step))

        # winner_check has no stage object; the stitcher may be None
        workflow.add_node("winner_check", self._node("winner_check", self._check_winner))
        workflow.add_node("segment_stitcher", self._node("segment_stitcher", self._stitch_segments))

        workflow.set_entry_point("trend_source")

        linear = [
            ("trend_source", "signal_extractor"),
            ("signal_extractor", "candidate_generator"),
            ("candidate_generator", "weight_engine"),
            ("weight_engine", "winner_check"),
            ("winner_check", "prompt_composer"),
            ("prompt_composer", "video_renderer"),
            ("segment_stitcher", "upload_scheduler"),
        ]
        for source, target in linear:
            workflow.add_conditional_edges(source, route_on_error, {"continue": target, "stop": END})

        workflow.add_conditional_edges(
            "video_renderer",
            route_after_render,
            {
                "stitch": "segment_stitcher",
                "publish": "upload_scheduler",
                "stop": END,
            }
        )
        workflow.add_edge("upload_scheduler", END)

        return workflow.compile()

    # ===== STEPS =====

    async def _fetch_trends(self, state: PipelineState) -> StepResult:
        batch = await self.trend_source.run(TrendRequest(
            channel=_copy(state["channel"]),
            force_mock=state.get("force_mock", False),
        ))
        note = f" ({batch.fallback_reason})" if batch.fallback_reason else ""
        return (
            {"records": batch.records, "trend_source": batch.source},
            f"{len(batch.records)} {batch.source} records{note}",
        )

    async def _extract_signals(self, state: PipelineState) -> StepResult:
        signals = await self.signal_extractor.run(_copy(state["records"]))
        return (
            {"signals": signals},
            f"{len(signals.action_verb_frequency)} verbs, "
            f"{len(signals.algorithm_signal_frequency)} algorithm signals",
        )

    async def _generate_candidates(self, state: PipelineState) -> StepResult:
        candidates = await self.candidate_generator.run(_copy(state["signals"]))
        return {"candidates": candidates}, f"{len(candidates)} candidates"

    async def _score_candidates(self, state: PipelineState) -> StepResult:
        batch = await self.weight_engine.run(WeightEngineInput(
            candidates=_copy(state["candidates"]),
            channel_state=state["channel"].resolved_channel_state(),
        ))
        totals = ", ".join(f"{c.id}={c.total_score:g}" for c in batch.candidates)
        return {"batch": batch}, f"scored {len(batch.candidates)} candidates ({totals})"

    async def _check_winner(self, state: PipelineState) -> StepResult:
        batch = state.get("batch")
        selected = [c for c in batch.candidates if c.selected] if batch else []
        if len(selected) != 1:
            raise NoWinnerSelectedError(
                f"Expected exactly one selected candidate, found {len(selected)}"
            )
        winner = selected[0]
        return {"winner": winner}, f"selected '{winner.id}' ({winner.total_score:g})"

    async def _compose_prompt(self, state: PipelineState) -> StepResult:
        prompt = await self.prompt_composer.run(_copy(state["winner"]))
        return {"prompt": prompt}, f"title '{prompt.title_template}'"

    async def _render_video(self, state: PipelineState) -> StepResult:
        prompt = _copy(state["prompt"])
        count = min(state["channel"].segments_per_video, self.max_segments)
        if count > 1 and self.segment_stitcher is None:
            logger.warning("No segment stitcher configured; rendering a single segment")
            count = 1

        if count > 1:
            segments = await self.video_renderer.render_segments(prompt, count)
            return {"segments": segments}, f"{len(segments)} segments rendered"

        video = await self.video_renderer.run(prompt)
        return {"video": video}, f"video rendered ({len(video.payload)} bytes)"

    async def _stitch_segments(self, state: PipelineState) -> StepResult:
        video = await self.segment_stitcher.run(_copy(state["segments"]))
        return {"video": video}, f"{video.segment_count} segments merged ({len(video.payload)} bytes)"

    async def _publish(self, state: PipelineState) -> StepResult:
        channel = state["channel"]
        result = await self.upload_scheduler.run(UploadRequest(
            video=_copy(state["video"]),
            metadata=_copy(state["prompt"]),
            schedule=_copy(channel.schedule),
            credentials=_copy(channel.auth),
        ))
        if result.scheduled_for:
            message = f"video {result.video_id} scheduled for {result.scheduled_for}"
        else:
            message = f"video {result.video_id} uploaded"
        return {"upload": result}, message

    # ===== ENTRY POINT =====

    async def run(self, channel: ChannelConfig, force_mock: bool = False) -> PipelineResult:
        """
        Run every stage for one channel.

        Never raises for stage failures: the result carries the
        stage-qualified error and the log trail collected so far.
        """
        tracker = TimingTracker()
        tracker.start("total")
        logger.info(f"Starting pipeline for channel {channel.id} (force_mock={force_mock})")

        initial_state: PipelineState = {
            "channel": channel.model_copy(deep=True),
            "force_mock": force_mock,
            "logs": [self._line(f"Pipeline started for channel '{channel.name or channel.id}'")],
        }

        try:
            final_state = await self._graph.ainvoke(initial_state, {"configurable": {"timing": tracker}})
        except Exception as e:
            logger.error(f"Pipeline graph error for channel {channel.id}: {e}")
            tracker.end("total")
            failure = StageFailedError("orchestrator", e)
            return PipelineResult(
                success=False,
                logs=initial_state["logs"] + [self._line(f"Pipeline aborted: {e}")],
                error=str(failure),
                error_type=failure.error_type,
                failed_stage="orchestrator",
                timings=tracker.get_summary(),
            )

        tracker.end("total")
        return self._to_result(final_state, tracker)

    def _to_result(self, state: PipelineState, tracker: TimingTracker) -> PipelineResult:
        logs = list(state.get("logs", []))
        upload = state.get("upload")
        winner = state.get("winner")
        video = state.get("video")

        video_url = upload.platform_url if upload else None
        if video_url is None and video is not None and video.payload:
            video_url = encode_data_url(video.payload, video.mime_type)

        if state.get("error"):
            logs.append(self._line(f"Pipeline halted at {state.get('failed_stage')}"))
            logger.warning(f"Pipeline failed: {state['error']}")
            return PipelineResult(
                success=False,
                logs=logs,
                video_url=video_url,
                winner_id=winner.id if winner else None,
                error=state["error"],
                error_type=state.get("error_type"),
                failed_stage=state.get("failed_stage"),
                timings=tracker.get_summary(),
            )

        logs.append(self._line("Pipeline finished"))
        logger.info(f"Pipeline finished: upload {upload.video_id} ({upload.status.value})")
        return PipelineResult(
            success=True,
            logs=logs,
            video_url=video_url,
            upload_id=upload.video_id,
            upload_status=upload.status,
            scheduled_for=upload.scheduled_for,
            winner_id=winner.id if winner else None,
            timings=tracker.get_summary(),
        )

    async def aclose(self):
        """Close the network clients this orchestrator was built with."""
        for resource in self._resources:
            try:
                await resource.close()
            except Exception as e:
                logger.warning(f"Failed to close {type(resource).__name__}: {e}")


def build_orchestrator(settings: Optional[Settings] = None, language: str = "en") -> PipelineOrchestrator:
    """Compose an orchestrator with production collaborators."""
    settings = settings or get_settings()

    llm = get_llm(settings)
    generator = StructuredGenerator(
        llm,
        temperature=settings.generation_temperature,
        max_tokens=settings.generation_max_tokens,
    )
    platform = YouTubeClient(
        api_base_url=settings.youtube_api_base_url,
        upload_url=settings.youtube_upload_url,
        timeout=settings.http_timeout_sec,
    )
    video_backend = VeoVideoClient(
        api_key=settings.video_api_key,
        base_url=settings.video_api_base_url,
        model=settings.video_model,
        timeout=settings.http_timeout_sec,
    )

    return PipelineOrchestrator(
        trend_source=TrendSource(settings, platform=platform),
        signal_extractor=SignalExtractor(generator),
        candidate_generator=CandidateGenerator(generator, count=settings.candidate_count, language=language),
        weight_engine=WeightEngine(generator),
        prompt_composer=PromptComposer(generator, language=language),
        video_renderer=VideoRenderer(
            video_backend,
            poll_interval=settings.render_poll_interval_sec,
            max_attempts=settings.render_max_poll_attempts,
            initial_delay=settings.render_initial_delay_sec,
            options=get_render_options(settings),
        ),
        upload_scheduler=UploadScheduler(platform, category_id=settings.upload_category_id),
        segment_stitcher=SegmentStitcher(
            work_dir=settings.temp_dir,
            ffmpeg_path=settings.ffmpeg_path,
            ffprobe_path=settings.ffprobe_path,
            timeout=settings.concat_timeout_sec,
        ),
        max_segments=settings.max_segments_per_video,
        resources=[llm, video_backend, platform],
    )


async def run_pipeline(
    channel_config: ChannelConfig,
    force_mock: bool = False,
    settings: Optional[Settings] = None,
) -> PipelineResult:
    """
    Main entry point: one full run for one channel.

    Builds a fresh orchestrator for the call and closes its clients
    afterwards.
    """
    orchestrator = build_orchestrator(settings, language=channel_config.language)
    try:
        return await orchestrator.run(channel_config, force_mock=force_mock)
    finally:
        await orchestrator.aclose()
