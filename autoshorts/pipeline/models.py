"""
Pipeline data models.

Every entity handed between stages is a pydantic model, so each stage
boundary validates what it receives. Stages pass copies forward; nothing
downstream mutates an object owned by an upstream stage.
"""
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, List, Optional
from pydantic import BaseModel, Field, NonNegativeInt, field_validator, model_validator


SCORE_AXIS_MIN = 0.0
SCORE_AXIS_MAX = 10.0


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string with a Z suffix."""
    return datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime:
    """
    Parse an ISO-8601 timestamp into an aware datetime.

    Accepts a trailing 'Z'. Naive timestamps are treated as UTC.
    Raises ValueError if the value cannot be parsed.
    """
    if not value or not value.strip():
        raise ValueError("timestamp is empty")
    text = value.strip()
    if text.endswith("Z") or text.endswith("z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


# ===== ENUMS =====

class PrivacyStatus(str, Enum):
    PUBLIC = "public"
    PRIVATE = "private"
    UNLISTED = "unlisted"


class VideoStatus(str, Enum):
    GENERATED = "generated"
    FAILED = "failed"


class UploadStatus(str, Enum):
    UPLOADED = "uploaded"
    SCHEDULED = "scheduled"
    FAILED = "failed"


# ===== CHANNEL INPUTS =====

class ChannelState(BaseModel):
    """What the scoring step knows about the target channel."""
    niche: str = "General Entertainment"
    avg_views: NonNegativeInt = 0
    target_audience: str = ""


class ScheduleConfig(BaseModel):
    """Publish intent for one run."""
    active: bool = False
    privacy_status: PrivacyStatus = PrivacyStatus.PUBLIC
    publish_at: Optional[str] = None


class PlatformCredentials(BaseModel):
    """OAuth tokens for the video platform (obtained elsewhere)."""
    access_token: str = Field(..., min_length=1)
    refresh_token: Optional[str] = None
    token_type: str = "Bearer"


class AutopilotSchedule(BaseModel):
    """Recurring unattended runs for a channel."""
    enabled: bool = False
    active_days: List[int] = Field(default_factory=list, description="0=Sunday ... 6=Saturday")
    time: str = Field(default="09:00", pattern=r"^([01]\d|2[0-3]):[0-5]\d$")

    @field_validator("active_days")
    @classmethod
    def validate_days(cls, v: List[int]) -> List[int]:
        for day in v:
            if day < 0 or day > 6:
                raise ValueError(f"active_days entries must be 0-6, got {day}")
        return sorted(set(v))


class ChannelConfig(BaseModel):
    """Per-run channel configuration supplied by the caller."""
    id: str = Field(..., min_length=1)
    name: str = ""
    niche: str = "General Entertainment"
    language: str = "en"
    search_keywords: List[str] = Field(default_factory=list)
    region_code: Optional[str] = None
    channel_state: Optional[ChannelState] = None
    schedule: ScheduleConfig = Field(default_factory=ScheduleConfig)
    auth: Optional[PlatformCredentials] = None
    segments_per_video: int = Field(default=1, ge=1, le=4)
    autopilot: AutopilotSchedule = Field(default_factory=AutopilotSchedule)

    def resolved_channel_state(self) -> ChannelState:
        """Channel state for scoring; derived from the niche when not supplied."""
        if self.channel_state is not None:
            return self.channel_state.model_copy()
        return ChannelState(niche=self.niche)


# ===== TREND DATA =====

class PerformanceRecord(BaseModel):
    """One observed piece of content."""
    id: str
    title: str
    hashtags: List[str] = Field(default_factory=list)
    view_count: NonNegativeInt = 0
    region: Optional[str] = None
    view_growth_rate: float = Field(default=0.0, ge=0.0)
    published_at: Optional[str] = None


class TrendSignals(BaseModel):
    """Frequency maps extracted from performance records."""
    action_verb_frequency: Dict[str, NonNegativeInt] = Field(default_factory=dict)
    subject_type_frequency: Dict[str, NonNegativeInt] = Field(default_factory=dict)
    object_type_frequency: Dict[str, NonNegativeInt] = Field(default_factory=dict)
    structure_type_frequency: Dict[str, NonNegativeInt] = Field(default_factory=dict)
    algorithm_signal_frequency: Dict[str, NonNegativeInt] = Field(default_factory=dict)

    def is_empty(self) -> bool:
        return not any([
            self.action_verb_frequency,
            self.subject_type_frequency,
            self.object_type_frequency,
            self.structure_type_frequency,
            self.algorithm_signal_frequency,
        ])


# ===== CANDIDATES =====

class ScoringBreakdown(BaseModel):
    virality: float = Field(..., ge=SCORE_AXIS_MIN, le=SCORE_AXIS_MAX)
    feasibility: float = Field(..., ge=SCORE_AXIS_MIN, le=SCORE_AXIS_MAX)
    trend_alignment: float = Field(..., ge=SCORE_AXIS_MIN, le=SCORE_AXIS_MAX)

    @property
    def total(self) -> float:
        return self.virality + self.feasibility + self.trend_alignment


class CandidateTheme(BaseModel):
    """A proposed content concept, before or after scoring."""
    id: str
    subject_type: str
    action_verb: str = ""
    object_type: str = ""
    structure_type: str = ""
    algorithm_signals: List[str] = Field(default_factory=list)
    rationale: Optional[str] = None
    total_score: float = 0.0
    selected: bool = False
    scoring_breakdown: Optional[ScoringBreakdown] = None


class ScoredCandidateBatch(BaseModel):
    """WeightEngine output: candidates in input order, exactly one selected."""
    candidates: List[CandidateTheme]

    @model_validator(mode="after")
    def validate_selection(self):
        if not self.candidates:
            raise ValueError("scored batch must not be empty")
        selected = [c.id for c in self.candidates if c.selected]
        if len(selected) != 1:
            raise ValueError(f"exactly one candidate must be selected, found {len(selected)}")
        ids = [c.id for c in self.candidates]
        if len(ids) != len(set(ids)):
            raise ValueError("candidate ids must be unique within a batch")
        return self

    @property
    def winner(self) -> Optional[CandidateTheme]:
        return next((c for c in self.candidates if c.selected), None)


# ===== PRODUCTION =====

class PromptOutput(BaseModel):
    """Production plan for the winning candidate."""
    candidate_id: str = Field(..., min_length=1)
    candidate_reference: Optional[CandidateTheme] = None
    prompt: str
    title_template: str
    description_template: str

    @model_validator(mode="after")
    def validate_reference(self):
        ref = self.candidate_reference
        if ref is not None:
            if not ref.selected:
                raise ValueError("candidate_reference must point to a selected candidate")
            if ref.id != self.candidate_id:
                raise ValueError("candidate_reference id does not match candidate_id")
        return self


class VideoAsset(BaseModel):
    """A rendered or stitched video."""
    candidate_id: str
    payload: bytes = b""
    mime_type: str = "video/mp4"
    status: VideoStatus = VideoStatus.GENERATED
    generated_at: str = Field(default_factory=utc_now_iso)
    source_uri: Optional[str] = None
    segment_count: int = 1

    @model_validator(mode="after")
    def validate_payload(self):
        if self.status == VideoStatus.GENERATED and not self.payload:
            raise ValueError("a generated video asset must carry a non-empty payload")
        return self


class UploadResult(BaseModel):
    """Normalized outcome of a publish attempt."""
    platform: str
    video_id: str
    platform_url: str
    status: UploadStatus
    scheduled_for: Optional[str] = None
    uploaded_at: str

    @model_validator(mode="after")
    def validate_schedule(self):
        if self.status == UploadStatus.SCHEDULED and not self.scheduled_for:
            raise ValueError("scheduled uploads must carry scheduled_for")
        return self


# ===== RESULT =====

class PipelineResult(BaseModel):
    """What the caller of run_pipeline gets back; never a raw exception."""
    success: bool
    logs: List[str] = Field(default_factory=list)
    video_url: Optional[str] = None
    upload_id: Optional[str] = None
    upload_status: Optional[UploadStatus] = None
    scheduled_for: Optional[str] = None
    winner_id: Optional[str] = None
    error: Optional[str] = None
    error_type: Optional[str] = None
    failed_stage: Optional[str] = None
    timings: Dict[str, float] = Field(default_factory=dict)
