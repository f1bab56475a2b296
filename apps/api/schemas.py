from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel
from datetime import datetime, date
from uuid import UUID
from typing import Optional, List, Dict, Literal, Tuple
import re


ExperimentStatus = Literal["active", "completed", "abandoned"]
LogEntryType = Literal["before_sit", "after_sit", "eod"]
JournalEntryType = Literal["session", "missed_day", "readiness_gate"]
Brahmavihara = Literal["metta", "karuna", "mudita", "upekkha"]

DEFAULT_SCALE: Tuple[int, int] = (1, 7)


def metric_id_from_name(name: str) -> str:
    """'Body Ease' -> 'body_ease'"""
    return re.sub(r"\s+", "_", name.strip().lower())


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


# =============================================================================
# Profile
# =============================================================================

class ProfileResponse(BaseModel):
    id: UUID
    created_at: datetime
    onboarded_at: Optional[datetime] = None
    is_first_time: bool
    vow: Optional[str] = None
    streak: int = 0
    last_practice_date: Optional[date] = None

    model_config = ConfigDict(from_attributes=True)


# =============================================================================
# Experiments
# =============================================================================

class MetricDefinition(BaseModel):
    """A named rating scale. `scale` bounds are inclusive."""
    id: str = ""
    name: str = Field(min_length=1)
    description: Optional[str] = None
    scale: Tuple[int, int] = DEFAULT_SCALE

    @field_validator("name")
    @classmethod
    def name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("metric name must not be blank")
        return v.strip()

    @model_validator(mode="after")
    def derive_id_and_check_scale(self) -> "MetricDefinition":
        if not self.id.strip():
            self.id = metric_id_from_name(self.name)
        low, high = self.scale
        if low >= high:
            raise ValueError(f"scale minimum must be below maximum, got {list(self.scale)}")
        return self


class ExperimentCreate(BaseModel):
    title: str = Field(min_length=1)
    hypothesis: str = Field(min_length=1)
    protocol: str = Field(min_length=1)
    metrics: List[MetricDefinition] = Field(min_length=1)
    # Zero-length experiments have no defined progress; reject them here
    duration_days: int = Field(default=7, ge=1)
    start_date: Optional[date] = None  # defaults to today

    @field_validator("title", "hypothesis", "protocol")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("must not be blank")
        return v.strip()

    @field_validator("metrics")
    @classmethod
    def unique_metric_ids(cls, v: List[MetricDefinition]) -> List[MetricDefinition]:
        ids = [m.id for m in v]
        if len(ids) != len(set(ids)):
            raise ValueError("metric ids must be unique within an experiment")
        return v


class ExperimentComplete(BaseModel):
    conclusion: str = Field(min_length=1)


class ExperimentResponse(BaseModel):
    id: UUID
    user_id: UUID
    created_at: datetime
    updated_at: datetime
    title: str
    hypothesis: str
    protocol: str
    metrics: List[MetricDefinition]
    duration_days: int
    start_date: date
    end_date: date
    status: ExperimentStatus
    conclusion: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class ProgressResponse(BaseModel):
    experiment_id: UUID
    current_day: int
    days_completed: int
    days_remaining: int
    progress: float


# =============================================================================
# Log entries
# =============================================================================

class LogEntryCreate(BaseModel):
    experiment_id: Optional[UUID] = None  # defaults to the active experiment
    entry_type: LogEntryType
    entry_date: Optional[date] = None  # defaults to today
    ratings: Dict[str, float] = Field(default_factory=dict)
    notes: Optional[str] = None
    sit_duration_minutes: Optional[int] = Field(default=None, ge=0)
    technique_notes: Optional[str] = None

    @field_validator("notes", "technique_notes")
    @classmethod
    def blank_to_none(cls, v: Optional[str]) -> Optional[str]:
        return _blank_to_none(v)

    @field_validator("sit_duration_minutes")
    @classmethod
    def zero_duration_is_none(cls, v: Optional[int]) -> Optional[int]:
        return v or None


class LogEntryResponse(BaseModel):
    id: UUID
    user_id: UUID
    experiment_id: UUID
    created_at: datetime
    entry_type: LogEntryType
    entry_date: date
    ratings: Dict[str, float]
    notes: Optional[str] = None
    sit_duration_minutes: Optional[int] = None
    technique_notes: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class NextEntryTypeResponse(BaseModel):
    entry_type: LogEntryType
    logged_today: List[LogEntryType]


class DashboardResponse(BaseModel):
    """Everything the home screen needs, loaded in one go."""
    profile: ProfileResponse
    active_experiment: Optional[ExperimentResponse] = None
    experiment_progress: Optional[ProgressResponse] = None
    experiments: List[ExperimentResponse]
    recent_logs: List[LogEntryResponse]
    today_logs: List[LogEntryResponse]


# =============================================================================
# Chat
# =============================================================================

class _CamelModel(BaseModel):
    """Accepts both snake_case and the web client's camelCase keys."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ChatMessage(BaseModel):
    role: Literal["user", "assistant"]
    content: str


class ContextMetric(_CamelModel):
    id: str
    name: str
    description: Optional[str] = None
    scale: Tuple[int, int] = DEFAULT_SCALE


class ContextExperiment(_CamelModel):
    title: str
    hypothesis: str
    protocol: str
    metrics: List[ContextMetric] = Field(default_factory=list)
    duration_days: int
    current_day: int = 1


class ContextLog(_CamelModel):
    date: str
    type: LogEntryType
    ratings: Dict[str, float] = Field(default_factory=dict)
    notes: Optional[str] = None
    sit_duration: Optional[int] = None


class ContextPastExperiment(_CamelModel):
    title: str
    hypothesis: str
    status: ExperimentStatus
    duration: int
    conclusion: Optional[str] = None


class ResearchContext(_CamelModel):
    active_experiment: Optional[ContextExperiment] = None
    recent_logs: List[ContextLog] = Field(default_factory=list)
    past_experiments: List[ContextPastExperiment] = Field(default_factory=list)


class ChatRequest(BaseModel):
    messages: List[ChatMessage] = Field(min_length=1)
    # When omitted the server builds the context from the caller's stored data
    context: Optional[ResearchContext] = None


class ChatContextResponse(BaseModel):
    context: str


# =============================================================================
# Curriculum variant
# =============================================================================

class VowRequest(BaseModel):
    vow: str = Field(min_length=1)

    @field_validator("vow")
    @classmethod
    def not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("vow must not be blank")
        return v.strip()


class PracticeSessionCreate(BaseModel):
    practice_id: str
    reflection: str = Field(min_length=1)


class MissedDayCreate(BaseModel):
    response: str = Field(min_length=1)


class ReadinessGateCreate(BaseModel):
    brahmavihara: Brahmavihara
    response: str = Field(min_length=1)


class SessionRecordedResponse(BaseModel):
    streak: int
    last_practice_date: date
    journal_entry_id: UUID


class PracticeStatusResponse(BaseModel):
    vow: Optional[str] = None
    is_first_time: bool
    streak: int
    last_practice_date: Optional[date] = None
    needs_inquiry: bool
    track_progress: Dict[str, str]
    current_nodes: List[str]
    completed_nodes: List[str]


class JournalEntryResponse(BaseModel):
    id: UUID
    created_at: datetime
    entry_type: JournalEntryType
    entry_date: date
    data: Dict

    model_config = ConfigDict(from_attributes=True)


class PracticeResponse(BaseModel):
    id: str
    title: str
    brahmavihara: Brahmavihara
    object: str
    type: Literal["formal", "micro"]
    tradition: str
    source: Optional[str] = None
    duration: Optional[int] = None
    instructions: str
    reflection_prompts: List[str]
    node: str

    model_config = ConfigDict(from_attributes=True)


class SessionOpeningResponse(BaseModel):
    node: str
    node_label: str
    practice: Optional[PracticeResponse] = None
    aspiration: Dict[str, str]
    dedication: Dict[str, str]
    reflection_prompt: Optional[str] = None
