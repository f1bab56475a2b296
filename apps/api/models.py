from sqlalchemy import Column, Integer, CheckConstraint, Date, DateTime, ForeignKey, Text, Index, JSON, Uuid, text
from sqlalchemy.orm import relationship
from sqlalchemy.dialects.postgresql import JSONB
from core.database import Base
import uuid
from datetime import datetime, timezone, timedelta


# JSONB on Postgres, plain JSON elsewhere (SQLite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


EXPERIMENT_STATUSES = ("active", "completed", "abandoned")
LOG_ENTRY_TYPES = ("before_sit", "after_sit", "eod")
JOURNAL_ENTRY_TYPES = ("session", "missed_day", "readiness_gate")


def _one_of(column: str, values) -> str:
    """CHECK constraint text: "status IN ('active', 'completed')"."""
    return f"{column} IN ({', '.join(repr(v) for v in values)})"


# At most one active experiment per user
ONE_ACTIVE_EXPERIMENT_WHERE = text("status = 'active'")


class Profile(Base):
    """
    One row per authenticated user. The id is the auth provider's user id.

    Experiment variant only uses onboarded_at; the curriculum variant keeps
    its vow, streak and per-brahmavihara progression pointers here.
    """
    __tablename__ = "profile"

    id = Column(Uuid, primary_key=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)

    # --- EXPERIMENT VARIANT ---
    onboarded_at = Column(DateTime(timezone=True), nullable=True)

    # --- CURRICULUM VARIANT ---
    vow = Column(Text, nullable=True)
    streak = Column(Integer, default=0, nullable=False)
    last_practice_date = Column(Date, nullable=True)
    # Current object of practice per brahmavihara track ('self' .. 'all')
    metta_object = Column(Text, default="self", nullable=False)
    karuna_object = Column(Text, default="self", nullable=False)
    mudita_object = Column(Text, default="self", nullable=False)
    upekkha_object = Column(Text, default="self", nullable=False)

    experiments = relationship("Experiment", back_populates="profile")

    __table_args__ = (
        CheckConstraint("streak >= 0", name="ck_profile_streak_non_negative"),
    )

    @property
    def is_first_time(self) -> bool:
        return self.onboarded_at is None

    def track_object(self, brahmavihara: str) -> str:
        return getattr(self, f"{brahmavihara}_object") or "self"

    def set_track_object(self, brahmavihara: str, practice_object: str) -> None:
        setattr(self, f"{brahmavihara}_object", practice_object)


class Experiment(Base):
    __tablename__ = "experiment"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("profile.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False)

    title = Column(Text, nullable=False)
    hypothesis = Column(Text, nullable=False)
    protocol = Column(Text, nullable=False)
    # [{"id": "state", "name": "State", "description": "...", "scale": [1, 7]}, ...]
    metrics = Column(JSONType, nullable=False, default=list)
    duration_days = Column(Integer, nullable=False)
    start_date = Column(Date, nullable=False)
    status = Column(Text, nullable=False, default="active")  # 'active' | 'completed' | 'abandoned'
    conclusion = Column(Text, nullable=True)  # only once no longer active

    profile = relationship("Profile", back_populates="experiments")
    log_entries = relationship("LogEntry", back_populates="experiment")

    __table_args__ = (
        CheckConstraint("duration_days >= 1", name="ck_experiment_duration_positive"),
        CheckConstraint(_one_of("status", EXPERIMENT_STATUSES), name="ck_experiment_status"),
        Index("ix_experiment_user_status", "user_id", "status"),
        Index(
            "ux_experiment_one_active_per_user",
            "user_id",
            unique=True,
            postgresql_where=ONE_ACTIVE_EXPERIMENT_WHERE,
            sqlite_where=ONE_ACTIVE_EXPERIMENT_WHERE,
        ),
    )

    @property
    def end_date(self):
        """Derived, never stored."""
        return self.start_date + timedelta(days=self.duration_days)

    @property
    def is_active(self) -> bool:
        return self.status == "active"


class LogEntry(Base):
    """A dated, typed set of ratings against one experiment. Immutable once written."""
    __tablename__ = "log_entry"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("profile.id"), nullable=False, index=True)
    experiment_id = Column(Uuid, ForeignKey("experiment.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    entry_type = Column(Text, nullable=False)  # 'before_sit' | 'after_sit' | 'eod'
    entry_date = Column(Date, nullable=False)
    ratings = Column(JSONType, nullable=False, default=dict)  # metric id -> number
    notes = Column(Text, nullable=True)
    sit_duration_minutes = Column(Integer, nullable=True)
    technique_notes = Column(Text, nullable=True)

    experiment = relationship("Experiment", back_populates="log_entries")

    __table_args__ = (
        CheckConstraint(_one_of("entry_type", LOG_ENTRY_TYPES), name="ck_log_entry_type"),
        Index("ix_log_entry_user_date", "user_id", "entry_date"),
        Index("ix_log_entry_experiment_date", "experiment_id", "entry_date"),
    )


class JournalEntry(Base):
    """
    Curriculum-variant journal. Append-only.

    data shape by entry_type:
    - session:        {"practice_id", "reflection", "node"}
    - missed_day:     {"response"}
    - readiness_gate: {"brahmavihara", "node", "from_object", "to_object", "response"}
    """
    __tablename__ = "journal_entry"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id = Column(Uuid, ForeignKey("profile.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)

    entry_type = Column(Text, nullable=False)
    entry_date = Column(Date, nullable=False)
    data = Column(JSONType, nullable=False, default=dict)

    __table_args__ = (
        CheckConstraint(_one_of("entry_type", JOURNAL_ENTRY_TYPES), name="ck_journal_entry_type"),
        Index("ix_journal_entry_user_type_date", "user_id", "entry_type", "entry_date"),
    )
