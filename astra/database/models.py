"""
Database models for Astra Health Backend

SQLAlchemy 2.0 models with full type hints
"""

from datetime import datetime, UTC
from enum import Enum
from typing import Any, Dict, List, Optional

from sqlalchemy import (
    String,
    Text,
    Integer,
    Boolean,
    DateTime,
    ForeignKey,
    UniqueConstraint,
    Index,
    JSON,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship
from sqlalchemy.dialects.postgresql import JSONB


class Base(DeclarativeBase):
    """Base class for all models"""

    pass


# JSONB on PostgreSQL, plain JSON elsewhere (SQLite in tests)
JSONType = JSON().with_variant(JSONB(), "postgresql")


def _utcnow() -> datetime:
    return datetime.now(UTC)


# ===========================
# ENUMS
# ===========================


class AccountKind(str, Enum):
    """How a user can sign in"""

    REGISTERED = "registered"  # email + password only
    BOT_LINKED = "bot_linked"  # Telegram only
    BOTH = "both"  # email + password and Telegram
    STUB = "stub"  # migration stub, neither yet


class DataType(str, Enum):
    """Record types mirrored to data union partners"""

    HEALTH = "health"
    CHECKIN = "checkin"


class SyncPartner(str, Enum):
    """Data union partners"""

    AKAVE = "akave"
    VANA = "vana"


class InviteResponse(str, Enum):
    """Allowed answers to a research invite"""

    YES = "yes"
    NO = "no"


class ReminderSchedule(str, Enum):
    """Check-in reminder cadence"""

    DAILY = "daily"
    SPECIFIC_DAYS = "specific_days"
    WEEKLY = "weekly"


# ===========================
# MODELS
# ===========================


class User(Base):
    """
    User model - identity and gamification state

    Identity (see AccountKind):
    - email + password_hash for app registrations
    - telegram_id for bot users (set directly or via migration code)

    Gamification:
    - check_ins / points counters
    - current/longest streak and the last 7 check-in dates
    """

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    user_id: Mapped[str] = mapped_column(
        String(36), unique=True, index=True, nullable=False, comment="Internal user id (uuid4)"
    )
    user_hash: Mapped[str] = mapped_column(
        String(64), index=True, nullable=False, comment="Public handle: sha256(user_id)"
    )
    telegram_id: Mapped[Optional[str]] = mapped_column(
        String(64), unique=True, index=True, nullable=True, comment="Telegram user ID (nullable for app users)"
    )
    email: Mapped[Optional[str]] = mapped_column(
        String(255), unique=True, index=True, nullable=True, comment="Email for app registration"
    )
    password_hash: Mapped[Optional[str]] = mapped_column(
        String(255), nullable=True, comment="bcrypt hash"
    )

    # Profile
    name: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    nickname: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    wallet_address: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    proof_of_passport_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    # Gamification
    check_ins: Mapped[int] = mapped_column(
        Integer, default=0, nullable=False, comment="Total accepted check-ins"
    )
    points: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    last_check_in: Mapped[Optional[datetime]] = mapped_column(
        DateTime(timezone=True), nullable=True, comment="Instant of last accepted check-in (UTC)"
    )
    current_streak: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    longest_streak: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    streak_history: Mapped[List[str]] = mapped_column(
        JSONType, default=list, nullable=False, comment="Last 7 check-in dates (YYYY-MM-DD)"
    )

    # Flags
    is_registered: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    is_gender_verified: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    current_health_data_id: Mapped[Optional[str]] = mapped_column(
        String(36), nullable=True, comment="HealthData.health_data_id of current profile"
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False
    )

    @property
    def account_kind(self) -> AccountKind:
        has_password = bool(self.email and self.password_hash)
        if has_password and self.telegram_id:
            return AccountKind.BOTH
        if has_password:
            return AccountKind.REGISTERED
        if self.telegram_id:
            return AccountKind.BOT_LINKED
        return AccountKind.STUB

    def __repr__(self) -> str:
        return f"<User(user_hash={self.user_hash[:8]}, kind={self.account_kind.value}, streak={self.current_streak})>"


class CheckIn(Base):
    """
    Daily check-in event (immutable)

    Mood/symptom fields are opaque to the streak logic.
    """

    __tablename__ = "check_ins"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    checkin_id: Mapped[str] = mapped_column(
        String(64), unique=True, nullable=False, comment="checkin_<epoch-millis>_<16 hex>"
    )
    schema_version: Mapped[str] = mapped_column(String(8), default="v1", nullable=False)
    user_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )

    mood: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    health_comment: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    doctor_visit: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)
    health_profile_update: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)
    anxiety_level: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    anxiety_details: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    pain_level: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    pain_details: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    fatigue_level: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    fatigue_details: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("ix_check_ins_user_hash_timestamp", "user_hash", "timestamp"),
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "checkinId": self.checkin_id,
            "schema_version": self.schema_version,
            "user_hash": self.user_hash,
            "timestamp": self.timestamp,
            "mood": self.mood,
            "health_comment": self.health_comment,
            "doctor_visit": self.doctor_visit,
            "health_profile_update": self.health_profile_update,
            "anxiety_level": self.anxiety_level,
            "anxiety_details": self.anxiety_details,
            "pain_level": self.pain_level,
            "pain_details": self.pain_details,
            "fatigue_level": self.fatigue_level,
            "fatigue_details": self.fatigue_details,
        }

    def __repr__(self) -> str:
        return f"<CheckIn(checkin_id={self.checkin_id}, user_hash={self.user_hash[:8]})>"


class MigrationCode(Base):
    """
    Migration code - 6-digit token linking a Telegram account to an app account

    Lifecycle: generated (unlinked) -> linked, or expired after 5 minutes.
    Linkable iff now <= expires_at and not is_linked.
    """

    __tablename__ = "migration_codes"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    code: Mapped[str] = mapped_column(
        String(6), unique=True, index=True, nullable=False, comment="6 ASCII digits (100000-999999)"
    )
    telegram_id: Mapped[str] = mapped_column(
        String(64), index=True, nullable=False, comment="Telegram user the code was generated for"
    )

    # Set when the code is verified
    user_id: Mapped[Optional[str]] = mapped_column(String(36), nullable=True)
    user_hash: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    is_linked: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    linked_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    expires_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), index=True, nullable=False, comment="Purged by cleanup job after this"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )

    def __repr__(self) -> str:
        return f"<MigrationCode(code={self.code}, linked={self.is_linked}, expires={self.expires_at})>"


class ResearchInvite(Base):
    """
    Research invite - public (anyone may answer) or private (invited users only)
    """

    __tablename__ = "research_invites"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    client: Mapped[str] = mapped_column(String(255), nullable=False)
    link: Mapped[str] = mapped_column(String(1024), nullable=False)
    is_private: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False
    )

    invitees: Mapped[List["ResearchInvitee"]] = relationship(
        back_populates="invite",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="ResearchInvitee.id",
    )
    responses: Mapped[List["ResearchInviteResponse"]] = relationship(
        back_populates="invite",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="ResearchInviteResponse.id",
    )

    @property
    def invited_users(self) -> List[str]:
        return [invitee.user_hash for invitee in self.invitees]

    def find_response(self, user_hash: str) -> Optional["ResearchInviteResponse"]:
        for response in self.responses:
            if response.user_hash == user_hash:
                return response
        return None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "message": self.message,
            "type": self.type,
            "client": self.client,
            "link": self.link,
            "isPrivate": self.is_private,
            "invited_users": self.invited_users,
            "responses": [response.to_dict() for response in self.responses],
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }

    def __repr__(self) -> str:
        return f"<ResearchInvite(id={self.id}, client={self.client}, private={self.is_private})>"


class ResearchInvitee(Base):
    """User invited to a private research invite"""

    __tablename__ = "research_invitees"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    invite_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("research_invites.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    invited_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )

    invite: Mapped["ResearchInvite"] = relationship(back_populates="invitees")

    __table_args__ = (
        UniqueConstraint("invite_id", "user_hash", name="uq_research_invitee"),
    )


class ResearchInviteResponse(Base):
    """Yes/no answer to a research invite, one per user (latest wins)"""

    __tablename__ = "research_invite_responses"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    invite_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("research_invites.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    response: Mapped[str] = mapped_column(String(3), nullable=False, comment="yes | no")
    responded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )

    invite: Mapped["ResearchInvite"] = relationship(back_populates="responses")

    __table_args__ = (
        UniqueConstraint("invite_id", "user_hash", name="uq_research_invite_response"),
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "user_hash": self.user_hash,
            "response": self.response,
            "responded_at": self.responded_at,
        }


class DataUnionRecord(Base):
    """
    Data union sync ledger - one row per (user_hash, data_type, data_id)

    Partner state is stored in flat columns prefixed with the partner name
    (akave_*, vana_*) so failed syncs are queryable per partner.
    """

    __tablename__ = "data_union_records"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    schema_version: Mapped[str] = mapped_column(String(8), default="v1", nullable=False)
    user_hash: Mapped[str] = mapped_column(String(64), nullable=False)
    data_type: Mapped[str] = mapped_column(String(16), nullable=False, comment="health | checkin")
    data_id: Mapped[str] = mapped_column(String(128), nullable=False)

    # Akave (object storage)
    akave_is_synced: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False, index=True)
    akave_error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    akave_retry_data: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSONType, nullable=True)
    akave_key: Mapped[Optional[str]] = mapped_column(String(512), nullable=True)
    akave_url: Mapped[Optional[str]] = mapped_column(String(1024), nullable=True)

    # Vana (data DAO)
    vana_is_synced: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False, index=True)
    vana_error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    vana_retry_data: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSONType, nullable=True)
    vana_file_id: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False, index=True
    )

    __table_args__ = (
        UniqueConstraint("user_hash", "data_type", "data_id", name="uq_data_union_reference"),
    )

    def partner_state(self, partner: SyncPartner) -> Dict[str, Any]:
        prefix = partner.value
        state = {
            "is_synced": getattr(self, f"{prefix}_is_synced"),
            "error_message": getattr(self, f"{prefix}_error_message"),
            "retry_data": getattr(self, f"{prefix}_retry_data"),
        }
        if partner == SyncPartner.AKAVE:
            state["key"] = self.akave_key
            state["url"] = self.akave_url
        else:
            state["file_id"] = self.vana_file_id
        return state

    def to_dict(self) -> Dict[str, Any]:
        return {
            "schema_version": self.schema_version,
            "user_hash": self.user_hash,
            "data_type": self.data_type,
            "data_id": self.data_id,
            "partners": {p.value: self.partner_state(p) for p in SyncPartner},
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


class HealthData(Base):
    """
    Health profile snapshot

    Every profile update stores a new row; User.current_health_data_id points
    at the current one.
    """

    __tablename__ = "health_data"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    health_data_id: Mapped[str] = mapped_column(String(36), unique=True, nullable=False)
    schema_version: Mapped[str] = mapped_column(String(8), default="v2", nullable=False)
    user_hash: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    research_opt_in: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    profile: Mapped[Optional[Dict[str, Any]]] = mapped_column(
        JSONType, nullable=True, comment="age_range, ethnicity, location, is_pregnant"
    )
    conditions: Mapped[List[Dict[str, Any]]] = mapped_column(JSONType, default=list, nullable=False)
    medications: Mapped[List[str]] = mapped_column(JSONType, default=list, nullable=False)
    treatments: Mapped[List[Dict[str, Any]]] = mapped_column(JSONType, default=list, nullable=False)
    caretaker: Mapped[List[str]] = mapped_column(JSONType, default=list, nullable=False)

    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "healthDataId": self.health_data_id,
            "schema_version": self.schema_version,
            "user_hash": self.user_hash,
            "research_opt_in": self.research_opt_in,
            "profile": self.profile,
            "conditions": self.conditions,
            "medications": self.medications,
            "treatments": self.treatments,
            "caretaker": self.caretaker,
            "timestamp": self.timestamp,
        }


class Notification(Base):
    """Check-in reminder settings (one row per user)"""

    __tablename__ = "notifications"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(36), unique=True, index=True, nullable=False)
    type: Mapped[str] = mapped_column(String(32), default="daily_checkin", nullable=False)
    scheduled_time: Mapped[str] = mapped_column(String(32), default="0 10 * * *", nullable=False)
    reminder_schedule: Mapped[str] = mapped_column(
        String(16), default=ReminderSchedule.DAILY.value, nullable=False
    )
    reminder_days: Mapped[List[str]] = mapped_column(
        JSONType, default=list, nullable=False, comment="Weekday names for specific_days/weekly"
    )
    reminder_time: Mapped[str] = mapped_column(String(8), default="10:00", nullable=False)
    email_notifications: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    substack: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    last_sent: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False
    )


class Doc(Base):
    """In-app documentation page (guide, faq, tutorial, ...)"""

    __tablename__ = "docs"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    text: Mapped[str] = mapped_column(Text, nullable=False)
    type: Mapped[str] = mapped_column(String(64), index=True, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "text": self.text,
            "type": self.type,
            "created_at": self.created_at,
            "updated_at": self.updated_at,
        }


class Feedback(Base):
    """User feedback (bug, feature, general, ...)"""

    __tablename__ = "feedback"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    type: Mapped[str] = mapped_column(String(64), index=True, nullable=False)
    message: Mapped[str] = mapped_column(Text, nullable=False)
    user_hash: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    resolved: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=_utcnow, nullable=False
    )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "message": self.message,
            "user_hash": self.user_hash,
            "resolved": self.resolved,
            "created_at": self.created_at,
        }
