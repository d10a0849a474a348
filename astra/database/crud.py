"""
CRUD operations for Astra Health Backend

Async database operations using SQLAlchemy 2.0.

Write helpers only add/flush; the calling service owns the transaction and
commits once, so multi-row operations (check-in + user, code + user) land
together.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional

from sqlalchemy import select, update, delete, func, case
from sqlalchemy.ext.asyncio import AsyncSession

from astra.database.models import (
    User,
    CheckIn,
    MigrationCode,
    ResearchInvite,
    ResearchInvitee,
    ResearchInviteResponse,
    DataUnionRecord,
    HealthData,
    Notification,
    Doc,
    Feedback,
)


# ===========================
# USER OPERATIONS
# ===========================


async def get_user_by_hash(session: AsyncSession, user_hash: str) -> Optional[User]:
    """
    Get user by public hash

    Args:
        session: Database session
        user_hash: sha256(user_id)

    Returns:
        User model or None
    """
    stmt = select(User).where(User.user_hash == user_hash)
    result = await session.execute(stmt)
    return result.scalars().first()


async def get_user_by_user_id(session: AsyncSession, user_id: str) -> Optional[User]:
    stmt = select(User).where(User.user_id == user_id)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def get_user_by_email(session: AsyncSession, email: str) -> Optional[User]:
    stmt = select(User).where(User.email == email)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def get_user_by_telegram_id(
    session: AsyncSession, telegram_id: str
) -> Optional[User]:
    stmt = select(User).where(User.telegram_id == str(telegram_id))
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def add_user(session: AsyncSession, **fields: Any) -> User:
    """
    Stage a new user (caller commits)

    Args:
        session: Database session
        **fields: User column values

    Returns:
        Flushed User model (id assigned)
    """
    user = User(**fields)
    session.add(user)
    await session.flush()
    return user


async def update_streak_state_if_unchanged(
    session: AsyncSession,
    user_pk: int,
    previous_last_check_in: Optional[datetime],
    values: Dict[str, Any],
) -> bool:
    """
    Compare-and-swap the gamification columns of a user

    The row is only updated if last_check_in still holds the value the
    caller computed from.

    Args:
        session: Database session
        user_pk: User.id
        previous_last_check_in: last_check_in as read (raw ORM value)
        values: Columns to set

    Returns:
        True if the row was updated, False if another writer got there first
    """
    if previous_last_check_in is None:
        guard = User.last_check_in.is_(None)
    else:
        guard = User.last_check_in == previous_last_check_in

    stmt = (
        update(User)
        .where(User.id == user_pk, guard)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    result = await session.execute(stmt)
    return result.rowcount == 1


async def decrement_check_in_counters(
    session: AsyncSession, user_hash: str, points: int = 1
) -> int:
    """
    Decrement check_ins and points by one step, floored at 0

    Returns:
        Number of rows updated
    """
    stmt = (
        update(User)
        .where(User.user_hash == user_hash)
        .values(
            check_ins=case((User.check_ins > 0, User.check_ins - 1), else_=0),
            points=case((User.points > points, User.points - points), else_=0),
        )
        .execution_options(synchronize_session=False)
    )
    result = await session.execute(stmt)
    return result.rowcount


# ===========================
# CHECK-IN OPERATIONS
# ===========================


async def add_check_in(session: AsyncSession, **fields: Any) -> CheckIn:
    check_in = CheckIn(**fields)
    session.add(check_in)
    await session.flush()
    return check_in


async def get_check_ins_by_user_hash(
    session: AsyncSession, user_hash: str, limit: Optional[int] = None
) -> List[CheckIn]:
    """
    Get check-ins of a user, newest first

    Args:
        session: Database session
        user_hash: Owner hash
        limit: Max records (None = all)

    Returns:
        List of CheckIn models
    """
    stmt = (
        select(CheckIn)
        .where(CheckIn.user_hash == user_hash)
        .order_by(CheckIn.timestamp.desc(), CheckIn.id.desc())
    )
    if limit:
        stmt = stmt.limit(limit)
    result = await session.execute(stmt)
    return list(result.scalars().all())


# ===========================
# MIGRATION CODE OPERATIONS
# ===========================


async def get_migration_code(session: AsyncSession, code: str) -> Optional[MigrationCode]:
    stmt = select(MigrationCode).where(MigrationCode.code == code)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def active_code_exists(session: AsyncSession, code: str, now: datetime) -> bool:
    """Check whether a non-expired record already holds this code"""
    stmt = select(func.count(MigrationCode.id)).where(
        MigrationCode.code == code, MigrationCode.expires_at >= now
    )
    result = await session.execute(stmt)
    return (result.scalar() or 0) > 0


async def delete_expired_code(session: AsyncSession, code: str, now: datetime) -> int:
    stmt = (
        delete(MigrationCode)
        .where(MigrationCode.code == code, MigrationCode.expires_at < now)
        .execution_options(synchronize_session="fetch")
    )
    result = await session.execute(stmt)
    return result.rowcount


async def add_migration_code(session: AsyncSession, **fields: Any) -> MigrationCode:
    record = MigrationCode(**fields)
    session.add(record)
    await session.flush()
    return record


async def mark_code_linked(
    session: AsyncSession,
    code_pk: int,
    user_id: str,
    user_hash: str,
    linked_at: datetime,
) -> bool:
    """
    Mark a migration code linked, only if it is not linked yet

    Returns:
        True if this call linked the code
    """
    stmt = (
        update(MigrationCode)
        .where(MigrationCode.id == code_pk, MigrationCode.is_linked.is_(False))
        .values(is_linked=True, user_id=user_id, user_hash=user_hash, linked_at=linked_at)
        .execution_options(synchronize_session=False)
    )
    result = await session.execute(stmt)
    return result.rowcount == 1


async def delete_expired_codes(session: AsyncSession, now: datetime) -> int:
    """
    Delete every migration code past its expiry

    Returns:
        Number of deleted codes
    """
    stmt = (
        delete(MigrationCode)
        .where(MigrationCode.expires_at < now)
        .execution_options(synchronize_session="fetch")
    )
    result = await session.execute(stmt)
    await session.commit()
    return result.rowcount


# ===========================
# RESEARCH INVITE OPERATIONS
# ===========================


async def get_research_invite(
    session: AsyncSession, invite_id: int
) -> Optional[ResearchInvite]:
    # populate_existing: reload invitees/responses that other rows changed
    stmt = (
        select(ResearchInvite)
        .where(ResearchInvite.id == invite_id)
        .execution_options(populate_existing=True)
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def list_research_invites(session: AsyncSession) -> List[ResearchInvite]:
    stmt = select(ResearchInvite).order_by(ResearchInvite.created_at.desc(), ResearchInvite.id.desc())
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def get_invitee(
    session: AsyncSession, invite_id: int, user_hash: str
) -> Optional[ResearchInvitee]:
    stmt = select(ResearchInvitee).where(
        ResearchInvitee.invite_id == invite_id, ResearchInvitee.user_hash == user_hash
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def get_invite_response(
    session: AsyncSession, invite_id: int, user_hash: str
) -> Optional[ResearchInviteResponse]:
    stmt = select(ResearchInviteResponse).where(
        ResearchInviteResponse.invite_id == invite_id,
        ResearchInviteResponse.user_hash == user_hash,
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


# ===========================
# DATA UNION OPERATIONS
# ===========================


async def get_data_union_record(
    session: AsyncSession, user_hash: str, data_type: str, data_id: str
) -> Optional[DataUnionRecord]:
    """
    Get ledger record by its natural key

    Args:
        session: Database session
        user_hash: Owner hash
        data_type: health | checkin
        data_id: Id of the mirrored record

    Returns:
        DataUnionRecord or None
    """
    stmt = select(DataUnionRecord).where(
        DataUnionRecord.user_hash == user_hash,
        DataUnionRecord.data_type == data_type,
        DataUnionRecord.data_id == data_id,
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def count_data_union_records(session: AsyncSession, *criteria) -> int:
    stmt = select(func.count(DataUnionRecord.id))
    if criteria:
        stmt = stmt.where(*criteria)
    result = await session.execute(stmt)
    return result.scalar() or 0


# ===========================
# HEALTH DATA / NOTIFICATIONS
# ===========================


async def get_health_data(
    session: AsyncSession, health_data_id: str
) -> Optional[HealthData]:
    stmt = select(HealthData).where(HealthData.health_data_id == health_data_id)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def get_latest_health_data(
    session: AsyncSession, user_hash: str
) -> Optional[HealthData]:
    stmt = (
        select(HealthData)
        .where(HealthData.user_hash == user_hash)
        .order_by(HealthData.timestamp.desc(), HealthData.id.desc())
        .limit(1)
    )
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


async def get_notification(session: AsyncSession, user_id: str) -> Optional[Notification]:
    stmt = select(Notification).where(Notification.user_id == user_id)
    result = await session.execute(stmt)
    return result.scalar_one_or_none()


# ===========================
# DOCS / FEEDBACK
# ===========================


async def get_doc(session: AsyncSession, doc_id: int) -> Optional[Doc]:
    return await session.get(Doc, doc_id)


async def list_docs(session: AsyncSession, doc_type: Optional[str] = None) -> List[Doc]:
    stmt = select(Doc).order_by(Doc.created_at.desc(), Doc.id.desc())
    if doc_type:
        stmt = stmt.where(Doc.type == doc_type)
    result = await session.execute(stmt)
    return list(result.scalars().all())


async def get_feedback(session: AsyncSession, feedback_id: int) -> Optional[Feedback]:
    return await session.get(Feedback, feedback_id)


async def list_feedback(
    session: AsyncSession,
    feedback_type: Optional[str] = None,
    resolved: Optional[bool] = None,
) -> List[Feedback]:
    stmt = select(Feedback).order_by(Feedback.created_at.desc(), Feedback.id.desc())
    if feedback_type:
        stmt = stmt.where(Feedback.type == feedback_type)
    if resolved is not None:
        stmt = stmt.where(Feedback.resolved.is_(resolved))
    result = await session.execute(stmt)
    return list(result.scalars().all())
