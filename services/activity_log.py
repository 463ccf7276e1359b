"""
Append-only activity trail for branch mutations.

Entries are written on their own session so that a failing audit write can
never roll back, or be reported as a failure of, the mutation that triggered
it. Callers invoke :func:`log_activity` only after their own commit.
"""
import math
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from sqlmodel import Session, select, func, col

from core.config import settings
from core.logger import get_logger
from models import ActivityLog, utcnow

logger = get_logger(__name__)

KEY_GENERATED = "Key Generated"
KEY_REMOVED = "Key Removed"
BRANCH_ADDED = "Branch Added"
BRANCH_REMOVED = "Branch Removed"
BRANCH_CREATED = "Branch Created"

MAX_ACTIVITY_LIMIT = 100
TOP_ACTORS = 10

def log_activity(session: Session, branch_id: str, process: str, actor: Optional[str] = None) -> Optional[ActivityLog]:
    """Best-effort append. Returns the entry, or None when the write failed."""
    entry = ActivityLog(branch_id=branch_id, process=process, actor=actor)
    try:
        with Session(session.get_bind()) as audit_session:
            audit_session.add(entry)
            audit_session.commit()
            audit_session.refresh(entry)
    except Exception:
        logger.error(f"Failed to write activity '{process}' for branch {branch_id}", exc_info=True)
        return None
    return entry

def recent_activities(session: Session, branch_id: str, limit: Optional[int] = None) -> List[ActivityLog]:
    if limit is None:
        limit = settings.ACTIVITY_LOG_LIMIT
    limit = max(1, min(limit, MAX_ACTIVITY_LIMIT))
    stmt = (
        select(ActivityLog)
        .where(ActivityLog.branch_id == branch_id)
        .order_by(ActivityLog.timestamp.desc(), ActivityLog.id.desc())
        .limit(limit)
    )
    return list(session.exec(stmt).all())

def activity_stats(session: Session, date_from: Optional[datetime] = None, date_to: Optional[datetime] = None) -> Dict:
    """
    Activity counts within a window (default: last 30 days): per process,
    the ten most active actors, and a per-day trend over the last
    ``ACTIVITY_TREND_DAYS`` days.
    """
    if date_from is None and date_to is None:
        date_from = utcnow() - timedelta(days=settings.ACTIVITY_STATS_DAYS)

    def windowed(stmt):
        if date_from:
            stmt = stmt.where(ActivityLog.timestamp >= date_from)
        if date_to:
            stmt = stmt.where(ActivityLog.timestamp <= date_to)
        return stmt

    by_process = {
        process: count
        for process, count in session.exec(
            windowed(select(ActivityLog.process, func.count(ActivityLog.id)).group_by(ActivityLog.process))
        ).all()
    }

    actor_count = func.count(ActivityLog.id)
    by_actor = session.exec(
        windowed(
            select(ActivityLog.actor, actor_count)
            .where(col(ActivityLog.actor).is_not(None))
            .group_by(ActivityLog.actor)
            .order_by(actor_count.desc(), ActivityLog.actor)
            .limit(TOP_ACTORS)
        )
    ).all()

    day = func.date(ActivityLog.timestamp)
    trend_from = utcnow() - timedelta(days=settings.ACTIVITY_TREND_DAYS)
    daily = session.exec(
        select(day, func.count(ActivityLog.id))
        .where(ActivityLog.timestamp >= trend_from)
        .group_by(day)
        .order_by(day)
    ).all()

    return {
        "total": sum(by_process.values()),
        "byProcess": dict(sorted(by_process.items(), key=lambda item: item[1], reverse=True)),
        "byActor": [{"actor": actor, "count": count} for actor, count in by_actor],
        "dailyTrend": [{"date": str(d), "count": count} for d, count in daily],
    }

def list_activities(
    session: Session,
    page: int = 1,
    limit: int = 50,
    actor: Optional[str] = None,
    process: Optional[str] = None,
    branch_id: Optional[str] = None,
    date_from: Optional[datetime] = None,
    date_to: Optional[datetime] = None,
) -> Dict:
    """Paginated trail across all branches, newest first."""
    page = max(page, 1)
    limit = max(1, min(limit, MAX_ACTIVITY_LIMIT))

    filters = []
    if actor:
        filters.append(col(ActivityLog.actor).ilike(f"%{actor}%"))
    if process:
        filters.append(col(ActivityLog.process).ilike(f"%{process}%"))
    if branch_id:
        filters.append(ActivityLog.branch_id == branch_id)
    if date_from:
        filters.append(ActivityLog.timestamp >= date_from)
    if date_to:
        filters.append(ActivityLog.timestamp <= date_to)

    total = session.exec(select(func.count(ActivityLog.id)).where(*filters)).one()
    entries = session.exec(
        select(ActivityLog)
        .where(*filters)
        .order_by(col(ActivityLog.timestamp).desc(), col(ActivityLog.id).desc())
        .offset((page - 1) * limit)
        .limit(limit)
    ).all()

    return {
        "meta": {"page": page, "limit": limit, "total": total, "totalPages": math.ceil(total / limit)},
        "activities": list(entries),
    }
