import uuid
from datetime import date, datetime, time, timezone
from typing import Dict, List, Optional

from sqlalchemy import extract
from sqlmodel import Session, select, func, col

from core.exceptions import NotFoundError
from models import Record, Staff, utcnow
from schemas.schemas import ChildSummary, MonthlySummary, RecordRead, StaffTotals
from services.authorization import get_branch_or_404
from services.branch_graph import resolve_children

def validate_branch_id(branch_id: str) -> str:
    try:
        uuid.UUID(branch_id)
    except (ValueError, TypeError, AttributeError):
        raise NotFoundError("Malformed branch id", code="INVALID_BRANCH_ID")
    return branch_id

def year_to_date_window(today: Optional[date] = None):
    """[Jan 1 00:00, end of today] for the current year, in UTC."""
    today = today or utcnow().date()
    start = datetime(today.year, 1, 1, tzinfo=timezone.utc)
    end = datetime.combine(today, time.max, tzinfo=timezone.utc)
    return start, end

def monthly_summary(session: Session, branch_id: str, today: Optional[date] = None) -> List[MonthlySummary]:
    validate_branch_id(branch_id)
    start, end = year_to_date_window(today)

    month = extract("month", Record.date)
    stmt = (
        select(month, func.count(Record.id), func.coalesce(func.sum(Record.price), 0))
        .where(Record.branch_id == branch_id, Record.date >= start, Record.date <= end)
        .group_by(month)
        .order_by(month)
    )
    return [
        MonthlySummary(month=int(m), totalRecords=count, totalSales=float(sales))
        for m, count, sales in session.exec(stmt).all()
    ]

def staff_totals(session: Session, branch_id: str) -> StaffTotals:
    count, salary, bonus = session.exec(
        select(
            func.count(Staff.id),
            func.coalesce(func.sum(Staff.salary), 0),
            func.coalesce(func.sum(Staff.bonus), 0),
        ).where(Staff.branch_id == branch_id)
    ).one()
    return StaffTotals(staffCount=count, totalSalary=float(salary), totalBonus=float(bonus))

def child_summaries(session: Session, branch_id: str, today: Optional[date] = None) -> List[ChildSummary]:
    """Monthly summary and staff payroll totals of every child of ``branch_id``."""
    validate_branch_id(branch_id)
    get_branch_or_404(session, branch_id)

    summaries = []
    for child in resolve_children(session, [branch_id])[branch_id]:
        summaries.append(ChildSummary(
            branchId=child.id,
            branch=child.name,
            months=monthly_summary(session, child.id, today),
            staff=staff_totals(session, child.id),
        ))
    return summaries

def list_records(session: Session, branch_id: str, page: int = 1, limit: int = 10, search: Optional[str] = None) -> Dict:
    """Paginated sales records; a search term ignores pagination."""
    total = session.exec(select(func.count(Record.id)).where(Record.branch_id == branch_id)).one()

    stmt = select(Record).where(Record.branch_id == branch_id).order_by(col(Record.date).desc())
    if search:
        stmt = stmt.where(col(Record.item).ilike(f"%{search}%"))
    else:
        stmt = stmt.offset((page - 1) * limit).limit(limit)

    records = session.exec(stmt).all()
    meta = {"totalRecords": total, "branchId": branch_id}
    if not search:
        meta.update({"page": page, "limit": limit})
    return {"meta": meta, "records": [RecordRead.model_validate(r) for r in records]}
