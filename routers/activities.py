from datetime import datetime
from fastapi import APIRouter, Depends, Query
from sqlmodel import Session
from typing import Optional

from core.database import get_session
from models import AdminUser
from schemas.schemas import ActivityRead
from services.activity_log import MAX_ACTIVITY_LIMIT, activity_stats, list_activities
from services.auth_service import get_superuser

router = APIRouter(prefix="/api/activities", tags=["activities"])

@router.get("/", response_model=dict)
async def get_activities(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=50, ge=1, le=MAX_ACTIVITY_LIMIT),
    actor: Optional[str] = None,
    process: Optional[str] = None,
    branchId: Optional[str] = None,
    dateFrom: Optional[datetime] = None,
    dateTo: Optional[datetime] = None,
    session: Session = Depends(get_session),
    superuser: AdminUser = Depends(get_superuser)
):
    result = list_activities(
        session,
        page=page,
        limit=limit,
        actor=actor,
        process=process,
        branch_id=branchId,
        date_from=dateFrom,
        date_to=dateTo,
    )
    return {
        "success": True,
        "meta": result["meta"],
        "data": {"activities": [ActivityRead.model_validate(e) for e in result["activities"]]},
    }

@router.get("/stats", response_model=dict)
async def get_activity_stats(
    dateFrom: Optional[datetime] = None,
    dateTo: Optional[datetime] = None,
    session: Session = Depends(get_session),
    superuser: AdminUser = Depends(get_superuser)
):
    return {"success": True, "data": activity_stats(session, dateFrom, dateTo)}
