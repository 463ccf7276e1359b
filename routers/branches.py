from fastapi import APIRouter, Depends, Query
from sqlmodel import Session
from typing import Optional

from core.database import get_session
from models import AdminUser, utcnow
from schemas.schemas import ActivityRead, BranchCreate, KeyCreate, LinkChildRequest
from services.auth_service import get_current_admin
from services import activity_log, branch_graph, key_registry, reporting

router = APIRouter(prefix="/api/branches", tags=["branches"])

def _branch_response(detail, message: Optional[str] = None) -> dict:
    response = {
        "success": True,
        "meta": {"branchId": detail.id, "branch": detail.name},
        "data": detail,
    }
    if message:
        response["message"] = message
    return response

# --- Graph ---

@router.get("/", response_model=dict)
async def list_branches(
    region: Optional[str] = None,
    city: Optional[str] = None,
    manager: Optional[str] = None,
    session: Session = Depends(get_session),
    current_user: AdminUser = Depends(get_current_admin)
):
    data = branch_graph.list_with_children(session, region=region, city=city, manager=manager)
    if not data["branches"]:
        return {"success": True, "message": "No branches found", "data": data}
    return {"success": True, "message": "Branches retrieved successfully", "data": data}

@router.post("/", response_model=dict, status_code=201)
async def create_branch(
    branch_in: BranchCreate,
    session: Session = Depends(get_session),
    current_user: AdminUser = Depends(get_current_admin)
):
    detail = branch_graph.create_branch(session, branch_in, current_user.email)
    return _branch_response(detail, "Branch created successfully")

@router.get("/mine", response_model=dict)
async def get_my_branch(
    session: Session = Depends(get_session),
    current_user: AdminUser = Depends(get_current_admin)
):
    return _branch_response(branch_graph.get_managed_branch(session, current_user.email))

@router.get("/{branch_id}", response_model=dict)
async def get_branch(
    branch_id: str,
    session: Session = Depends(get_session),
    current_user: AdminUser = Depends(get_current_admin)
):
    return _branch_response(branch_graph.get_branch_detail(session, branch_id, current_user.email))

@router.post("/{branch_id}/children", response_model=dict)
async def link_child(
    branch_id: str,
    payload: LinkChildRequest,
    session: Session = Depends(get_session),
    current_user: AdminUser = Depends(get_current_admin)
):
    detail = branch_graph.link_child(session, branch_id, payload.key, current_user.email)
    return _branch_response(detail, "Branch added")

@router.delete("/{branch_id}/children/{child_id}", response_model=dict)
async def unlink_child(
    branch_id: str,
    child_id: str,
    session: Session = Depends(get_session),
    current_user: AdminUser = Depends(get_current_admin)
):
    detail = branch_graph.unlink_child(session, branch_id, child_id, current_user.email)
    return _branch_response(detail, "Branch removed")

# --- Keys ---

@router.post("/{branch_id}/keys", response_model=dict, status_code=201)
async def issue_key(
    branch_id: str,
    payload: KeyCreate,
    session: Session = Depends(get_session),
    current_user: AdminUser = Depends(get_current_admin)
):
    detail = key_registry.issue_key(session, branch_id, payload.name, payload.description, current_user.email)
    return _branch_response(detail, "Key generated")

@router.delete("/{branch_id}/keys/{key_id}", response_model=dict)
async def revoke_key(
    branch_id: str,
    key_id: str,
    session: Session = Depends(get_session),
    current_user: AdminUser = Depends(get_current_admin)
):
    detail = key_registry.revoke_key(session, key_id, branch_id, current_user.email)
    return _branch_response(detail, "Key removed")

# --- Activity & reports ---

@router.get("/{branch_id}/activities", response_model=dict)
async def list_activities(
    branch_id: str,
    limit: Optional[int] = Query(default=None, ge=1, le=activity_log.MAX_ACTIVITY_LIMIT),
    session: Session = Depends(get_session),
    current_user: AdminUser = Depends(get_current_admin)
):
    entries = activity_log.recent_activities(session, branch_id, limit)
    return {
        "success": True,
        "meta": {"branchId": branch_id},
        "data": {"activities": [ActivityRead.model_validate(e) for e in entries]},
    }

@router.get("/{branch_id}/summary", response_model=dict)
async def monthly_summary(
    branch_id: str,
    session: Session = Depends(get_session),
    current_user: AdminUser = Depends(get_current_admin)
):
    return {
        "success": True,
        "meta": {"branchId": branch_id, "year": utcnow().year},
        "data": reporting.monthly_summary(session, branch_id),
    }

@router.get("/{branch_id}/children/summary", response_model=dict)
async def children_summary(
    branch_id: str,
    session: Session = Depends(get_session),
    current_user: AdminUser = Depends(get_current_admin)
):
    return {
        "success": True,
        "meta": {"branchId": branch_id},
        "data": reporting.child_summaries(session, branch_id),
    }

@router.get("/{branch_id}/records", response_model=dict)
async def list_records(
    branch_id: str,
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=10, ge=1, le=100),
    search: Optional[str] = None,
    session: Session = Depends(get_session),
    current_user: AdminUser = Depends(get_current_admin)
):
    result = reporting.list_records(session, branch_id, page=page, limit=limit, search=search)
    return {"success": True, "meta": result["meta"], "data": {"records": result["records"]}}
