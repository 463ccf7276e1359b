"""
Parent/child branch graph.

A branch claims another as its child by redeeming one of the child's keys.
Links live in ``branch_links`` keyed by the parent id; every write is a
single conditional statement so concurrent requests cannot lose updates.
The graph is not checked for cycles, only for direct self-links.
"""
from collections import Counter
from typing import Dict, List, Optional

from sqlalchemy import delete, insert, literal, select as sa_select
from sqlmodel import Session, select, col

from core.config import settings
from core.exceptions import InvalidOperationError, NotFoundError
from core.logger import get_logger
from models import AdminUser, Branch, BranchKey, BranchLink, utcnow
from schemas.schemas import BranchCreate, BranchDetail, BranchListSummary, BranchRead, KeyRead
from services.activity_log import BRANCH_ADDED, BRANCH_CREATED, BRANCH_REMOVED, log_activity
from services.authorization import authorize, get_branch_or_404

logger = get_logger(__name__)

# --- Helpers ---

def resolve_children(session: Session, parent_ids: List[str]) -> Dict[str, List[Branch]]:
    """Maps each parent id to its child branches, in link order."""
    children = {parent_id: [] for parent_id in parent_ids}
    if not parent_ids:
        return children

    stmt = (
        select(BranchLink.parent_id, Branch)
        .join(Branch, Branch.id == BranchLink.child_id)
        .where(col(BranchLink.parent_id).in_(parent_ids))
        .order_by(BranchLink.id)
    )
    for parent_id, child in session.exec(stmt).all():
        children[parent_id].append(child)
    return children

def build_branch_detail(session: Session, branch: Branch, include_keys: bool = False) -> BranchDetail:
    children = resolve_children(session, [branch.id])[branch.id]
    detail = BranchDetail(
        **BranchRead.model_validate(branch).model_dump(),
        childBranch=[BranchRead.model_validate(c) for c in children],
    )
    if include_keys:
        keys = session.exec(
            select(BranchKey).where(BranchKey.branch_id == branch.id).order_by(BranchKey.created_at)
        ).all()
        detail.keys = [KeyRead.model_validate(k) for k in keys]
    return detail

def _contains(column, term: str):
    """Case-insensitive substring match; % and _ in the term are literal."""
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return column.ilike(f"%{escaped}%", escape="\\")

def find_key_owner(session: Session, key: str) -> Optional[Branch]:
    stmt = select(Branch).join(BranchKey, BranchKey.branch_id == Branch.id).where(BranchKey.key == key)
    return session.exec(stmt).first()

# --- Graph operations ---

def link_child(session: Session, parent_id: str, key: str, actor: str) -> BranchDetail:
    if settings.STRICT_BRANCH_GUARD:
        parent = authorize(session, actor, parent_id)
    else:
        parent = get_branch_or_404(session, parent_id)

    owner = find_key_owner(session, key)
    if owner is None:
        raise NotFoundError("No branch owns this key", code="KEY_NOT_FOUND", status_code=401)
    if owner.id == parent.id:
        raise InvalidOperationError("A branch cannot be linked to itself", code="SELF_LINK", status_code=401)

    # Insert only while the key is still owned by a branch other than the parent
    stmt = insert(BranchLink).from_select(
        ["parent_id", "child_id", "created_at"],
        sa_select(
            literal(parent.id),
            BranchKey.branch_id,
            literal(utcnow(), type_=BranchLink.__table__.c.created_at.type),
        )
        .where(BranchKey.key == key, BranchKey.branch_id != parent.id),
    )
    result = session.exec(stmt)
    if result.rowcount == 0:
        session.rollback()
        raise NotFoundError("No branch owns this key", code="KEY_NOT_FOUND", status_code=401)
    session.commit()

    logger.info(f"Branch {owner.id} linked as child of {parent.id} by {actor}")
    log_activity(session, parent.id, BRANCH_ADDED, actor)

    session.refresh(parent)
    return build_branch_detail(session, parent)

def unlink_child(session: Session, parent_id: str, child_id: str, actor: str) -> BranchDetail:
    parent = authorize(session, actor, parent_id)

    result = session.exec(
        delete(BranchLink).where(BranchLink.parent_id == parent.id, BranchLink.child_id == child_id)
    )
    session.commit()

    logger.info(f"Removed {result.rowcount} link(s) from {parent.id} to {child_id}")
    log_activity(session, parent.id, BRANCH_REMOVED, actor)

    session.refresh(parent)
    return build_branch_detail(session, parent)

def list_with_children(
    session: Session,
    region: Optional[str] = None,
    city: Optional[str] = None,
    manager: Optional[str] = None,
) -> Dict:
    stmt = select(Branch)
    if manager:
        stmt = stmt.where(Branch.manager == manager)
    if region and region != "all":
        stmt = stmt.where(_contains(col(Branch.region), region))
    if city and city != "all":
        stmt = stmt.where(_contains(col(Branch.city), city))
    stmt = stmt.order_by(Branch.name)

    branches = session.exec(stmt).all()
    children = resolve_children(session, [b.id for b in branches])

    data = [
        BranchDetail(
            **BranchRead.model_validate(b).model_dump(),
            childBranch=[BranchRead.model_validate(c) for c in children[b.id]],
        )
        for b in branches
    ]
    summary = BranchListSummary(
        total=len(branches),
        byRegion=dict(Counter(b.region for b in branches)),
        byCity=dict(Counter(b.city for b in branches)),
    )
    return {"branches": data, "summary": summary}

# --- Branch lifecycle ---

def create_branch(session: Session, branch_in: BranchCreate, actor: str) -> BranchDetail:
    manager = branch_in.manager or actor
    admin = session.exec(select(AdminUser).where(AdminUser.email == manager)).first()
    if not admin:
        raise NotFoundError("Admin doesn't exist", code="MANAGER_NOT_FOUND")

    branch = Branch(**branch_in.model_dump(exclude={"manager"}), manager=manager)
    session.add(branch)
    session.commit()
    session.refresh(branch)

    logger.info(f"Branch {branch.id} ({branch.name}) created by {actor}")
    log_activity(session, branch.id, BRANCH_CREATED, actor)
    return build_branch_detail(session, branch, include_keys=True)

def get_branch_detail(session: Session, branch_id: str, viewer: str) -> BranchDetail:
    branch = get_branch_or_404(session, branch_id)
    return build_branch_detail(session, branch, include_keys=viewer == branch.manager)

def get_managed_branch(session: Session, manager_email: str) -> BranchDetail:
    branch = session.exec(
        select(Branch).where(Branch.manager == manager_email).order_by(Branch.created_at)
    ).first()
    if not branch:
        raise NotFoundError("Branch doesn't exist", code="BRANCH_NOT_FOUND")
    return build_branch_detail(session, branch, include_keys=True)
