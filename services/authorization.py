from sqlmodel import Session

from core.exceptions import NotFoundError, UnauthorizedError
from models import Branch

def get_branch_or_404(session: Session, branch_id: str) -> Branch:
    branch = session.get(Branch, branch_id)
    if not branch:
        raise NotFoundError("Branch not found", code="BRANCH_NOT_FOUND")
    return branch

def authorize(session: Session, acting_identity: str, branch_id: str) -> Branch:
    """Returns the branch when ``acting_identity`` is exactly its manager."""
    branch = get_branch_or_404(session, branch_id)
    if not acting_identity or acting_identity != branch.manager:
        raise UnauthorizedError("Only the branch manager can modify this branch")
    return branch
