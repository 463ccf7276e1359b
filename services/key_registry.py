import secrets
import string
from typing import Optional

from sqlalchemy import delete
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session

from core.config import settings
from core.exceptions import NotFoundError
from core.logger import get_logger
from models import BranchKey
from schemas.schemas import BranchDetail
from services.activity_log import KEY_GENERATED, KEY_REMOVED, log_activity
from services.authorization import authorize, get_branch_or_404
from services.branch_graph import build_branch_detail

logger = get_logger(__name__)

KEY_ALPHABET = string.ascii_letters + string.digits
MIN_KEY_LENGTH = 20

def generate_key(length: int = MIN_KEY_LENGTH) -> str:
    length = max(length, MIN_KEY_LENGTH)
    return "".join(secrets.choice(KEY_ALPHABET) for _ in range(length))

def issue_key(session: Session, branch_id: str, name: str, description: Optional[str], actor: str) -> BranchDetail:
    if settings.STRICT_BRANCH_GUARD:
        branch = authorize(session, actor, branch_id)
    else:
        branch = get_branch_or_404(session, branch_id)

    for attempt in range(settings.KEY_GENERATION_ATTEMPTS):
        key = BranchKey(
            branch_id=branch.id,
            key=generate_key(settings.KEY_LENGTH),
            name=name,
            description=description,
        )
        session.add(key)
        try:
            session.commit()
            break
        except IntegrityError:
            # Token collision on the unique index; draw again
            session.rollback()
            logger.warning(f"Key collision for branch {branch_id} (attempt {attempt + 1})")
    else:
        raise RuntimeError("Could not generate a unique branch key")

    logger.info(f"Key '{name}' issued for branch {branch_id} by {actor}")
    log_activity(session, branch_id, KEY_GENERATED, actor)

    session.refresh(branch)
    return build_branch_detail(session, branch, include_keys=True)

def revoke_key(session: Session, key_id: str, branch_id: str, actor: str) -> BranchDetail:
    branch = authorize(session, actor, branch_id)

    result = session.exec(
        delete(BranchKey).where(BranchKey.id == key_id, BranchKey.branch_id == branch.id)
    )
    if result.rowcount == 0:
        session.rollback()
        raise NotFoundError("Key not found on this branch", code="KEY_NOT_FOUND")
    session.commit()

    logger.info(f"Key {key_id} removed from branch {branch_id} by {actor}")
    log_activity(session, branch_id, KEY_REMOVED, actor)

    session.refresh(branch)
    return build_branch_detail(session, branch, include_keys=True)
