from fastapi import APIRouter, Depends, HTTPException, status
from sqlmodel import Session, select
from typing import Any, Optional

from core.database import get_session
from models import AdminUser, utcnow
from services.auth_service import get_current_admin
from core.security import verify_password, create_access_token
from pydantic import BaseModel

router = APIRouter(prefix="/api/auth", tags=["auth"])

class LoginRequest(BaseModel):
    email: str
    password: str

class LoginResponse(BaseModel):
    success: bool
    token: str
    user: Any

class UserProfile(BaseModel):
    id: str
    email: str
    fullName: Optional[str]
    role: str

def _profile(user: AdminUser) -> dict:
    return {
        "id": user.id,
        "email": user.email,
        "fullName": user.full_name,
        "role": user.role
    }

@router.post("/login", response_model=LoginResponse)
async def login(
    login_data: LoginRequest,
    session: Session = Depends(get_session)
):
    user = session.exec(select(AdminUser).where(AdminUser.email == login_data.email)).first()

    if not user or not verify_password(login_data.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )

    if not user.is_active:
        raise HTTPException(status_code=400, detail="Inactive user")

    user.last_login = utcnow()
    session.add(user)
    session.commit()
    session.refresh(user)

    access_token = create_access_token(data={"sub": user.email, "role": user.role})
    return {"success": True, "token": access_token, "user": _profile(user)}

@router.get("/profile", response_model=UserProfile)
async def get_profile(current_user: AdminUser = Depends(get_current_admin)):
    return _profile(current_user)
