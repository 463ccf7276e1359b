import uuid
from datetime import datetime, timezone
from typing import Optional
from sqlmodel import Field, SQLModel

def new_id() -> str:
    return str(uuid.uuid4())

def utcnow() -> datetime:
    return datetime.now(timezone.utc)

class Branch(SQLModel, table=True):
    __tablename__ = "branches"
    id: str = Field(default_factory=new_id, primary_key=True)
    name: str = Field(index=True)
    region: str = Field(index=True)
    city: str = Field(index=True)
    country: Optional[str] = None
    street: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None

    # Email of the managing admin; compared verbatim by the branch guard
    manager: str = Field(index=True)
    created_at: datetime = Field(default_factory=utcnow)

class BranchKey(SQLModel, table=True):
    __tablename__ = "branch_keys"
    id: str = Field(default_factory=new_id, primary_key=True)
    branch_id: str = Field(foreign_key="branches.id", index=True)
    key: str = Field(unique=True, index=True)
    name: str
    description: Optional[str] = None
    created_at: datetime = Field(default_factory=utcnow)

class BranchLink(SQLModel, table=True):
    __tablename__ = "branch_links"
    # Autoincrement id keeps children in link order; duplicates are allowed
    id: Optional[int] = Field(default=None, primary_key=True)
    parent_id: str = Field(foreign_key="branches.id", index=True)
    child_id: str = Field(foreign_key="branches.id", index=True)
    created_at: datetime = Field(default_factory=utcnow)

class ActivityLog(SQLModel, table=True):
    __tablename__ = "activity_logs"
    id: Optional[int] = Field(default=None, primary_key=True)
    branch_id: str = Field(index=True)
    process: str = Field(index=True)
    actor: Optional[str] = None
    timestamp: datetime = Field(default_factory=utcnow, index=True)

class Record(SQLModel, table=True):
    __tablename__ = "records"
    id: str = Field(default_factory=new_id, primary_key=True)
    branch_id: str = Field(foreign_key="branches.id", index=True)
    item: str
    quantity: int = 1
    price: float = 0.0
    date: datetime = Field(default_factory=utcnow, index=True)

class AdminUser(SQLModel, table=True):
    __tablename__ = "admin_users"
    id: str = Field(default_factory=new_id, primary_key=True)
    email: str = Field(unique=True, index=True)
    password_hash: str
    full_name: Optional[str] = None
    role: str = Field(default="manager")
    is_active: bool = Field(default=True)
    last_login: Optional[datetime] = None
    created_at: datetime = Field(default_factory=utcnow)

class Staff(SQLModel, table=True):
    __tablename__ = "staff"
    id: str = Field(default_factory=new_id, primary_key=True)
    branch_id: str = Field(foreign_key="branches.id", index=True)
    name: str
    position: str
    salary: float = 0.0
    bonus: float = 0.0
