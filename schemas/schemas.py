from datetime import datetime
from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field

# --- Request Schemas ---
class BranchCreate(BaseModel):
    name: str = Field(min_length=1)
    region: str = Field(min_length=1)
    city: str = Field(min_length=1)
    country: Optional[str] = None
    street: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    # Defaults to the caller when omitted
    manager: Optional[str] = None

class KeyCreate(BaseModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None

class LinkChildRequest(BaseModel):
    key: str = Field(min_length=1)

# --- Response Schemas ---
class KeyRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    description: Optional[str] = None
    key: str
    createdAt: datetime = Field(validation_alias="created_at")

class BranchRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    region: str
    city: str
    country: Optional[str] = None
    street: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    website: Optional[str] = None
    manager: str

class BranchDetail(BranchRead):
    childBranch: List[BranchRead] = []
    keys: Optional[List[KeyRead]] = None

class BranchListSummary(BaseModel):
    total: int
    byRegion: Dict[str, int]
    byCity: Dict[str, int]

class MonthlySummary(BaseModel):
    month: int
    totalRecords: int
    totalSales: float

class StaffTotals(BaseModel):
    staffCount: int
    totalSalary: float
    totalBonus: float

class ChildSummary(BaseModel):
    branchId: str
    branch: str
    months: List[MonthlySummary]
    staff: StaffTotals

class ActivityRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    branchId: str = Field(validation_alias="branch_id")
    process: str
    actor: Optional[str] = None
    timestamp: datetime

class RecordRead(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    item: str
    quantity: int
    price: float
    date: datetime
