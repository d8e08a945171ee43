"""Pydantic schemas for request/response."""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, EmailStr, Field


# ----- User -----
class UserBase(BaseModel):
    email: EmailStr
    name: Optional[str] = None


class UserCreate(UserBase):
    password: str


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class UserResponse(UserBase):
    id: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserResponse


class MemberInfo(BaseModel):
    id: int
    name: Optional[str] = None
    email: EmailStr


# ----- Person -----
class PersonCreate(BaseModel):
    name: str = Field(min_length=1)


class PersonResponse(BaseModel):
    id: int
    group_id: int
    name: str

    class Config:
        from_attributes = True


# ----- Group -----
class GroupBase(BaseModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None


class GroupCreate(GroupBase):
    people: list[str] = []
    member_ids: list[int] = []


class GroupUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None


class GroupAddMember(BaseModel):
    email: EmailStr


class GroupResponse(GroupBase):
    id: int
    owner_id: int
    created_at: Optional[datetime] = None
    member_ids: list[int] = []
    members: list[MemberInfo] = []
    people: list[PersonResponse] = []

    class Config:
        from_attributes = True


class BalanceItem(BaseModel):
    person_id: int
    name: str
    balance: float


# ----- Expense -----
class ShareInput(BaseModel):
    person_id: int
    value: Optional[float] = None


class ExpenseCreate(BaseModel):
    group_id: int
    description: str = Field(min_length=1)
    amount: float = Field(gt=0)
    paid_by_id: int
    split_mode: str = "equal"
    participants: list[ShareInput]


class ShareResponse(BaseModel):
    person_id: int
    amount: float

    class Config:
        from_attributes = True


class ExpenseResponse(BaseModel):
    id: int
    group_id: int
    description: str
    amount: float
    paid_by_id: int
    split_mode: str = "equal"
    shares: list[ShareResponse] = []
    settled_amount: float = 0.0
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ----- Settlement -----
class SettlementResponse(BaseModel):
    id: int
    group_id: int
    from_id: int
    to_id: int
    amount: float
    settled: bool
    expense_id: Optional[int] = None
    created_at: Optional[datetime] = None
    from_person: Optional[PersonResponse] = None
    to_person: Optional[PersonResponse] = None

    class Config:
        from_attributes = True


class RecomputeResponse(BaseModel):
    settlements_count: int
    preserved_count: int


class SettleAllResponse(BaseModel):
    count: int
