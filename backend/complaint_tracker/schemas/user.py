from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field

from complaint_tracker.models.user import Role
from complaint_tracker.schemas.common import CamelModel


class UserCreate(CamelModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=2, max_length=255)
    email: EmailStr
    password: str = Field(min_length=6)
    role: Role
    department: str | None = None
    student_id: str | None = Field(default=None, max_length=50)


class UserUpdate(CamelModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str | None = Field(default=None, min_length=2, max_length=255)
    email: EmailStr | None = None
    role: Role | None = None
    department: str | None = None


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    role: str
    department: str | None
    student_id: str | None
    created_at: datetime


class UserListData(CamelModel):
    users: list[UserResponse]
    count: int
