from pydantic import AliasChoices, ConfigDict, EmailStr, Field

from complaint_tracker.schemas.common import CamelModel
from complaint_tracker.schemas.user import UserResponse


class RegisterRequest(CamelModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=2, max_length=255)
    email: EmailStr
    password: str = Field(min_length=6)
    student_id: str | None = Field(default=None, min_length=3, max_length=50)


class LoginRequest(CamelModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    # The login form sends the email-or-student-id under "email"
    identifier: str = Field(min_length=1, validation_alias=AliasChoices("identifier", "email"))
    password: str = Field(min_length=1)


class AuthData(CamelModel):
    user: UserResponse
    token: str
