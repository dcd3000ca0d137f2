from datetime import datetime
from typing import Optional

from pydantic import EmailStr, field_validator, model_validator

from drive_api.schemas.base import APIModel


class UserSummary(APIModel):
    id: int
    username: str
    email: str


class UserRead(UserSummary):
    role: str
    created_at: Optional[datetime] = None


class UserCreate(APIModel):
    username: Optional[str] = None
    email: Optional[EmailStr] = None
    password: Optional[str] = None
    confirm_password: Optional[str] = None

    @field_validator("username")
    @classmethod
    def strip_username(cls, value):
        return value.strip() if value is not None else value

    @model_validator(mode="after")
    def check_passwords(self):
        if not all((self.username, self.email, self.password, self.confirm_password)):
            raise ValueError("All fields are required")
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        if len(self.password) < 6:
            raise ValueError("Password must be at least 6 characters")
        return self


class UserLogin(APIModel):
    email: Optional[str] = None
    password: Optional[str] = None

    @model_validator(mode="after")
    def check_required(self):
        if not self.email or not self.password:
            raise ValueError("All fields are required")
        return self


class AuthResponse(APIModel):
    message: str
    token: str
    user: UserRead


class MeResponse(APIModel):
    success: bool = True
    user: UserRead


class ForgotPasswordRequest(APIModel):
    email: Optional[str] = None

    @model_validator(mode="after")
    def check_required(self):
        if not self.email or not self.email.strip():
            raise ValueError("Email is required")
        return self


class ResetPasswordRequest(APIModel):
    password: Optional[str] = None
    confirm_password: Optional[str] = None

    @model_validator(mode="after")
    def check_passwords(self):
        if not self.password or not self.confirm_password:
            raise ValueError("All fields are required")
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        if len(self.password) < 6:
            raise ValueError("Password must be at least 6 characters")
        return self
