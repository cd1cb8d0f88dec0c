# supplyhub/models/user_models.py

from typing import Optional

from pydantic import BaseModel, Field, field_validator

from supplyhub.models.status import UserRole


class RegisterBody(BaseModel):
    email: Optional[str] = None
    firstName: str = Field(..., min_length=1)
    lastName: str = Field(..., min_length=1)
    phone: Optional[str] = None
    role: UserRole
    companyName: Optional[str] = None
    address: Optional[str] = None

    @field_validator("email")
    @classmethod
    def _loose_email(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        v = v.strip().lower()
        if "@" not in v or " " in v:
            raise ValueError("invalid email format (expected something like user@host)")
        return v

    @field_validator("firstName", "lastName")
    @classmethod
    def _strip(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("must not be blank")
        return v


class ProfileUpdateBody(BaseModel):
    firstName: Optional[str] = Field(None, min_length=1)
    lastName: Optional[str] = Field(None, min_length=1)
    phone: Optional[str] = None
    companyName: Optional[str] = None
    address: Optional[str] = None
