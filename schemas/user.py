# schemas/user.py

from typing import Any, Dict, Optional
from pydantic import EmailStr, Field, field_validator

from models.ground import GroundStatus
from models.user import Role, UserStatus
from .common import CamelModel


class ProfileSchema(CamelModel):
    first_name: Optional[str] = Field(None, min_length=1, max_length=50)
    last_name: Optional[str] = Field(None, min_length=1, max_length=50)
    phone_number: Optional[str] = Field(None, pattern=r'^\+?[0-9\- ]{7,20}$')
    bio: Optional[str] = Field(None, max_length=500)
    date_of_birth: Optional[str] = None
    location: Optional[str] = Field(None, max_length=100)


class RegisterRequest(ProfileSchema):
    """Completes a profile after sign-up at the identity provider."""

    role: Optional[str] = None
    preferences: Optional[Dict[str, Any]] = None

    @field_validator('role')
    @classmethod
    def check_role(cls, value):
        # Admins are appointed, never self-registered
        if value is not None and value not in (Role.PLAYER.value, Role.FACILITY_OWNER.value):
            raise ValueError('role must be player or facility_owner')
        return value


class ProfileUpdateRequest(CamelModel):
    display_name: Optional[str] = Field(None, min_length=1, max_length=100)
    photo_url: Optional[str] = Field(None, alias='photoURL', max_length=500)
    profile: Optional[ProfileSchema] = None
    preferences: Optional[Dict[str, Any]] = None


class UpdateRoleRequest(CamelModel):
    role: str

    @field_validator('role')
    @classmethod
    def check_role(cls, value):
        if value not in [r.value for r in Role]:
            raise ValueError(f"role must be one of {', '.join(r.value for r in Role)}")
        return value


class UpdateStatusRequest(CamelModel):
    status: str
    reason: Optional[str] = Field(None, max_length=500)

    @field_validator('status')
    @classmethod
    def check_status(cls, value):
        if value not in [s.value for s in UserStatus]:
            raise ValueError(f"status must be one of {', '.join(s.value for s in UserStatus)}")
        return value


class GroundStatusRequest(CamelModel):
    status: str
    reason: Optional[str] = Field(None, max_length=500)

    @field_validator('status')
    @classmethod
    def check_status(cls, value):
        if value not in [s.value for s in GroundStatus]:
            raise ValueError(f"status must be one of {', '.join(s.value for s in GroundStatus)}")
        return value


class EmailOTPRequest(CamelModel):
    email: EmailStr


class VerifyEmailOTPRequest(CamelModel):
    email: EmailStr
    otp: str = Field(pattern=r'^\d{6}$')
