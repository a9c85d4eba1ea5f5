from pydantic import BaseModel, EmailStr, Field, ConfigDict
from typing import Optional
import uuid
from datetime import datetime, timezone


class UserRole:
    ADMIN = "admin"
    USER = "user"
    SUPERVISOR = "supervisor"


class UserBase(BaseModel):
    email: EmailStr
    user_name: str
    role: str = UserRole.USER
    contact: Optional[str] = None
    estimated_investment: Optional[float] = None
    notes: Optional[str] = None


class User(UserBase):
    """Row in the `users` collection: admins and customers."""
    model_config = ConfigDict(extra="ignore")
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    password: Optional[str] = None  # bcrypt hash
    created_at: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    updated_at: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())


class SupervisorStatus:
    ACTIVE = "Active"
    INACTIVE = "Inactive"


class Supervisor(BaseModel):
    """Row in the `supervisors` collection."""
    model_config = ConfigDict(extra="ignore")
    id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    full_name: str
    email: EmailStr
    phone_number: str
    password: Optional[str] = None  # bcrypt hash
    status: str = SupervisorStatus.ACTIVE
    created_at: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    updated_at: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())


class LoginRequest(BaseModel):
    # Plain strings so blank values get the login-specific messages.
    email: str = ""
    password: str = ""


class LoginResponse(BaseModel):
    success: bool = True
    message: str = "Login successful"
    token: str
    email: str
    role: str
    user_id: Optional[str] = None


class TokenPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")
    email: str
    role: str


class Identity(BaseModel):
    """Caller resolved for one request. `user_id` is absent for email-only admins."""
    user_id: Optional[str] = None
    email: str
    role: str
