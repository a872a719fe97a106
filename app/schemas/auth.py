from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from app.models.user import SubscriptionPlan, UserRole

EMAIL_PATTERN = r"^[^@\s]+@[^@\s]+\.[^@\s]+$"


class SignUpRequest(BaseModel):
    email: str = Field(min_length=5, max_length=320, pattern=EMAIL_PATTERN)
    name: str = Field(min_length=2, max_length=120)
    password: str = Field(min_length=8, max_length=128)
    plan: SubscriptionPlan = SubscriptionPlan.TRIAL

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class EmployeeCreateRequest(BaseModel):
    email: str = Field(min_length=5, max_length=320, pattern=EMAIL_PATTERN)
    name: str = Field(min_length=2, max_length=120)
    password: str = Field(min_length=8, max_length=128)
    club_id: int

    @field_validator("email")
    @classmethod
    def normalize_email(cls, value: str) -> str:
        return value.strip().lower()


class LoginRequest(BaseModel):
    email: str = Field(min_length=1, max_length=320)
    password: str = Field(min_length=1, max_length=128)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int


class AccountSettingsUpdate(BaseModel):
    ideal_stock: int = Field(ge=1, le=100000)


class UserOut(BaseModel):
    id: int
    email: str
    name: str
    role: UserRole
    owner_id: int | None
    club_id: int | None
    plan: SubscriptionPlan
    ideal_stock: int
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}
