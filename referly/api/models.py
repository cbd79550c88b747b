"""
API request and response models.

Pydantic models for FastAPI endpoint validation and OpenAPI schema generation.
JSON field names are camelCase; Python attributes stay snake_case.
"""

from pydantic import BaseModel, ConfigDict, EmailStr, Field
from pydantic.alias_generators import to_camel

from referly.domain.ports import Address


class ApiModel(BaseModel):
    """Base model mapping snake_case attributes to camelCase JSON."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RegisterRequest(ApiModel):
    """Request model for user registration."""

    first_name: str
    last_name: str
    email: EmailStr
    phone_number: str
    referral_code_used: str | None = Field(
        default=None, description="Referral code of an existing user (optional)"
    )


class RegisterResponse(ApiModel):
    """Response model for successful registration."""

    message: str
    user_id: str
    otp: str | None = Field(default=None, description="Omitted when OTPs are delivered out-of-band")
    referral_code: str


class VerifyOtpRequest(ApiModel):
    """Request model for OTP verification."""

    email: str
    otp: str = Field(..., description="6-digit one-time password")


class VerifyOtpResponse(ApiModel):
    message: str
    user_id: str


class SetPasswordRequest(ApiModel):
    """Request model for setting the password of a verified user."""

    user_id: str
    password: str


class LoginRequest(ApiModel):
    email: str
    password: str


class UserSummary(ApiModel):
    id: str
    full_name: str
    email: str
    phone_number: str


class LoginResponse(ApiModel):
    message: str
    user: UserSummary


class ProfileResponse(ApiModel):
    full_name: str
    email: str
    phone_number: str


class UpdateProfileRequest(ApiModel):
    """Partial profile update; omitted fields are left unchanged."""

    first_name: str | None = None
    last_name: str | None = None
    email: EmailStr | None = None
    phone_number: str | None = None


class UpdateProfileResponse(ProfileResponse):
    message: str


class AddressModel(ApiModel):
    """Postal address sub-record."""

    address_line1: str | None = None
    address_line2: str | None = None
    city: str | None = None
    state: str | None = None
    postal_code: str | None = None
    country: str | None = None

    def to_domain(self) -> Address:
        return Address(
            line1=self.address_line1,
            line2=self.address_line2,
            city=self.city,
            state=self.state,
            postal_code=self.postal_code,
            country=self.country,
        )

    @classmethod
    def from_domain(cls, address: Address) -> "AddressModel":
        return cls(
            address_line1=address.line1,
            address_line2=address.line2,
            city=address.city,
            state=address.state,
            postal_code=address.postal_code,
            country=address.country,
        )


class AddressResponse(ApiModel):
    address: AddressModel


class AddressUpdateResponse(AddressResponse):
    message: str


class MessageResponse(ApiModel):
    message: str


class ErrorResponse(BaseModel):
    """Standard error response model."""

    detail: str
