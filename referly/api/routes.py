"""
API routes - Account lifecycle and profile endpoints.

This module defines the HTTP endpoints:
- POST /register - Create a pending account and issue an OTP
- POST /verify-otp - Confirm the OTP
- POST /set-password - Activate a verified account
- POST /login - Authenticate an active account
- GET/PUT /profile/{user_id} - Read or update name and contact fields
- GET/PUT /address/{user_id} - Read or replace the postal address

Handlers are plain ``def`` so FastAPI runs them in its worker thread pool;
the store calls they make are blocking.
"""

from fastapi import APIRouter, Depends, HTTPException, status

from referly.api.dependencies import (
    get_account_lifecycle,
    get_app_settings,
    get_profile_service,
)
from referly.api.models import (
    AddressModel,
    AddressResponse,
    AddressUpdateResponse,
    ErrorResponse,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    ProfileResponse,
    RegisterRequest,
    RegisterResponse,
    SetPasswordRequest,
    UpdateProfileRequest,
    UpdateProfileResponse,
    UserSummary,
    VerifyOtpRequest,
    VerifyOtpResponse,
)
from referly.config.settings import Settings
from referly.domain.exceptions import InvalidCredentialError, NotFoundError
from referly.domain.lifecycle import AccountLifecycle
from referly.domain.profile import ProfileService

router = APIRouter(tags=["accounts"])

_BAD_REQUEST = {400: {"model": ErrorResponse, "description": "Invalid or missing input"}}
_NOT_FOUND = {404: {"model": ErrorResponse, "description": "User not found"}}


@router.post(
    "/register",
    response_model=RegisterResponse,
    response_model_exclude_none=True,
    status_code=status.HTTP_201_CREATED,
    responses={**_BAD_REQUEST},
    summary="Register a new user",
    description="Create a pending account. A 6-digit OTP is issued for verification; "
    "a valid referral code credits the referring user.",
)
def register(
    request_data: RegisterRequest,
    service: AccountLifecycle = Depends(get_account_lifecycle),
    settings: Settings = Depends(get_app_settings),
) -> RegisterResponse:
    """
    Register a new user.

    - **firstName**, **lastName**, **email**, **phoneNumber**: required
    - **referralCodeUsed**: optional referral code of an existing user
    """
    result = service.register(
        request_data.first_name,
        request_data.last_name,
        request_data.email,
        request_data.phone_number,
        request_data.referral_code_used,
    )
    return RegisterResponse(
        message="User registered. OTP sent.",
        user_id=result.account_id,
        otp=result.otp if settings.expose_otp_in_response else None,
        referral_code=result.referral_code,
    )


@router.post(
    "/verify-otp",
    response_model=VerifyOtpResponse,
    responses={**_BAD_REQUEST},
    summary="Verify the registration OTP",
)
def verify_otp(
    request_data: VerifyOtpRequest,
    service: AccountLifecycle = Depends(get_account_lifecycle),
) -> VerifyOtpResponse:
    try:
        account_id = service.verify_otp(request_data.email, request_data.otp)
    except InvalidCredentialError:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid OTP",
        ) from None
    return VerifyOtpResponse(
        message="OTP verified. You can now set a password.", user_id=account_id
    )


@router.post(
    "/set-password",
    response_model=MessageResponse,
    responses={**_BAD_REQUEST, **_NOT_FOUND},
    summary="Set the password of a verified user",
)
def set_password(
    request_data: SetPasswordRequest,
    service: AccountLifecycle = Depends(get_account_lifecycle),
) -> MessageResponse:
    service.set_password(request_data.user_id, request_data.password)
    return MessageResponse(message="Password set successfully")


@router.post(
    "/login",
    response_model=LoginResponse,
    responses={
        **_BAD_REQUEST,
        401: {"model": ErrorResponse, "description": "Invalid credentials"},
    },
    summary="Log in with email and password",
)
def login(
    request_data: LoginRequest,
    service: AccountLifecycle = Depends(get_account_lifecycle),
) -> LoginResponse:
    """
    Authenticate an active user.

    Unknown email, unset password and wrong password all return the same
    401 response.
    """
    result = service.login(request_data.email, request_data.password)
    return LoginResponse(
        message="Login successful",
        user=UserSummary(
            id=result.account_id,
            full_name=result.full_name,
            email=result.email,
            phone_number=result.phone_number,
        ),
    )


@router.get(
    "/profile/{user_id}",
    response_model=ProfileResponse,
    responses={**_NOT_FOUND},
    summary="Get a user's profile",
)
def get_profile(
    user_id: str,
    service: ProfileService = Depends(get_profile_service),
) -> ProfileResponse:
    profile = service.get_profile(user_id)
    return ProfileResponse(
        full_name=profile.full_name, email=profile.email, phone_number=profile.phone_number
    )


@router.put(
    "/profile/{user_id}",
    response_model=UpdateProfileResponse,
    responses={**_BAD_REQUEST, **_NOT_FOUND},
    summary="Update a user's profile",
)
def update_profile(
    user_id: str,
    request_data: UpdateProfileRequest,
    service: ProfileService = Depends(get_profile_service),
) -> UpdateProfileResponse:
    profile = service.update_profile(user_id, **request_data.model_dump(exclude_unset=True))
    return UpdateProfileResponse(
        message="Profile updated successfully",
        full_name=profile.full_name,
        email=profile.email,
        phone_number=profile.phone_number,
    )


@router.put(
    "/address/{user_id}",
    response_model=AddressUpdateResponse,
    responses={**_BAD_REQUEST, **_NOT_FOUND},
    summary="Add or replace a user's address",
)
def add_or_update_address(
    user_id: str,
    request_data: AddressModel,
    service: ProfileService = Depends(get_profile_service),
) -> AddressUpdateResponse:
    address = service.add_or_update_address(user_id, request_data.to_domain())
    return AddressUpdateResponse(
        message="Address updated successfully", address=AddressModel.from_domain(address)
    )


@router.get(
    "/address/{user_id}",
    response_model=AddressResponse,
    responses={404: {"model": ErrorResponse, "description": "Address not found"}},
    summary="Get a user's address",
)
def get_address(
    user_id: str,
    service: ProfileService = Depends(get_profile_service),
) -> AddressResponse:
    try:
        address = service.get_address(user_id)
    except NotFoundError:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Address not found",
        ) from None
    return AddressResponse(address=AddressModel.from_domain(address))
