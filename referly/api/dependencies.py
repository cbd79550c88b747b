"""
FastAPI dependencies - Dependency injection factories.

This module provides Depends() factories for injecting
domain services and infrastructure adapters into routes.
"""

from fastapi import Depends, Request

from referly.adapters.otp.console import ConsoleOtpSender
from referly.config.settings import Settings
from referly.domain.lifecycle import AccountLifecycle
from referly.domain.ports import AccountStore, CredentialHasher
from referly.domain.profile import ProfileService

# Module-level singleton - ConsoleOtpSender is stateless
_otp_sender = ConsoleOtpSender()


def get_app_settings(request: Request) -> Settings:
    """Get the settings the app was created with."""
    return request.app.state.settings


def get_store(request: Request) -> AccountStore:
    """
    Get account store from app state.

    The store is created during app lifespan startup and stored in app.state.
    """
    return request.app.state.store


def get_hasher(request: Request) -> CredentialHasher:
    """Get credential hasher from app state."""
    return request.app.state.hasher


def get_otp_sender() -> ConsoleOtpSender:
    """Get console OTP sender (singleton)."""
    return _otp_sender


def get_account_lifecycle(
    request: Request, settings: Settings = Depends(get_app_settings)
) -> AccountLifecycle:
    """
    Create account lifecycle service with injected dependencies.

    Wires together the store, hasher and OTP sender for the domain service.
    """
    return AccountLifecycle(
        store=get_store(request),
        hasher=get_hasher(request),
        otp_sender=get_otp_sender(),
        referral_bonus=settings.referral_bonus,
        referral_code_attempts=settings.referral_code_attempts,
    )


def get_profile_service(request: Request) -> ProfileService:
    """Create profile service backed by the app's store."""
    return ProfileService(store=get_store(request))
