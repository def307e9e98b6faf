"""HTTP route definitions for registration and token verification."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import PlainTextResponse

from ..domain.service import RegistrationService, VerificationService

logger = logging.getLogger(__name__)

router = APIRouter()

NOTIFICATION_FAILED_MESSAGE = "account created, notification failed"
INVALID_EMAIL_MESSAGE = "invalid email"


def get_registration_service(request: Request) -> RegistrationService:
    """Resolve the `RegistrationService` stored on the FastAPI application state."""
    service: RegistrationService = request.app.state.registration_service
    return service


def get_verification_service(request: Request) -> VerificationService:
    """Resolve the `VerificationService` stored on the FastAPI application state."""
    service: VerificationService = request.app.state.verification_service
    return service


@router.get("/auth/{token}", response_class=PlainTextResponse)
def auth(
    token: str,
    service: VerificationService = Depends(get_verification_service),
) -> PlainTextResponse:
    """Return the email owning ``token``; unknown tokens are rejected by the error handlers."""
    account = service.auth(token)
    return PlainTextResponse(account.email)


@router.get("/register/{email}", response_class=PlainTextResponse)
def register(
    email: str,
    service: RegistrationService = Depends(get_registration_service),
) -> PlainTextResponse:
    """Find or create the account for ``email`` and mail its verification link."""
    try:
        registration = service.register(email)
    except ValueError:
        logger.info("registration rejected: invalid email %r", email)
        return PlainTextResponse(INVALID_EMAIL_MESSAGE, status_code=status.HTTP_400_BAD_REQUEST)

    if not registration.notified:
        return PlainTextResponse(NOTIFICATION_FAILED_MESSAGE, status_code=status.HTTP_502_BAD_GATEWAY)
    return PlainTextResponse(registration.account.email)
