"""Authentication API endpoints."""

import logging
from collections.abc import Callable

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from sqlalchemy.orm import Session

from meco_auth.database import SessionLocal, get_db
from meco_auth.exceptions import AuthError
from meco_auth.schemas.auth import (
    ConfirmEmailRequest,
    EmailRequest,
    LoginRequest,
    LoginResponse,
    MessageResponse,
    RegisterRequest,
    ResetPasswordRequest,
)
from meco_auth.services.auth import AuthFlows, get_auth_flows

logger = logging.getLogger("meco_auth")

router = APIRouter(prefix="/api/v1/auth", tags=["Authentication"])

# Session source for work that runs after the response has been sent.
_session_factory: Callable[[], Session] | None = None


def _background_session() -> Session:
    return (_session_factory or SessionLocal)()


def _as_http_error(exc: AuthError) -> HTTPException:
    return HTTPException(status_code=exc.status_code, detail=exc.message)


@router.post("/register", response_model=MessageResponse, status_code=201)
def register(
    body: RegisterRequest,
    background_tasks: BackgroundTasks,
    db: Session = Depends(get_db),
    flows: AuthFlows = Depends(get_auth_flows),
) -> MessageResponse:
    """Register a new account. The confirmation email goes out after the response."""
    try:
        user = flows.register(db, body.name, body.email, body.password)
    except AuthError as e:
        raise _as_http_error(e) from None

    background_tasks.add_task(flows.send_registration_confirmation, _background_session, user.email)
    return MessageResponse(message="User registered successfully")


@router.post("/login", response_model=LoginResponse)
def login(
    body: LoginRequest,
    db: Session = Depends(get_db),
    flows: AuthFlows = Depends(get_auth_flows),
) -> LoginResponse:
    """Authenticate a confirmed account and receive a session token."""
    try:
        result = flows.login(db, body.email, body.password)
    except AuthError as e:
        raise _as_http_error(e) from None

    return LoginResponse(
        token=result.token,
        name=result.name,
        email=result.email,
        github_username=result.github_username,
    )


@router.get("/verify")
def verify_token(token: str, flows: AuthFlows = Depends(get_auth_flows)) -> dict:
    """Verify a session token without touching the database."""
    payload = flows.verify_session(token)

    if not payload:
        raise HTTPException(status_code=401, detail="Invalid or expired token")

    return {"valid": True, "id": payload["id"]}


@router.post("/forgot-password", response_model=MessageResponse)
def forgot_password(
    body: EmailRequest,
    db: Session = Depends(get_db),
    flows: AuthFlows = Depends(get_auth_flows),
) -> MessageResponse:
    """Mail a password reset link to an existing account."""
    try:
        flows.forgot_password(db, body.email)
    except AuthError as e:
        raise _as_http_error(e) from None

    return MessageResponse(message="Password reset email sent")


@router.post("/reset-password", response_model=MessageResponse)
def reset_password(
    body: ResetPasswordRequest,
    db: Session = Depends(get_db),
    flows: AuthFlows = Depends(get_auth_flows),
) -> MessageResponse:
    """Set a new password using a reset token."""
    try:
        flows.reset_password(db, body.token, body.new_password)
    except AuthError as e:
        raise _as_http_error(e) from None

    return MessageResponse(message="Password has been reset")


@router.post("/confirm-email", response_model=MessageResponse)
def confirm_email(
    body: ConfirmEmailRequest,
    db: Session = Depends(get_db),
    flows: AuthFlows = Depends(get_auth_flows),
) -> MessageResponse:
    """Confirm an account's email using a confirmation token."""
    try:
        flows.confirm_email(db, body.token)
    except AuthError as e:
        raise _as_http_error(e) from None

    return MessageResponse(message="Email has been confirmed")


@router.post("/send-confirmation-email", response_model=MessageResponse)
def send_confirmation_email(
    body: EmailRequest,
    db: Session = Depends(get_db),
    flows: AuthFlows = Depends(get_auth_flows),
) -> MessageResponse:
    """Send a fresh confirmation link to an unconfirmed account."""
    try:
        flows.resend_confirmation(db, body.email)
    except AuthError as e:
        raise _as_http_error(e) from None

    return MessageResponse(message="Confirmation email sent")
