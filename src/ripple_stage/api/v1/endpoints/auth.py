# src/ripple_stage/api/v1/endpoints/auth.py
"""Authentication endpoints for the Ripple API."""

from __future__ import annotations

from fastapi import APIRouter, status

from ripple_stage.api.v1.dependencies import CurrentUserDep, SessionDep
from ripple_stage.core.security import create_access_token
from ripple_stage.schemas.user import LoginRequest, RegisterRequest, TokenResponse, UserOut
from ripple_stage.services import accounts

router = APIRouter(prefix="/auth", tags=["authentication"])


@router.post("/register", response_model=UserOut, status_code=status.HTTP_201_CREATED)
async def register(payload: RegisterRequest, db: SessionDep) -> UserOut:
    """Create an account."""
    user = accounts.register_user(db, payload.username, payload.email, payload.password)
    return UserOut.model_validate(user)


@router.post("/login", response_model=TokenResponse)
async def login(payload: LoginRequest, db: SessionDep) -> TokenResponse:
    """Exchange a username or email and password for a bearer token."""
    user = accounts.authenticate_user(db, payload.login, payload.password)
    return TokenResponse(
        access_token=create_access_token(user.id),
        user=UserOut.model_validate(user),
    )


@router.get("/session", response_model=UserOut)
async def read_session(current_user: CurrentUserDep) -> UserOut:
    """Return the user the bearer token belongs to."""
    return UserOut.model_validate(current_user)
