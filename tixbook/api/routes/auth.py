from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, HTTPException, status
from pydantic import BaseModel, ConfigDict, Field

from tixbook.auth.service import (
    DuplicateUsernameError,
    InvalidCredentialsError,
    InvalidRegistrationError,
    UserNotFoundError,
)
from tixbook.dependencies.auth import AppSettingsDep, AuthServiceDep
from tixbook.security.tokens import BadSignatureError, SubjectMismatchError, TokenExpiredError

router = APIRouter(prefix="/api/auth", tags=["auth"])

_CREDENTIALS_FAILED = "Invalid credentials"


class RegisterRequest(BaseModel):
    username: str = Field(..., min_length=1, max_length=150)
    email: str = Field(..., min_length=3, max_length=255)
    password: str = Field(..., min_length=1)


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class ValidateTokenRequest(BaseModel):
    token: str = Field(..., min_length=1)
    username: str = Field(..., min_length=1)


class UserResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    username: str
    email: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


class TokenValidationResponse(BaseModel):
    valid: bool
    subject: str
    issued_at: datetime
    expires_at: datetime


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(payload: RegisterRequest, service: AuthServiceDep) -> UserResponse:
    try:
        user = await service.register(username=payload.username, email=payload.email, password=payload.password)
    except DuplicateUsernameError as exc:
        raise HTTPException(status_code=409, detail=str(exc)) from exc
    except InvalidRegistrationError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    return UserResponse.model_validate(user)


@router.post("/login", response_model=TokenResponse)
async def login(payload: LoginRequest, service: AuthServiceDep, settings: AppSettingsDep) -> TokenResponse:
    try:
        token = await service.login(username=payload.username, password=payload.password)
    except UserNotFoundError as exc:
        detail = _CREDENTIALS_FAILED if settings.mask_credential_errors else "User not found"
        raise HTTPException(status_code=401, detail=detail) from exc
    except InvalidCredentialsError as exc:
        raise HTTPException(status_code=401, detail=_CREDENTIALS_FAILED) from exc
    return TokenResponse(access_token=token)


@router.post("/validate", response_model=TokenValidationResponse)
async def validate_token(payload: ValidateTokenRequest, service: AuthServiceDep) -> TokenValidationResponse:
    try:
        claims = service.validate_token(payload.token, payload.username)
    except BadSignatureError as exc:
        raise HTTPException(status_code=401, detail="Bad signature") from exc
    except TokenExpiredError as exc:
        raise HTTPException(status_code=401, detail="Token expired") from exc
    except SubjectMismatchError as exc:
        raise HTTPException(status_code=401, detail="Subject mismatch") from exc
    return TokenValidationResponse(
        valid=True,
        subject=claims.subject,
        issued_at=claims.issued_at,
        expires_at=claims.expires_at,
    )
