from __future__ import annotations

import logging

import sentry_sdk
from fastapi import Depends, FastAPI, HTTPException, Request, Response, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sentry_sdk.integrations.fastapi import FastApiIntegration
from sqlalchemy.orm import Session

from .auth import (
    REFRESH,
    REFRESH_COOKIE_NAME,
    LoginRequest,
    TokenSubject,
    create_access_token,
    create_refresh_token,
    decode_token,
)
from .config import settings
from .db import Base, SessionLocal, engine, get_db
from .deps import get_current_user, get_user_by_email
from .log_config import configure_logging
from .models import User
from .routes import shift_windows
from .security import hash_password, verify_password
from .shifts import catalog
from .shifts.exceptions import (
    AlreadyActiveError,
    AlreadyInactiveError,
    DuplicateActiveWindowError,
    InvalidInstantError,
    InvalidWindowError,
    ShiftWindowError,
    TimezoneResolutionError,
    WindowNotFoundError,
)

configure_logging(settings)
logger = logging.getLogger(__name__)

if settings.sentry_dsn and settings.app_env not in {"development", "testing"}:
    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        integrations=[FastApiIntegration()],
        traces_sample_rate=0.1,
        send_default_pii=False,
        environment=settings.app_env,
    )

app = FastAPI(title="Patrol Shifts API", version="1.0.0")

if settings.cors_origins:
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

app.include_router(shift_windows.router)

ERROR_STATUS: dict[type[ShiftWindowError], int] = {
    InvalidWindowError: status.HTTP_400_BAD_REQUEST,
    InvalidInstantError: status.HTTP_400_BAD_REQUEST,
    TimezoneResolutionError: status.HTTP_400_BAD_REQUEST,
    DuplicateActiveWindowError: status.HTTP_409_CONFLICT,
    AlreadyActiveError: status.HTTP_409_CONFLICT,
    AlreadyInactiveError: status.HTTP_409_CONFLICT,
    WindowNotFoundError: status.HTTP_404_NOT_FOUND,
}


@app.exception_handler(ShiftWindowError)
async def shift_window_error_handler(request: Request, exc: ShiftWindowError) -> JSONResponse:
    status_code = ERROR_STATUS.get(type(exc), status.HTTP_400_BAD_REQUEST)
    logger.info("%s %s rejected: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=status_code, content={"detail": str(exc)})


class UserOut(BaseModel):
    id: int
    email: str
    name: str | None = None
    is_admin: bool = False
    role: str | None = None


class AuthResponse(BaseModel):
    authenticated: bool
    user: UserOut


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user: UserOut


def _user_to_subject(user: User) -> TokenSubject:
    return TokenSubject(user_id=user.id, email=user.email)


def _user_to_out(user: User) -> UserOut:
    return UserOut(
        id=user.id,
        email=user.email,
        name=user.name,
        is_admin=user.is_admin,
        role=user.role,
    )


def _set_refresh_cookie(response: Response, token: str) -> None:
    response.set_cookie(
        key=REFRESH_COOKIE_NAME,
        value=token,
        httponly=True,
        secure=settings.cookie_secure,
        samesite=settings.cookie_samesite,
        max_age=settings.refresh_token_ttl_days * 86400,
        domain=settings.cookie_domain,
        path="/",
    )


def _clear_refresh_cookie(response: Response) -> None:
    response.delete_cookie(
        key=REFRESH_COOKIE_NAME,
        domain=settings.cookie_domain,
        path="/",
    )


def _ensure_dev_user() -> User | None:
    if not settings.seed_dev_user:
        return None

    with SessionLocal() as db:
        existing = get_user_by_email(db, settings.seed_dev_email)
        if existing:
            return existing
        user = User(
            email=settings.seed_dev_email,
            name=settings.seed_dev_name,
            password_hash=hash_password(settings.seed_dev_password),
            is_admin=settings.seed_dev_is_admin,
            role="supervisor" if settings.seed_dev_is_admin else "operator",
        )
        db.add(user)
        db.commit()
        db.refresh(user)
        logger.info("Seeded development user %s", user.email)
        return user


def _ensure_default_windows(actor: User | None) -> None:
    if not settings.seed_shift_windows:
        return

    with SessionLocal() as db:
        created = catalog.seed_default_windows(db, actor_id=actor.id if actor else None)
    if created:
        logger.info("Seeded default shift windows: %s", ", ".join(created))


@app.on_event("startup")
def startup() -> None:
    if settings.app_env != "production":
        Base.metadata.create_all(bind=engine)
    actor = _ensure_dev_user()
    _ensure_default_windows(actor)


@app.get("/healthz")
def healthz() -> dict[str, str]:
    return {"status": "ok"}


@app.post("/auth/login", response_model=TokenResponse)
def login(payload: LoginRequest, response: Response, db: Session = Depends(get_db)) -> TokenResponse:
    user = get_user_by_email(db, payload.email)
    if not user or not verify_password(payload.password, user.password_hash):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid credentials")
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="User is inactive")

    subject = _user_to_subject(user)
    access_token = create_access_token(subject)
    refresh_token = create_refresh_token(subject)
    _set_refresh_cookie(response, refresh_token)
    return TokenResponse(access_token=access_token, user=_user_to_out(user))


@app.post("/auth/refresh", response_model=TokenResponse)
def refresh(request: Request, response: Response, db: Session = Depends(get_db)) -> TokenResponse:
    token = request.cookies.get(REFRESH_COOKIE_NAME)
    if not token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Missing refresh token")

    subject = decode_token(token, expected_type=REFRESH)
    if not subject:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid refresh token")

    user = db.get(User, subject.user_id)
    if not user or not user.is_active:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")

    new_subject = _user_to_subject(user)
    access_token = create_access_token(new_subject)
    refresh_token = create_refresh_token(new_subject)
    _set_refresh_cookie(response, refresh_token)
    return TokenResponse(access_token=access_token, user=_user_to_out(user))


@app.post("/auth/logout")
def logout(response: Response) -> dict[str, bool]:
    _clear_refresh_cookie(response)
    return {"ok": True}


@app.get("/me", response_model=AuthResponse)
def me(user: User = Depends(get_current_user)) -> AuthResponse:
    return AuthResponse(authenticated=True, user=_user_to_out(user))
