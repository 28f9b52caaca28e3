# auth_endpoints.py
from __future__ import annotations

import asyncio
import json
import logging
import secrets
import time
import uuid
from typing import Any

import jwt
from fastapi import APIRouter, Request
from pydantic import BaseModel, Field, field_validator

from api_errors import ApiError, ok
from login_limiter import LoginAttemptLimiter
from passwords import verify_password
from persistence import AuditLogRecord, Document, DocumentStore, SessionRecord, UserRecord
from persistence.document import find_by_id
from persistence.seed import DEMO_PASSWORD, iso_now
from settings import Settings

router = APIRouter(tags=["auth"])
logger = logging.getLogger(__name__)

REFRESH_TOKEN_BYTES = 36


# -------------------------------------------------------------------
# Request bodies
# -------------------------------------------------------------------
class LoginBody(BaseModel):
    email: str
    password: str = Field(min_length=1)
    rememberMe: bool | None = None

    @field_validator("email")
    @classmethod
    def _looks_like_email(cls, v: str) -> str:
        s = v.strip()
        local, _, domain = s.partition("@")
        if not local or not domain or " " in s:
            raise ValueError("Invalid email")
        return s


class RefreshBody(BaseModel):
    refreshToken: str = Field(min_length=10)


# -------------------------------------------------------------------
# App-owned state
# -------------------------------------------------------------------
def _store(request: Request) -> DocumentStore:
    return request.app.state.store


def _limiter(request: Request) -> LoginAttemptLimiter:
    return request.app.state.login_limiter


def _settings(request: Request) -> Settings:
    return request.app.state.settings


# -------------------------------------------------------------------
# Helpers
# -------------------------------------------------------------------
def client_ip(request: Request) -> str:
    forwarded = request.headers.get("x-forwarded-for", "").split(",")[0].strip()
    if forwarded:
        return forwarded
    if request.client and request.client.host:
        return request.client.host
    return "unknown"


def safe_json_snippet(payload: Any, max_len: int = 800) -> str:
    try:
        s = json.dumps(payload, ensure_ascii=False)
    except (TypeError, ValueError):
        return "[unserializable]"
    return s if len(s) <= max_len else s[:max_len] + "..."


def public_user(user: UserRecord) -> dict[str, Any]:
    return {
        "id": user.id,
        "orgId": user.orgId,
        "name": user.name,
        "email": user.email,
        "role": user.role,
        "status": user.status,
        "language": user.language,
        "theme": user.theme,
        "lastLoginAt": user.lastLoginAt,
    }


def _find_user_by_email(doc: Document, email: str) -> UserRecord | None:
    wanted = email.lower()
    for user in doc.users:
        if user.email.lower() == wanted:
            return user
    return None


def _find_live_session(doc: Document, refresh_token: str) -> SessionRecord | None:
    for sess in doc.sessions:
        if sess.refreshToken == refresh_token and not sess.revokedAt:
            return sess
    return None


def _issue_access_token(settings: Settings, user: UserRecord) -> str:
    now = int(time.time())
    payload = {
        "sub": user.id,
        "orgId": user.orgId,
        "role": user.role,
        "email": user.email,
        "name": user.name,
        "iat": now,
        "exp": now + settings.access_token_ttl_seconds,
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_alg)


def _bearer_claims(request: Request) -> dict[str, Any]:
    auth = request.headers.get("Authorization", "")
    if not auth.lower().startswith("bearer "):
        raise ApiError(code="UNAUTHORIZED", message="Unauthorized", status_code=401)
    token = auth.split(" ", 1)[1].strip()
    settings = _settings(request)
    try:
        return jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_alg])
    except jwt.PyJWTError:
        raise ApiError(code="UNAUTHORIZED", message="Unauthorized", status_code=401) from None


def _invalid_credentials() -> ApiError:
    return ApiError(code="INVALID_CREDENTIALS", message="Invalid credentials", status_code=401)


# -------------------------------------------------------------------
# Routes
# -------------------------------------------------------------------
@router.post("/auth/login")
async def login(request: Request, body: LoginBody) -> dict[str, Any]:
    store = _store(request)
    limiter = _limiter(request)
    ip = client_ip(request)

    # Counts this attempt up front, so concurrent wrong passwords cannot all
    # slip past the threshold while bcrypt runs. Fails fast with RateLimitedError.
    limiter.reserve(ip, body.email)

    user = _find_user_by_email(store.read(), body.email)
    if user is None:
        raise _invalid_credentials()

    if user.status in ("suspended", "locked"):
        limiter.release(ip, body.email)
        if user.status == "suspended":
            raise ApiError(code="USER_SUSPENDED", message="User suspended", status_code=403)
        raise ApiError(code="USER_LOCKED", message="User locked", status_code=403)

    if not await asyncio.to_thread(verify_password, body.password, user.passwordHash):
        raise _invalid_credentials()

    limiter.clear(ip, body.email)

    user_id = user.id
    user_agent = request.headers.get("user-agent", "")
    refresh_token = secrets.token_urlsafe(REFRESH_TOKEN_BYTES)

    def _record_login(doc: Document) -> UserRecord:
        current = find_by_id(doc.users, user_id)
        if current is None:
            raise _invalid_credentials()
        now = iso_now()
        current.lastLoginAt = now
        session = SessionRecord(
            id=f"sess_{uuid.uuid4().hex[:10]}",
            orgId=current.orgId,
            userId=current.id,
            refreshToken=refresh_token,
            createdAt=now,
            ip=ip,
            userAgent=user_agent,
        )
        doc.sessions.insert(0, session)
        doc.auditLogs.insert(
            0,
            AuditLogRecord(
                id=f"aud_{uuid.uuid4().hex[:10]}",
                orgId=current.orgId,
                userId=current.id,
                userEmail=current.email,
                action="auth.login",
                entity="session",
                entityId=session.id,
                createdAt=now,
                ip=ip,
                userAgent=user_agent,
                payloadSnippet=safe_json_snippet(
                    {"email": current.email, "rememberMe": bool(body.rememberMe)}
                ),
            ),
        )
        return current

    logged_in = await store.mutate(_record_login)

    return ok(
        request,
        {
            "accessToken": _issue_access_token(_settings(request), logged_in),
            "refreshToken": refresh_token,
            "user": public_user(logged_in),
        },
    )


@router.post("/auth/refresh")
async def refresh(request: Request, body: RefreshBody) -> dict[str, Any]:
    doc = _store(request).read()
    sess = _find_live_session(doc, body.refreshToken)
    if sess is None:
        raise ApiError(code="INVALID_REFRESH", message="Invalid refresh token", status_code=401)

    user = find_by_id(doc.users, sess.userId)
    if user is None or user.status != "active":
        raise ApiError(code="FORBIDDEN", message="Forbidden", status_code=403)

    return ok(
        request,
        {"accessToken": _issue_access_token(_settings(request), user), "user": public_user(user)},
    )


@router.post("/auth/logout")
async def logout(request: Request, body: RefreshBody) -> dict[str, Any]:
    store = _store(request)
    if _find_live_session(store.read(), body.refreshToken) is not None:

        def _revoke(doc: Document) -> None:
            sess = _find_live_session(doc, body.refreshToken)
            if sess is not None:
                sess.revokedAt = iso_now()

        await store.mutate(_revoke)
    return ok(request, {"success": True})


@router.get("/me")
async def me(request: Request) -> dict[str, Any]:
    claims = _bearer_claims(request)
    user = find_by_id(_store(request).read().users, str(claims.get("sub", "")))
    if user is None:
        raise ApiError(code="UNAUTHORIZED", message="Unauthorized", status_code=401)
    return ok(request, public_user(user))


@router.get("/auth/demo-accounts")
async def demo_accounts(request: Request) -> dict[str, Any]:
    users = _store(request).read().users
    return ok(
        request,
        {
            "password": DEMO_PASSWORD,
            "accounts": [{"email": u.email, "role": u.role, "status": u.status} for u in users],
        },
    )
