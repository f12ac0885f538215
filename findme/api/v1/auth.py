# findme/api/v1/auth.py
import logging
from typing import Literal, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import JSONResponse, RedirectResponse
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError
from pydantic import BaseModel, EmailStr, model_validator
from pymongo.errors import DuplicateKeyError, PyMongoError

from findme.core.config import settings
from findme.core.errors import InvalidSessionError, MissingSessionError
from findme.models.actor import Actor, UserType
from findme.repositories import actors as actors_repo
from findme.repositories import users as users_repo
from findme.services.auth import (
    decode_access_token,
    exchange_auth_code,
    hash_password,
    issue_auth_code,
    issue_session,
    revoke_session,
    rotate_session,
    verify_password,
)

logger = logging.getLogger(__name__)

router = APIRouter()

ACCESS_COOKIE = "access_token"
REFRESH_COOKIE = "refresh_token"
AUTH_CODE_ERROR_PATH = "/auth/auth-code-error"
MIN_PASSWORD_LENGTH = 6


class SignupIn(BaseModel):
    email: EmailStr
    password: str
    confirm_password: str
    user_type: UserType
    name: Optional[str] = None
    company_name: Optional[str] = None

    @model_validator(mode="after")
    def _check(self):
        if self.password != self.confirm_password:
            raise ValueError("Passwords do not match")
        if len(self.password) < MIN_PASSWORD_LENGTH:
            raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        if self.user_type == "job_seeker" and not (self.name or "").strip():
            raise ValueError("Please enter your full name")
        if self.user_type == "company" and not (self.company_name or "").strip():
            raise ValueError("Please enter your company name")
        return self


class LoginIn(BaseModel):
    email: EmailStr
    password: str


class RefreshIn(BaseModel):
    refresh_token: str


class LogoutIn(BaseModel):
    refresh_token: Optional[str] = None


class SessionOut(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    user: dict


class AuthCodeOut(BaseModel):
    code: str
    expires_in: int


# Dependency to get the current actor
security = HTTPBearer(auto_error=False)


async def get_current_actor(
    request: Request,
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
) -> Actor:
    """
    Resolve the authenticated account and its actor record.
    No token at all -> MissingSessionError; a token we cannot trust
    (bad signature, expired, account gone) -> InvalidSessionError.
    """
    token = credentials.credentials if credentials else request.cookies.get(ACCESS_COOKIE)
    if not token:
        raise MissingSessionError()
    return await actor_from_token(token)


async def actor_from_token(token: str) -> Actor:
    try:
        td = decode_access_token(token)
    except JWTError:
        raise InvalidSessionError()
    user = await users_repo.get_user(td.sub)
    if not user:
        raise InvalidSessionError("User not found")
    user_type, profile = await actors_repo.resolve_actor_type(user["id"])
    return Actor(id=user["id"], email=user.get("email"), type=user_type, profile=profile)


def _set_session_cookies(response, session: dict) -> None:
    response.set_cookie(ACCESS_COOKIE, session["access_token"], httponly=True, samesite="lax",
                        max_age=settings.ACCESS_TOKEN_EXPIRE_MINUTES * 60)
    response.set_cookie(REFRESH_COOKIE, session["refresh_token"], httponly=True, samesite="lax",
                        max_age=settings.REFRESH_TOKEN_EXPIRE_DAYS * 24 * 3600)


@router.post("/auth/signup", status_code=201, response_model=SessionOut)
async def signup(payload: SignupIn):
    metadata = {"user_type": payload.user_type}
    if payload.name:
        metadata["name"] = payload.name.strip()
    if payload.company_name:
        metadata["company_name"] = payload.company_name.strip()
    try:
        user = await users_repo.create_user(payload.email, hash_password(payload.password), metadata)
    except DuplicateKeyError:
        raise HTTPException(status_code=409, detail="Email already registered")
    await actors_repo.provision_actor(user["id"], payload.user_type, user["email"], metadata)
    return await issue_session(user, payload.user_type)


@router.post("/auth/login", response_model=SessionOut)
async def login(payload: LoginIn):
    user = await users_repo.get_user_by_email(payload.email)
    if not user or not verify_password(payload.password, user["password_hash"]):
        raise HTTPException(status_code=401, detail="Invalid credentials")
    user_type, _ = await actors_repo.resolve_actor_type(user["id"])
    return await issue_session(user, user_type)


@router.post("/auth/refresh", response_model=SessionOut)
async def refresh(payload: RefreshIn):
    return await rotate_session(payload.refresh_token)


@router.post("/auth/logout")
async def logout(request: Request, payload: Optional[LogoutIn] = None):
    token = (payload.refresh_token if payload else None) or request.cookies.get(REFRESH_COOKIE)
    revoked = await revoke_session(token) if token else False
    response = JSONResponse({"signed_out": True, "revoked": revoked})
    response.delete_cookie(ACCESS_COOKIE)
    response.delete_cookie(REFRESH_COOKIE)
    return response


@router.get("/auth/user")
async def current_user(actor: Actor = Depends(get_current_actor)):
    return {"id": actor.id, "email": actor.email, "user_type": actor.type}


@router.post("/auth/codes", response_model=AuthCodeOut)
async def create_auth_code(actor: Actor = Depends(get_current_actor)):
    """
    Issue a one-time code for redirect-based sign-in completion
    (email confirmation links, social sign-in hand-off).
    """
    code = await issue_auth_code(actor.id)
    return {"code": code, "expires_in": settings.AUTH_CODE_EXPIRE_MINUTES * 60}


def _safe_redirect_path(path: Optional[str]) -> str:
    # only same-origin absolute paths
    if not path or not path.startswith("/") or path.startswith("//"):
        return "/dashboard"
    return path


@router.get("/auth/callback")
async def auth_callback(
    code: Optional[str] = Query(None),
    redirect_to: Optional[str] = Query(None, alias="redirectTo"),
    user_type: Optional[Literal["job_seeker", "company"]] = Query(None, alias="userType"),
):
    """
    Exchange an authorization code for a session, make sure the actor record
    exists, then send the browser on to `redirectTo` (default /dashboard).
    """
    user = await exchange_auth_code(code) if code else None
    if not user:
        return RedirectResponse(AUTH_CODE_ERROR_PATH, status_code=303)

    metadata = user.get("user_metadata") or {}
    final_type = user_type or metadata.get("user_type")
    if final_type:
        try:
            await actors_repo.provision_actor(user["id"], final_type, user.get("email"), metadata)
        except (PyMongoError, ValueError):
            # the session is still valid; the profile page lets the user finish setup
            logger.exception("Error creating profile in callback for %s", user["id"])

    session = await issue_session(user, final_type)
    response = RedirectResponse(_safe_redirect_path(redirect_to), status_code=303)
    _set_session_cookies(response, session)
    return response


@router.get("/auth/auth-code-error")
async def auth_code_error():
    return JSONResponse(
        status_code=400,
        content={"error": "auth_code_error", "message": "The sign-in link is invalid or has expired. Please sign in again."},
    )
