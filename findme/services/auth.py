# findme/services/auth.py
from datetime import datetime, timedelta
from typing import Any, Dict, Optional
import hashlib
import logging
import secrets
import uuid
from jose import jwt, JWTError
from pydantic import BaseModel
from findme.core.config import settings
from findme.core.errors import InvalidSessionError
from findme.repositories import actors as actors_repo
from findme.repositories import users as users_repo

logger = logging.getLogger(__name__)

# Password hashing using PBKDF2-HMAC-SHA256 (avoids bcrypt backend issues)
_PBKDF2_ITERATIONS = 100_000

# JWT config
ALGORITHM = "HS256"
INVALID_REFRESH_TOKEN = "Invalid Refresh Token: Refresh Token Not Found"


class TokenData(BaseModel):
    sub: Optional[str] = None
    typ: Optional[str] = None
    jti: Optional[str] = None


def hash_password(password: str) -> str:
    if password is None:
        password = ""
    salt = secrets.token_hex(16)
    dk = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt.encode("utf-8"), _PBKDF2_ITERATIONS)
    return f"pbkdf2_sha256${_PBKDF2_ITERATIONS}${salt}${dk.hex()}"


def verify_password(plain: str, hashed: str) -> bool:
    if plain is None:
        plain = ""
    try:
        scheme, iterations, salt, hashhex = hashed.split("$")
        iterations = int(iterations)
    except (AttributeError, ValueError):
        return False
    dk = hashlib.pbkdf2_hmac("sha256", plain.encode("utf-8"), salt.encode("utf-8"), iterations)
    return secrets.compare_digest(dk.hex(), hashhex)


def _encode(payload: Dict[str, Any]) -> str:
    return jwt.encode(payload, settings.SECRET_KEY, algorithm=ALGORITHM)


def create_access_token(subject: str, expires_delta: Optional[timedelta] = None) -> str:
    now = datetime.utcnow()
    exp = now + (expires_delta if expires_delta else timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES))
    return _encode({"sub": subject, "typ": "access", "iat": now, "exp": exp})


def create_refresh_token(subject: str, token_id: str, expires_delta: timedelta) -> str:
    now = datetime.utcnow()
    return _encode({"sub": subject, "typ": "refresh", "jti": token_id, "iat": now, "exp": now + expires_delta})


def decode_token(token: str, expected_type: str = "access") -> TokenData:
    """Raises JWTError for a bad signature, an expired token or the wrong token type."""
    payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[ALGORITHM])
    td = TokenData(sub=payload.get("sub"), typ=payload.get("typ"), jti=payload.get("jti"))
    if td.typ != expected_type or not td.sub:
        raise JWTError(f"expected {expected_type} token")
    return td


def decode_access_token(token: str) -> TokenData:
    return decode_token(token, "access")


def public_user(user: Dict[str, Any], user_type: Optional[str] = None) -> Dict[str, Any]:
    return {
        "id": user["id"],
        "email": user.get("email"),
        "user_metadata": user.get("user_metadata") or {},
        "user_type": user_type,
    }


async def issue_session(user: Dict[str, Any], user_type: Optional[str] = None) -> Dict[str, Any]:
    ttl = timedelta(days=settings.REFRESH_TOKEN_EXPIRE_DAYS)
    token_id = uuid.uuid4().hex
    await users_repo.store_refresh_token(token_id, user["id"], ttl)
    return {
        "access_token": create_access_token(user["id"]),
        "refresh_token": create_refresh_token(user["id"], token_id, ttl),
        "token_type": "bearer",
        "user": public_user(user, user_type),
    }


async def _valid_refresh_record(refresh_token: str) -> Dict[str, Any]:
    try:
        td = decode_token(refresh_token, "refresh")
    except JWTError:
        raise InvalidSessionError(INVALID_REFRESH_TOKEN)
    record = await users_repo.get_refresh_token(td.jti or "")
    if not record or record.get("revoked") or record["expires_at"] < datetime.utcnow():
        raise InvalidSessionError(INVALID_REFRESH_TOKEN)
    return record


async def rotate_session(refresh_token: str) -> Dict[str, Any]:
    """Exchange a refresh token for a new token pair; the old one is revoked."""
    record = await _valid_refresh_record(refresh_token)
    user = await users_repo.get_user(record["user_id"])
    if not user:
        raise InvalidSessionError(INVALID_REFRESH_TOKEN)
    if not await users_repo.revoke_refresh_token(record["id"]):
        # lost a race with another refresh using the same token
        raise InvalidSessionError(INVALID_REFRESH_TOKEN)
    user_type, _ = await actors_repo.resolve_actor_type(user["id"])
    return await issue_session(user, user_type)


async def revoke_session(refresh_token: str) -> bool:
    try:
        td = decode_token(refresh_token, "refresh")
    except JWTError:
        return False
    return await users_repo.revoke_refresh_token(td.jti or "")


async def issue_auth_code(user_id: str) -> str:
    code = secrets.token_urlsafe(32)
    await users_repo.store_auth_code(code, user_id, timedelta(minutes=settings.AUTH_CODE_EXPIRE_MINUTES))
    return code


async def exchange_auth_code(code: str) -> Optional[Dict[str, Any]]:
    """Returns the account for a valid one-time code, None otherwise."""
    user_id = await users_repo.consume_auth_code(code)
    if not user_id:
        logger.info("Auth code exchange failed: unknown or expired code")
        return None
    return await users_repo.get_user(user_id)
