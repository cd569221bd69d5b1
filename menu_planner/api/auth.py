"""
Authentication API: staff signup, login throttling, JWT issue and verification
"""
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt
from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.concurrency import run_in_threadpool
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import BaseModel
from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from menu_planner.config import get_settings
from menu_planner.database import get_db
from menu_planner.models.user import User, UserRole, StaffDirectoryEntry
from menu_planner.services.login_throttle import login_throttle
from menu_planner.utils.db_compat import is_unique_violation
from menu_planner.utils.logger import get_logger, log_auth_event
from menu_planner.utils.validators import (
    PASSWORD_REQUIREMENTS,
    is_strong_password,
    normalize_username,
)

router = APIRouter()
settings = get_settings()
logger = get_logger(__name__)

# auto_error=False so a missing header produces our own 401 message
security = HTTPBearer(auto_error=False)

INVALID_CREDENTIALS = "Invalid credentials."
SIGNUP_NOT_PERMITTED = "Signup not permitted."


# --- Pydantic Schemas ---

class Credentials(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None


class TokenResponse(BaseModel):
    token: str


class UserResponse(BaseModel):
    id: int
    username: str
    role: UserRole

    class Config:
        from_attributes = True


# --- Password hashing & tokens ---

def get_password_hash(password: str) -> str:
    salt = bcrypt.gensalt(rounds=settings.BCRYPT_ROUNDS)
    return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash
        return False


# Compared against when the user does not exist, to keep timing uniform
_DUMMY_HASH = get_password_hash("not-a-real-password")


def create_access_token(user: User, expires_delta: Optional[timedelta] = None) -> str:
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    payload = {
        "id": user.id,
        "username": user.username,
        "role": user.role.value if isinstance(user.role, UserRole) else user.role,
        "exp": expire,
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict:
    try:
        return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except jwt.InvalidTokenError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token.",
            headers={"WWW-Authenticate": "Bearer"},
        )


# --- Dependencies ---

async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db),
) -> User:
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Authentication token is missing.",
            headers={"WWW-Authenticate": "Bearer"},
        )

    payload = decode_access_token(credentials.credentials)
    user_id = payload.get("id")
    if user_id is None:
        raise HTTPException(status_code=401, detail="Invalid or expired token.")

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None:
        raise HTTPException(status_code=401, detail="Invalid or expired token.")
    return user


async def require_admin(current_user: User = Depends(get_current_user)) -> User:
    if not current_user.is_admin:
        raise HTTPException(status_code=403, detail="Admin access required.")
    return current_user


def client_ip(request: Request) -> str:
    """
    Address used to key the login throttle.

    X-Forwarded-For is only read when the socket peer is one of
    TRUSTED_PROXIES. The header is then walked from the nearest hop back, and
    the first address that is not a trusted proxy is the client. Entries
    further left were written by the client and are ignored.
    """
    peer = request.client.host if request.client else "unknown"
    trusted = set(settings.TRUSTED_PROXIES)
    if peer not in trusted:
        return peer

    forwarded = request.headers.get("x-forwarded-for")
    if not forwarded:
        return peer
    hops = [hop.strip() for hop in forwarded.split(",") if hop.strip()]
    for hop in reversed(hops):
        if hop not in trusted:
            return hop
    return hops[0] if hops else peer


# --- Helpers ---

async def _create_user(db: AsyncSession, username: str, password: str, role: UserRole) -> User:
    existing = await db.execute(select(User.id).where(User.username == username))
    if existing.scalar_one_or_none() is not None:
        raise HTTPException(status_code=409, detail="Username already exists.")

    password_hash = await run_in_threadpool(get_password_hash, password)
    user = User(username=username, password_hash=password_hash, role=role)
    db.add(user)
    try:
        await db.flush()
    except IntegrityError as e:
        # Lost a race with a concurrent signup for the same name
        await db.rollback()
        if is_unique_violation(e):
            raise HTTPException(status_code=409, detail="Username already exists.")
        raise
    await db.commit()
    await db.refresh(user)
    return user


async def _login(request: Request, data: Credentials, db: AsyncSession, role: UserRole) -> TokenResponse:
    username = normalize_username(data.username)
    if not username or not data.password:
        raise HTTPException(status_code=400, detail="Username and password are required.")

    ip = client_ip(request)
    key = (ip, username)
    retry_after = login_throttle.retry_after(key)
    if retry_after is not None:
        log_auth_event(logger, "login_throttled", username, ip)
        raise HTTPException(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail="Too many failed login attempts. Try again later.",
            headers={"Retry-After": str(retry_after)},
        )

    result = await db.execute(
        select(User).where(User.username == username, User.role == role)
    )
    user = result.scalar_one_or_none()

    if user is None:
        await run_in_threadpool(verify_password, data.password, _DUMMY_HASH)
        valid = False
    else:
        valid = await run_in_threadpool(verify_password, data.password, user.password_hash)

    if not valid:
        login_throttle.record_failure(key)
        log_auth_event(logger, "login_failed", username, ip)
        raise HTTPException(
            status_code=401,
            detail=INVALID_CREDENTIALS,
            headers={"WWW-Authenticate": "Bearer"},
        )

    login_throttle.reset(key)
    log_auth_event(logger, "login", username, ip)
    return TokenResponse(token=create_access_token(user))


# --- Endpoints ---

@router.post("/signup", response_model=TokenResponse)
async def signup(data: Credentials, db: AsyncSession = Depends(get_db)):
    """Self-service staff signup, allowed only for names in the staff directory"""
    username = normalize_username(data.username)
    password = data.password or ""
    if not username or not password:
        raise HTTPException(status_code=400, detail="Invalid signup request.")

    eligible = await db.execute(
        select(StaffDirectoryEntry.id)
        .where(func.lower(func.trim(StaffDirectoryEntry.full_name)) == username)
        .limit(1)
    )
    if eligible.scalar_one_or_none() is None:
        log_auth_event(logger, "signup_rejected", username)
        raise HTTPException(status_code=403, detail=SIGNUP_NOT_PERMITTED)

    if not is_strong_password(password):
        raise HTTPException(status_code=400, detail=PASSWORD_REQUIREMENTS)

    user = await _create_user(db, username, password, UserRole.STAFF)
    log_auth_event(logger, "signup", username)
    return TokenResponse(token=create_access_token(user))


@router.post("/login", response_model=TokenResponse)
async def login(request: Request, data: Credentials, db: AsyncSession = Depends(get_db)):
    return await _login(request, data, db, UserRole.STAFF)


@router.post("/admin/login", response_model=TokenResponse)
async def admin_login(request: Request, data: Credentials, db: AsyncSession = Depends(get_db)):
    return await _login(request, data, db, UserRole.ADMIN)


@router.post("/admin/signup", response_model=TokenResponse)
async def admin_signup(
    data: Credentials,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(require_admin),
):
    """Create another admin account. Only an existing admin may do this."""
    username = normalize_username(data.username)
    password = data.password or ""
    if not username or not password:
        raise HTTPException(status_code=400, detail="Username and password are required.")
    if not is_strong_password(password):
        raise HTTPException(status_code=400, detail=PASSWORD_REQUIREMENTS)

    user = await _create_user(db, username, password, UserRole.ADMIN)
    log_auth_event(logger, "admin_created", username)
    return TokenResponse(token=create_access_token(user))


@router.get("/me", response_model=UserResponse)
async def get_me(current_user: User = Depends(get_current_user)):
    return current_user
