import logging
import os
from datetime import datetime, timedelta, timezone
from enum import IntEnum
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Request, Response, status
from jose import jwt, JWTError
from passlib.context import CryptContext
from passlib.exc import UnknownHashError
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from .database import get_session
from .models import User
from .schemas import UserCreate, UserOut, UserLogin, Token

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])

SECRET_KEY = os.getenv("JWT_SECRET", "supersecretkey")
ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))
TOKEN_COOKIE = "catalog_token"

# Argon2 for new hashes; bcrypt kept so older hashes still verify.
pwd_context = CryptContext(schemes=["argon2", "bcrypt"], deprecated="auto")


class UserStatus(IntEnum):
    USER = 1
    ADMINISTRATOR = 2


def _allowed_statuses_from_env() -> frozenset:
    # Pending product-owner confirmation of whether more roles may write.
    raw = os.getenv("CATALOG_ALLOWED_STATUSES", str(int(UserStatus.ADMINISTRATOR)))
    return frozenset(int(part) for part in raw.split(",") if part.strip())


ALLOWED_STATUSES = _allowed_statuses_from_env()


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    try:
        return pwd_context.verify(plain_password, hashed_password)
    except (UnknownHashError, ValueError):
        # unrecognised or corrupt hash -> treat as authentication failure
        return False


def create_access_token(data: dict) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)


def decode_access_token(token: str) -> Optional[dict]:
    try:
        return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
    except JWTError:
        return None


def get_identity_token(request: Request) -> dict:
    """Resolve the identity token for the current request.

    The JWT is taken from the ``Authorization: Bearer`` header or, failing
    that, from the ``catalog_token`` cookie. Anonymous or invalid tokens
    resolve to ``{"userId": None}``.
    """
    token = None
    auth = request.headers.get("Authorization")
    if auth and auth.lower().startswith("bearer "):
        token = auth.split(None, 1)[1].strip()
    if not token:
        token = request.cookies.get(TOKEN_COOKIE)
    if not token:
        return {"userId": None}
    payload = decode_access_token(token)
    if payload is None:
        logger.info("Rejected an invalid or expired identity token")
        return {"userId": None}
    return {"userId": payload.get("userId")}


class AuthorizationGate:
    """Decides whether the caller behind an identity token may modify the catalog."""

    def __init__(self, session: AsyncSession, allowed_statuses=None):
        self.session = session
        self.allowed_statuses = frozenset(
            ALLOWED_STATUSES if allowed_statuses is None else allowed_statuses
        )

    async def allows(self, token) -> bool:
        user_id = (token or {}).get("userId")
        if user_id is None:
            return False
        # bools are ints, and int() would truncate floats
        if isinstance(user_id, str) and user_id.isascii() and user_id.isdigit():
            user_id = int(user_id)
        elif not isinstance(user_id, int) or isinstance(user_id, bool):
            logger.info("Identity token carries a non-integer userId %r", user_id)
            return False

        try:
            result = await self.session.execute(
                select(User.user_status).where(User.id == user_id)
            )
            user_status = result.scalar_one_or_none()
        except SQLAlchemyError:
            logger.warning("User lookup failed for id %s, treating as unknown user", user_id, exc_info=True)
            return False

        if user_status is None:
            logger.info("Identity token refers to unknown user %s", user_id)
            return False
        if user_status not in self.allowed_statuses:
            logger.info("User %s with status %s is not allowed to modify products", user_id, user_status)
            return False
        return True


async def get_authorization_gate(session: AsyncSession = Depends(get_session)) -> AuthorizationGate:
    return AuthorizationGate(session)


# ✅ Registration: new accounts are ordinary users
@router.post("/register", response_model=UserOut, status_code=201)
async def register_user(payload: UserCreate, session: AsyncSession = Depends(get_session)):
    if len(payload.password) < 8:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Password must be at least 8 characters long.",
        )
    try:
        result = await session.execute(select(User).where(User.email == payload.email))
        if result.scalar_one_or_none():
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="A user with this email already exists",
            )

        user = User(
            email=payload.email,
            full_name=payload.full_name,
            password_hash=get_password_hash(payload.password),
            user_status=int(UserStatus.USER),
        )
        session.add(user)
        await session.commit()
        await session.refresh(user)
        return user
    except IntegrityError:
        await session.rollback()
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="A user with this email already exists")
    except SQLAlchemyError:
        logger.exception("Registration failed for %s", payload.email)
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail="Database temporarily unavailable, try again later")


# ✅ Login (JSON); the token is also set as a cookie so rendered pages can use it
@router.post("/login", response_model=Token)
async def login_user(payload: UserLogin, response: Response, session: AsyncSession = Depends(get_session)):
    result = await session.execute(select(User).where(User.email == payload.email))
    user = result.scalar_one_or_none()

    if not user or not verify_password(payload.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid email or password",
        )

    access_token = create_access_token({"userId": user.id})
    response.set_cookie(TOKEN_COOKIE, access_token, max_age=ACCESS_TOKEN_EXPIRE_MINUTES * 60, path="/", httponly=True)
    return {"access_token": access_token, "token_type": "bearer"}
