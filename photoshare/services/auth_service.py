import datetime as dt
import uuid
from dataclasses import dataclass, field
from typing import FrozenSet, Optional, Tuple

from fastapi import HTTPException, status, Depends
from fastapi.security import OAuth2PasswordBearer
from jose import jwt, JWTError
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from photoshare.config import config
from photoshare.db.models.user import User
from photoshare.db.session import get_db

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/login", auto_error=False)


class UserNotFound(Exception):
    pass


@dataclass(frozen=True)
class Caller:
    # anonymous callers have id 0
    id: int = 0
    name: str = ""
    is_authenticated: bool = False
    is_admin: bool = False
    votes: FrozenSet[int] = field(default_factory=frozenset)

    @classmethod
    def anonymous(cls) -> "Caller":
        return cls()

    @classmethod
    def from_user(cls, user: User) -> "Caller":
        return cls(
            id=user.id,
            name=user.name,
            is_authenticated=True,
            is_admin=bool(user.is_admin),
            votes=frozenset(user.votes or []),
        )

    def has_voted(self, photo_id: int) -> bool:
        return photo_id in self.votes


class AuthService:
    @staticmethod
    def mint_access(user_id: int) -> str:
        now = dt.datetime.now(dt.timezone.utc)
        payload = {
            "iss": "photoshare-auth",
            "sub": str(user_id),
            "scope": "access",
            "iat": int(now.timestamp()),
            "exp": int((now + dt.timedelta(minutes=config.ACCESS_TTL_MIN)).timestamp()),
            "jti": str(uuid.uuid4()),
        }
        return jwt.encode(payload, config.JWT_SECRET, algorithm=config.JWT_ALG)

    @staticmethod
    async def get_user_by_email(db: AsyncSession, email: str) -> User:
        user = await db.scalar(select(User).where(User.email == email))
        if user is None:
            raise UserNotFound(f"No user with email '{email}'.")
        return user

    @staticmethod
    async def get_active(db: AsyncSession, user_id: int) -> Tuple[Optional[User], bool]:
        user = await db.scalar(
            select(User).where(User.id == user_id, User.is_active.is_(True))
        )
        return user, user is not None

    @classmethod
    async def verify_token(cls, token: str, db: AsyncSession) -> Caller:
        try:
            payload = jwt.decode(token, config.JWT_SECRET, algorithms=[config.JWT_ALG])
            if payload.get("scope") != "access":
                raise HTTPException(status.HTTP_401_UNAUTHORIZED, "Invalid token scope.")
            user_id = int(payload.get("sub"))
        except (JWTError, TypeError, ValueError):
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid token.")

        user, exists = await cls.get_active(db, user_id)
        if not exists:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found.")

        return Caller.from_user(user)

    @classmethod
    async def get_optional_caller(
        cls,
        token: Optional[str] = Depends(oauth2_scheme),
        db: AsyncSession = Depends(get_db),
    ) -> Caller:
        if not token:
            return Caller.anonymous()
        return await cls.verify_token(token, db)

    @classmethod
    async def get_current_caller(
        cls,
        token: Optional[str] = Depends(oauth2_scheme),
        db: AsyncSession = Depends(get_db),
    ) -> Caller:
        caller = await cls.get_optional_caller(token, db)
        if not caller.is_authenticated:
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Not authenticated.",
                headers={"WWW-Authenticate": "Bearer"},
            )
        return caller
