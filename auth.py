import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from jose import ExpiredSignatureError, JWTError, jwt
from passlib.context import CryptContext
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from config import Settings
from errors import AuthError
from schemas import User

logger = logging.getLogger(__name__)


class Identity(BaseModel):
    """Verified claims carried by a bearer token."""

    id: int
    email: str
    name: str


class IdentityService:
    """Password hashing and bearer token issue/verification."""

    def __init__(self, settings: Settings):
        self.secret_key = settings.jwt_secret
        self.algorithm = settings.jwt_algorithm
        self.expire_minutes = settings.access_token_expire_minutes
        self.pwd_context = CryptContext(
            schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=settings.bcrypt_rounds
        )

    def hash_password(self, password: str) -> str:
        return self.pwd_context.hash(password)

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        return self.pwd_context.verify(plain_password, hashed_password)

    def create_access_token(self, user: User, expires_delta: Optional[timedelta] = None) -> str:
        expire = datetime.now(timezone.utc) + (expires_delta or timedelta(minutes=self.expire_minutes))
        to_encode = {"id": user.id, "email": user.email, "name": user.name, "exp": expire}
        return jwt.encode(to_encode, self.secret_key, algorithm=self.algorithm)

    def decode_token(self, token: str) -> Identity:
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except ExpiredSignatureError:
            logger.warning("Rejected expired token")
            raise AuthError("Invalid token")
        except JWTError:
            logger.warning("Rejected malformed or forged token")
            raise AuthError("Invalid token")
        try:
            return Identity(**payload)
        except PydanticValidationError:
            logger.warning("Rejected token with missing claims")
            raise AuthError("Invalid token")

    def identity_from_header(self, authorization: Optional[str]) -> Identity:
        if not authorization or not authorization.startswith("Bearer "):
            raise AuthError("Unauthorized")
        return self.decode_token(authorization.split(" ", 1)[1])
