import os
from typing import List

from pydantic import BaseModel, Field


def _env_bool(name: str, default: bool) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


class Settings(BaseModel):
    database_url: str = "sqlite:///./ecommerce.db"
    db_timeout: float = Field(10.0, gt=0, description="Seconds to wait on connect / locked database")
    jwt_secret: str = "dev-secret-change"
    jwt_algorithm: str = "HS256"
    access_token_expire_minutes: int = 60 * 24 * 7  # 7 days
    bcrypt_rounds: int = Field(12, ge=4, le=31)
    cors_origins: List[str] = Field(default_factory=lambda: ["*"])
    seed_products: bool = True
    log_level: str = "INFO"
    port: int = 4000

    @classmethod
    def from_env(cls) -> "Settings":
        origins = os.getenv("CORS_ORIGINS", "*")
        return cls(
            database_url=os.getenv("DATABASE_URL", "sqlite:///./ecommerce.db"),
            db_timeout=float(os.getenv("DB_TIMEOUT", 10)),
            jwt_secret=os.getenv("JWT_SECRET", "dev-secret-change"),
            jwt_algorithm=os.getenv("JWT_ALGORITHM", "HS256"),
            access_token_expire_minutes=int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", 60 * 24 * 7)),
            bcrypt_rounds=int(os.getenv("BCRYPT_ROUNDS", 12)),
            cors_origins=[o.strip() for o in origins.split(",") if o.strip()],
            seed_products=_env_bool("SEED_PRODUCTS", True),
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            port=int(os.getenv("PORT", 4000)),
        )
