import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_int(name: str, default: int, min_value: int | None = None) -> int:
    raw = os.getenv(name)
    if raw is None:
        value = default
    else:
        try:
            value = int(raw)
        except ValueError:
            value = default
    if min_value is not None:
        return max(min_value, value)
    return value


@dataclass(frozen=True)
class Settings:
    app_name: str
    secret_key: str
    algorithm: str
    access_token_expire_minutes: int
    issuer: str
    cors_origins: tuple[str, ...]
    database_url: str
    sql_echo: bool
    log_level: str
    default_ideal_stock: int
    stock_lock_stripes: int


settings = Settings(
    app_name=os.getenv("APP_NAME", "Club Stock API"),
    secret_key=os.getenv("SECRET_KEY", "CHANGE_ME_IN_PRODUCTION_32_CHAR_MIN_SECRET_KEY"),
    algorithm=os.getenv("ALGORITHM", "HS256"),
    access_token_expire_minutes=_env_int("ACCESS_TOKEN_EXPIRE_MINUTES", 60, min_value=1),
    issuer=os.getenv("TOKEN_ISSUER", "clubstock-api"),
    cors_origins=tuple(
        origin.strip().rstrip("/")
        for origin in os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",")
        if origin.strip()
    ),
    database_url=os.getenv("DATABASE_URL", "sqlite:///./clubstock.db"),
    sql_echo=_env_bool("SQL_ECHO", False),
    log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
    default_ideal_stock=_env_int("DEFAULT_IDEAL_STOCK", 5, min_value=1),
    stock_lock_stripes=_env_int("STOCK_LOCK_STRIPES", 64, min_value=1),
)
