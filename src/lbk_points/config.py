"""
Runtime configuration for the LBK points service.

Values are read from the environment (and an optional .env file) once at
startup and carried around as an immutable Settings object.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import find_dotenv, load_dotenv

DEFAULT_JWT_SECRET = "your-secret-key-change-this-in-production"
STARTING_BALANCE = 1000
HISTORY_LIMIT = 50


def _env(name: str, default: Optional[str] = None) -> Optional[str]:
    val = os.getenv(name)
    return val if val not in (None, "") else default


def _env_bool(name: str, default: bool = False) -> bool:
    val = _env(name)
    if val is None:
        return default
    return val.strip().lower() in ("1", "true", "yes", "on")


@dataclass(frozen=True)
class Settings:
    jwt_secret: str = DEFAULT_JWT_SECRET
    database_path: str = "users.db"
    database_url: Optional[str] = None
    host: str = "0.0.0.0"
    port: int = 3000
    jwt_ttl_hours: int = 24
    bcrypt_rounds: int = 12
    log_level: str = "INFO"
    log_dir: Path = Path("logs")
    sql_echo: bool = False
    app_name: str = "LBK Points API"

    @property
    def effective_database_url(self) -> str:
        """
        Explicit DATABASE_URL wins; otherwise a SQLite file at database_path.
        """
        if self.database_url:
            return self.database_url
        return f"sqlite+aiosqlite:///{self.database_path}"

    @property
    def uses_default_secret(self) -> bool:
        return self.jwt_secret == DEFAULT_JWT_SECRET


def load_settings() -> Settings:
    """
    Build Settings from the process environment.
    """
    load_dotenv(find_dotenv(usecwd=True), override=False)

    return Settings(
        jwt_secret=_env("JWT_SECRET", DEFAULT_JWT_SECRET),
        database_path=_env("DATABASE_PATH", "users.db"),
        database_url=_env("DATABASE_URL"),
        host=_env("HOST", "0.0.0.0"),
        port=int(_env("PORT", "3000")),
        jwt_ttl_hours=int(_env("JWT_TTL_HOURS", "24")),
        bcrypt_rounds=int(_env("BCRYPT_ROUNDS", "12")),
        log_level=_env("LOG_LEVEL", "INFO").upper(),
        log_dir=Path(_env("LOG_DIR", "logs")),
        sql_echo=_env_bool("SQL_ECHO", False),
    )
