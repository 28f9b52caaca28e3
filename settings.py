from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from persistence.paths import StorageConfig, project_root


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return int(raw)


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name, "").strip()
    path = Path(raw).expanduser() if raw else default
    return path.resolve()


@dataclass(frozen=True)
class Settings:
    # Persistence
    storage: StorageConfig

    # JWT
    jwt_secret: str
    jwt_alg: str
    access_token_ttl_seconds: int

    # Server
    host: str
    port: int

    # Logging
    log_level: str
    log_format: str
    debug_log_requests: bool


def get_settings() -> Settings:
    storage_dir = _env_path("STORAGE_DIR", project_root() / "storage")
    db_file = _env_path("DB_FILE", storage_dir / "db.json")
    seed_reports_dir = _env_path("SEED_REPORTS_DIR", project_root() / "seed" / "reports")

    # NOTE: default is insecure; set JWT_SECRET in production
    jwt_secret = os.getenv("JWT_SECRET", "dev_super_secret_change_me_before_deploying")
    jwt_alg = os.getenv("JWT_ALG", "HS256")
    access_token_ttl_seconds = _env_int("ACCESS_TOKEN_TTL_SECONDS", 15 * 60)

    host = os.getenv("HOST", "0.0.0.0")
    port = _env_int("PORT", 8080)

    log_level = os.getenv("LOG_LEVEL", "INFO")
    log_format = os.getenv("LOG_FORMAT", "plain")
    debug_log_requests = _env_bool("DEBUG_LOG_REQUESTS", False)

    return Settings(
        storage=StorageConfig(
            storage_dir=storage_dir,
            db_file=db_file,
            seed_reports_dir=seed_reports_dir,
        ),
        jwt_secret=jwt_secret,
        jwt_alg=jwt_alg,
        access_token_ttl_seconds=access_token_ttl_seconds,
        host=host,
        port=port,
        log_level=log_level,
        log_format=log_format,
        debug_log_requests=debug_log_requests,
    )
