"""
Runtime configuration.

Settings come from environment variables, optionally seeded from a ``.env``
file in the working directory.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from dotenv import load_dotenv

from .errors import ValidationError

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def load_env(env_path: Optional[Path] = None) -> bool:
    """Load .env from the project root if present. Existing variables win."""
    env_path = env_path or Path.cwd() / ".env"
    if not env_path.exists():
        return False
    return load_dotenv(dotenv_path=env_path, override=False)


def _int_setting(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValidationError(f"{key} must be an integer, got {raw!r}")
    if value < 1:
        raise ValidationError(f"{key} must be at least 1, got {value}")
    return value


@dataclass(frozen=True)
class Settings:
    db_path: Path = Path("data/jobboard.db")
    log_level: str = "INFO"
    log_dir: Path = Path("logs")
    match_candidates: int = 50
    match_limit: int = 20
    import_workers: int = 1

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "Settings":
        env = os.environ if env is None else env
        log_level = (env.get("JOBBOARD_LOG_LEVEL") or cls.log_level).upper()
        if log_level not in LOG_LEVELS:
            raise ValidationError(f"JOBBOARD_LOG_LEVEL must be one of {', '.join(LOG_LEVELS)}, got {log_level!r}")
        return cls(
            db_path=Path(env.get("JOBBOARD_DB") or cls.db_path),
            log_level=log_level,
            log_dir=Path(env.get("JOBBOARD_LOG_DIR") or cls.log_dir),
            match_candidates=_int_setting(env, "JOBBOARD_MATCH_CANDIDATES", cls.match_candidates),
            match_limit=_int_setting(env, "JOBBOARD_MATCH_LIMIT", cls.match_limit),
            import_workers=_int_setting(env, "JOBBOARD_IMPORT_WORKERS", cls.import_workers),
        )
