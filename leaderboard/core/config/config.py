"""
Settings for the leaderboard service, read from the environment.

``Config`` is a class used as a namespace. ``Config.load()`` runs on import
and fills the class attributes from environment variables; a ``.env`` file
is honored through python-dotenv. A value that does not parse, or falls
outside its bounds, is replaced by its default and the problem is recorded
in ``Config.load_warnings``. Loading never raises.

``Config.validate()`` is called once by the entry point. It cross-checks
values, creates the data and log directories, and raises only when
``ENVIRONMENT=production``.

Variables (all optional)
------------------------
DATABASE_PATH                              SQLite file, default data/score.db
DATABASE_POOL_SIZE                         pooled connections, default 5
DATABASE_POOL_TIMEOUT                      seconds to wait for a connection, default 30
DATABASE_BUSY_TIMEOUT_MS                   SQLite lock wait, default 5000
DATABASE_ECHO                              log SQL statements, default false
DATABASE_BOOTSTRAP_HEALTH_TIMEOUT_SECONDS  startup health check bound, default 5
LEADERBOARD_DEFAULT_LIMIT                  distinct scores per top-N, default 10
LEADERBOARD_MAX_LIMIT                      largest limit accepted over HTTP, default 100
API_HOST / API_PORT                        listen address, default 0.0.0.0:8080
CORS_ALLOW_ORIGINS                         comma separated, default *
ENVIRONMENT                                development | testing | production
LOG_LEVEL                                  default INFO
LOG_JSON                                   JSON console output, default: production only
LOG_FILE_ENABLED / LOGS_DIR                daily JSON log file, default off / logs
"""

import logging
import os
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, TypeVar

from dotenv import load_dotenv

load_dotenv()

T = TypeVar("T")

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _parse_bool(raw: str) -> bool:
    value = raw.strip().lower()
    if value in ("1", "true", "yes", "on"):
        return True
    if value in ("0", "false", "no", "off"):
        return False
    raise ValueError("expected true/false, yes/no, on/off or 1/0")


def _parse_list(raw: str) -> List[str]:
    items = [item.strip() for item in raw.split(",") if item.strip()]
    if not items:
        raise ValueError("expected at least one comma separated item")
    return items


class Config:
    """
    Process-wide settings.

    >>> Config.DATABASE_POOL_SIZE
    5
    """

    PROJECT_ROOT = Path(__file__).resolve().parents[3]

    # Database
    DATABASE_PATH: str = str(PROJECT_ROOT / "data" / "score.db")
    DATABASE_POOL_SIZE: int = 5
    DATABASE_POOL_TIMEOUT: float = 30.0
    DATABASE_BUSY_TIMEOUT_MS: int = 5000
    DATABASE_ECHO: bool = False
    DATABASE_BOOTSTRAP_HEALTH_TIMEOUT_SECONDS: float = 5.0

    # Leaderboard
    LEADERBOARD_DEFAULT_LIMIT: int = 10
    LEADERBOARD_MAX_LIMIT: int = 100

    # API
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 8080
    CORS_ALLOW_ORIGINS: List[str] = ["*"]

    # Environment & logging
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    LOG_JSON: Optional[bool] = None
    LOG_FILE_ENABLED: bool = False
    LOGS_DIR: str = str(PROJECT_ROOT / "logs")

    load_warnings: Dict[str, str] = {}
    _validated: bool = False

    # =========================================================================
    # Parsing
    # =========================================================================

    @classmethod
    def _env(
        cls,
        key: str,
        default: T,
        parse: Callable[[str], T],
        low: Optional[float] = None,
        high: Optional[float] = None,
    ) -> T:
        raw = os.getenv(key)
        if raw is None or not raw.strip():
            return default

        try:
            value = parse(raw.strip())
        except ValueError as exc:
            return cls._fallback(key, default, f"{key}={raw!r} is invalid: {exc}")

        if low is not None and value < low:
            return cls._fallback(key, default, f"{key}={value} is below {low}")
        if high is not None and value > high:
            return cls._fallback(key, default, f"{key}={value} is above {high}")

        return value

    @classmethod
    def _fallback(cls, key: str, default: Any, problem: str) -> Any:
        cls.load_warnings[key] = problem
        # Runs before logging is configured; the stdlib last-resort handler prints it
        logging.getLogger(__name__).warning("%s; using default %r", problem, default)
        return default

    @classmethod
    def _path(cls, raw: str) -> str:
        path = Path(raw).expanduser()
        return str(path if path.is_absolute() else cls.PROJECT_ROOT / path)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    @classmethod
    def load(cls) -> None:
        """(Re)read every setting from the environment."""
        cls.load_warnings = {}

        cls.DATABASE_PATH = cls._path(cls._env("DATABASE_PATH", "data/score.db", str))
        cls.DATABASE_POOL_SIZE = cls._env("DATABASE_POOL_SIZE", 5, int, low=1, high=100)
        cls.DATABASE_POOL_TIMEOUT = cls._env(
            "DATABASE_POOL_TIMEOUT", 30.0, float, low=0.1, high=600
        )
        cls.DATABASE_BUSY_TIMEOUT_MS = cls._env(
            "DATABASE_BUSY_TIMEOUT_MS", 5000, int, low=0, high=600_000
        )
        cls.DATABASE_ECHO = cls._env("DATABASE_ECHO", False, _parse_bool)
        cls.DATABASE_BOOTSTRAP_HEALTH_TIMEOUT_SECONDS = cls._env(
            "DATABASE_BOOTSTRAP_HEALTH_TIMEOUT_SECONDS", 5.0, float, low=0.1
        )

        cls.LEADERBOARD_DEFAULT_LIMIT = cls._env(
            "LEADERBOARD_DEFAULT_LIMIT", 10, int, low=0, high=10_000
        )
        cls.LEADERBOARD_MAX_LIMIT = cls._env(
            "LEADERBOARD_MAX_LIMIT", 100, int, low=1, high=10_000
        )

        cls.API_HOST = cls._env("API_HOST", "0.0.0.0", str)
        cls.API_PORT = cls._env("API_PORT", 8080, int, low=1, high=65535)
        cls.CORS_ALLOW_ORIGINS = cls._env("CORS_ALLOW_ORIGINS", ["*"], _parse_list)

        cls.ENVIRONMENT = cls._env("ENVIRONMENT", "development", str.lower)
        cls.LOG_LEVEL = cls._env("LOG_LEVEL", "INFO", str.upper)
        cls.LOG_JSON = cls._env("LOG_JSON", None, _parse_bool)
        cls.LOG_FILE_ENABLED = cls._env("LOG_FILE_ENABLED", False, _parse_bool)
        cls.LOGS_DIR = cls._path(cls._env("LOGS_DIR", "logs", str))

    @classmethod
    def validate(cls) -> None:
        """
        Cross-check loaded values and prepare directories. Idempotent.

        Problems are logged as warnings; in production the first run with
        problems raises ValueError instead.
        """
        if cls._validated:
            return

        logger = logging.getLogger(__name__)
        problems: List[str] = []

        if cls.LEADERBOARD_DEFAULT_LIMIT > cls.LEADERBOARD_MAX_LIMIT:
            problems.append(
                f"LEADERBOARD_DEFAULT_LIMIT={cls.LEADERBOARD_DEFAULT_LIMIT} exceeds "
                f"LEADERBOARD_MAX_LIMIT={cls.LEADERBOARD_MAX_LIMIT}; clamped"
            )
            cls.LEADERBOARD_DEFAULT_LIMIT = cls.LEADERBOARD_MAX_LIMIT

        if cls.LOG_LEVEL not in _LOG_LEVELS:
            problems.append(f"LOG_LEVEL={cls.LOG_LEVEL!r} is not a level name; using INFO")
            cls.LOG_LEVEL = "INFO"

        directories = [Path(cls.DATABASE_PATH).parent]
        if cls.LOG_FILE_ENABLED:
            directories.append(Path(cls.LOGS_DIR))
        for directory in directories:
            try:
                directory.mkdir(parents=True, exist_ok=True)
            except OSError as exc:
                problems.append(f"cannot create {directory}: {exc}")

        problems.extend(cls.load_warnings.values())

        for problem in problems:
            logger.warning(f"Configuration: {problem}")
        if cls.is_production() and "*" in cls.CORS_ALLOW_ORIGINS:
            logger.warning("Configuration: CORS allows any origin in production")

        if problems and cls.is_production():
            raise ValueError(f"Invalid production configuration: {'; '.join(problems)}")

        cls._validated = True

    @classmethod
    def is_production(cls) -> bool:
        return cls.ENVIRONMENT == "production"

    @classmethod
    def get_config_summary(cls) -> Dict[str, Any]:
        """Non-sensitive settings for the startup log line."""
        return {
            "environment": cls.ENVIRONMENT,
            "log_level": cls.LOG_LEVEL,
            "database_path": cls.DATABASE_PATH,
            "database_pool_size": cls.DATABASE_POOL_SIZE,
            "database_pool_timeout": cls.DATABASE_POOL_TIMEOUT,
            "leaderboard_default_limit": cls.LEADERBOARD_DEFAULT_LIMIT,
            "leaderboard_max_limit": cls.LEADERBOARD_MAX_LIMIT,
            "api_host": cls.API_HOST,
            "api_port": cls.API_PORT,
        }


Config.load()
