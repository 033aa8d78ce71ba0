import os
import warnings
from datetime import date

import redis
from dotenv import load_dotenv

basedir = os.path.abspath(os.path.dirname(__file__))
load_dotenv(os.path.join(basedir, ".env"))


def _env_bool(name, default):
    return os.environ.get(name, str(default)).lower() in ["true", "on", "1"]


def _env_date(name):
    """Parse a YYYY-MM-DD environment value, None if unset"""
    value = os.environ.get(name)
    if not value:
        return None
    try:
        return date.fromisoformat(value.strip())
    except ValueError:
        warnings.warn(f"Ignoring {name}={value!r}: expected YYYY-MM-DD", UserWarning)
        return None


class Config:
    # Database configuration - built from environment at initialization
    def __init__(self):
        """Initialize configuration with dynamic database URI"""
        self.SQLALCHEMY_DATABASE_URI = self._build_database_uri()

    def _build_database_uri(self):
        """Build database URI from environment variables"""
        database_url = os.environ.get("DATABASE_URL")

        if database_url:
            return database_url

        db_type = os.environ.get("DB_TYPE", "sqlite")

        if db_type.lower() == "postgresql":
            db_host = os.environ.get("DB_HOST") or "localhost"
            db_port = os.environ.get("DB_PORT") or "5432"
            db_name = os.environ.get("DB_NAME") or "nfl_pool_db"
            db_user = os.environ.get("DB_USER") or "nfl_user"
            db_password = os.environ.get("DB_PASSWORD") or "nfl_password"

            return f"postgresql+psycopg://{db_user}:{db_password}@{db_host}:{db_port}/{db_name}"
        else:
            # Default to SQLite for development
            return "sqlite:///" + os.path.join(basedir, "app.db")

    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Upstream API configuration
    NFL_API_BASE_URL = (
        os.environ.get("NFL_API_BASE_URL")
        or "https://site.api.espn.com/apis/site/v2/sports/football/nfl"
    )
    NFL_API_TIMEOUT = int(os.environ.get("NFL_API_TIMEOUT") or 30)  # seconds
    NFL_API_MAX_RETRIES = int(os.environ.get("NFL_API_MAX_RETRIES") or 2)
    NFL_API_MIN_REQUEST_INTERVAL = float(
        os.environ.get("NFL_API_MIN_REQUEST_INTERVAL") or 0.05
    )

    # Season configuration
    SEASON_YEAR = int(os.environ.get("SEASON_YEAR") or 2025)
    SEASON_WINDOW_START = _env_date("SEASON_WINDOW_START")  # default Aug 1
    SEASON_WINDOW_END = _env_date("SEASON_WINDOW_END")  # default Mar 1, exclusive

    # Standings resolution
    STANDINGS_CACHE_HOURS = float(os.environ.get("STANDINGS_CACHE_HOURS") or 4)
    STANDINGS_REFRESH_HOURS = float(os.environ.get("STANDINGS_REFRESH_HOURS") or 4)
    BACKFILL_MAX_WORKERS = int(os.environ.get("BACKFILL_MAX_WORKERS") or 8)
    DERIVE_WEEKLY_SCOREBOARDS = _env_bool("DERIVE_WEEKLY_SCOREBOARDS", True)
    STANDINGS_REFERENCE_FALLBACK = _env_bool("STANDINGS_REFERENCE_FALLBACK", True)

    # League settings
    ROSTER_CAPACITY = int(os.environ.get("ROSTER_CAPACITY") or 10)
    SAVE_DEBOUNCE_SECONDS = float(os.environ.get("SAVE_DEBOUNCE_SECONDS") or 0.5)
    TIMEZONE = os.environ.get("TIMEZONE", "UTC")  # Default to UTC if not specified

    # Caching configuration
    CACHE_TYPE = os.environ.get("CACHE_TYPE", "RedisCache")
    CACHE_DEFAULT_TIMEOUT = int(
        os.environ.get("CACHE_DEFAULT_TIMEOUT", 300)
    )  # 5 minutes
    CACHE_REDIS_URL = os.environ.get("CACHE_REDIS_URL", "redis://localhost:6379/0")
    CACHE_KEY_PREFIX = "nfl_pool:"

    # Rate limiting
    RATELIMIT_ENABLED = _env_bool("RATELIMIT_ENABLED", True)

    # Scheduler configuration
    SCHEDULER_ENABLED = _env_bool("SCHEDULER_ENABLED", True)

    # Logging configuration
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
    LOG_TO_CONSOLE = _env_bool("LOG_TO_CONSOLE", True)
    LOG_TO_FILE = _env_bool("LOG_TO_FILE", True)
    LOG_DIR = os.environ.get("LOG_DIR", "logs")

    # Environment detection
    FLASK_ENV = os.environ.get("FLASK_ENV", "development")
    DEBUG = FLASK_ENV == "development"
    TESTING = False


class DevelopmentConfig(Config):
    """Development configuration with helpful defaults"""

    DEBUG = True
    SQLALCHEMY_ECHO = _env_bool("SQLALCHEMY_ECHO", False)

    def __init__(self):
        super().__init__()
        # Fallback to SimpleCache if Redis isn't available in development
        if self.CACHE_TYPE != "RedisCache":
            return
        try:
            redis_client = redis.Redis.from_url(self.CACHE_REDIS_URL)
            redis_client.ping()
        except redis.exceptions.ConnectionError:
            self.CACHE_TYPE = "SimpleCache"
            warnings.warn(
                "🔶 Redis not available, falling back to SimpleCache for development.",
                UserWarning,
            )


class ProductionConfig(Config):
    """Production configuration"""

    DEBUG = False

    def __init__(self):
        super().__init__()  # Call parent __init__ to build database URI

        if not os.environ.get("DATABASE_URL") and os.environ.get("DB_TYPE", "sqlite") == "sqlite":
            warnings.warn(
                "🚨 PRODUCTION WARNING: no DATABASE_URL set, using local SQLite file.",
                UserWarning,
            )


class TestingConfig(Config):
    """Testing configuration"""

    TESTING = True
    DEBUG = False
    CACHE_TYPE = "SimpleCache"
    RATELIMIT_ENABLED = False
    SCHEDULER_ENABLED = False
    LOG_TO_CONSOLE = False
    LOG_TO_FILE = False
    NFL_API_MAX_RETRIES = 1
    DERIVE_WEEKLY_SCOREBOARDS = False

    def _build_database_uri(self):
        return "sqlite:///:memory:"


# Configuration mapping
config = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
    "default": DevelopmentConfig,
}
