# config/base.py
import os

DEFAULT_RECORD_KINDS = "customer,employee,staff"
TRUTHY = frozenset({"1", "true", "yes", "on"})
FALSY = frozenset({"0", "false", "no", "off"})


def _coerce_bool(value, default=False):
    """Read an env-style flag; unrecognised values fall back to ``default``."""
    if isinstance(value, bool):
        return value
    token = str(value).strip().lower() if value is not None else ""
    if token in TRUTHY:
        return True
    if token in FALSY:
        return False
    return default


def _parse_kind_list(value):
    """Lower-cased kinds from a comma-separated string, first occurrence wins."""
    kinds = (part.strip().lower() for part in (value or "").split(","))
    return tuple(dict.fromkeys(kind for kind in kinds if kind))


def _parse_float(value, default):
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


class Config:
    _env_name = os.environ.get("FLASK_ENV", "development")

    SECRET_KEY = os.environ.get("SECRET_KEY")
    if not SECRET_KEY:
        if _env_name == "production":
            raise ValueError("Set SECRET_KEY before starting the crew importer in production.")
        if _env_name != "testing":
            import warnings

            warnings.warn("SECRET_KEY is unset; falling back to an insecure development key.", UserWarning)
        SECRET_KEY = "crew-importer-dev-key"

    # Importer configuration
    IMPORTER_ENABLED = _coerce_bool(os.environ.get("IMPORTER_ENABLED"), default=False)
    IMPORTER_RECORD_KINDS = _parse_kind_list(os.environ.get("IMPORTER_RECORD_KINDS", DEFAULT_RECORD_KINDS))

    if IMPORTER_ENABLED and not IMPORTER_RECORD_KINDS:
        raise ValueError(
            "IMPORTER_ENABLED is true but IMPORTER_RECORD_KINDS is empty. " "Provide at least one record kind."
        )

    IMPORTER_CACHE_FAILED_COMPANY_LOOKUPS = _coerce_bool(
        os.environ.get("IMPORTER_CACHE_FAILED_COMPANY_LOOKUPS"),
        default=False,
    )
    IMPORTER_WORKER_ENABLED = _coerce_bool(os.environ.get("IMPORTER_WORKER_ENABLED"), default=False)
    IMPORTER_UPLOAD_DIR = os.environ.get("IMPORTER_UPLOAD_DIR")
    try:
        IMPORTER_MAX_UPLOAD_MB = int(os.environ.get("IMPORTER_MAX_UPLOAD_MB", "25"))
    except ValueError:
        IMPORTER_MAX_UPLOAD_MB = 25

    # Crew record service
    CREW_API_BASE_URL = os.environ.get("CREW_API_BASE_URL")
    CREW_API_TOKEN = os.environ.get("CREW_API_TOKEN")
    CREW_API_TIMEOUT_SECONDS = _parse_float(os.environ.get("CREW_API_TIMEOUT_SECONDS"), 30.0)

    # Worker
    CELERY_BROKER_URL = os.environ.get("CELERY_BROKER_URL")
    CELERY_RESULT_BACKEND = os.environ.get("CELERY_RESULT_BACKEND")
    CELERY_CONFIG = os.environ.get("CELERY_CONFIG")

    # Logging
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO").upper()
    ENABLE_CONSOLE_LOGGING = _coerce_bool(os.environ.get("ENABLE_CONSOLE_LOGGING"), default=True)
    ENABLE_FILE_LOGGING = _coerce_bool(os.environ.get("ENABLE_FILE_LOGGING"), default=False)
    LOG_FILE = os.environ.get("LOG_FILE", os.path.join("logs", "crew_importer.log"))
    try:
        LOG_FILE_MAX_BYTES = int(os.environ.get("LOG_FILE_MAX_BYTES", 10485760))  # 10MB
        LOG_FILE_BACKUP_COUNT = int(os.environ.get("LOG_FILE_BACKUP_COUNT", 10))
    except ValueError:
        LOG_FILE_MAX_BYTES = 10485760
        LOG_FILE_BACKUP_COUNT = 10


class DevelopmentConfig(Config):
    DEBUG = True
    LOG_LEVEL = os.environ.get("LOG_LEVEL", "DEBUG").upper()


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = os.environ.get("SECRET_KEY", "test-secret-key-for-testing-only")
    IMPORTER_ENABLED = False
    CREW_API_BASE_URL = "http://crew.test"
    CREW_API_TOKEN = "test-token"
    ENABLE_CONSOLE_LOGGING = False
    ENABLE_FILE_LOGGING = False


class ProductionConfig(Config):
    DEBUG = False
    ENABLE_FILE_LOGGING = _coerce_bool(os.environ.get("ENABLE_FILE_LOGGING"), default=True)
