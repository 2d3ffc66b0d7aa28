# config/validation.py

"""
Startup checks for the environment a production crew importer needs.
"""

import os
import sys
from typing import List, Mapping, Tuple

from .base import _coerce_bool

PLACEHOLDER_SECRET_KEYS = {"", "your-secret-key", "your_secret_key"}

# flag -> settings that must be present when the flag is on
FLAG_REQUIREMENTS = (
    ("IMPORTER_ENABLED", ("CREW_API_BASE_URL", "CREW_API_TOKEN")),
    ("IMPORTER_WORKER_ENABLED", ("CELERY_BROKER_URL",)),
)


def validate_environment(flask_env: str = None, env: Mapping[str, str] = None) -> Tuple[bool, List[str]]:
    """
    Collect configuration problems for ``flask_env``.

    Only production is checked; other environments always pass. ``env``
    defaults to ``os.environ`` and ``flask_env`` to its ``FLASK_ENV``.

    Returns:
        ``(is_valid, errors)``
    """
    env = os.environ if env is None else env
    flask_env = flask_env or env.get("FLASK_ENV", "development")
    if flask_env != "production":
        return True, []

    errors: List[str] = []
    if env.get("SECRET_KEY", "") in PLACEHOLDER_SECRET_KEYS:
        errors.append(
            "SECRET_KEY is required in production and must not be the default value. "
            'Generate a secure key: python -c "import secrets; print(secrets.token_hex(32))"'
        )

    for flag, required in FLAG_REQUIREMENTS:
        if not _coerce_bool(env.get(flag), default=False):
            continue
        errors.extend(f"{name} is required when {flag}=true" for name in required if not env.get(name))

    return not errors, errors


def validate_and_exit(flask_env: str = None) -> None:
    """Print every problem found by :func:`validate_environment` and exit(1) if any."""
    is_valid, errors = validate_environment(flask_env)
    if is_valid:
        return

    rule = "-" * 72
    lines = [rule, "Crew importer cannot start: environment is misconfigured.", rule]
    lines += [f"  {number}. {error}" for number, error in enumerate(errors, 1)]
    lines += [rule, "Fix the values in .env or the process environment and restart.", rule]
    print("\n".join(lines), file=sys.stderr)
    sys.exit(1)
