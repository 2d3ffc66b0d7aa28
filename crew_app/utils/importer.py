"""
Feature-flag lookups for the crew importer, usable with or without an app context.
"""

from __future__ import annotations

from typing import Tuple

from flask import current_app


def _config_for(app=None):
    return (app or current_app).config


def is_importer_enabled(app=None) -> bool:
    """``IMPORTER_ENABLED`` as a bool (off when unset)."""
    return bool(_config_for(app).get("IMPORTER_ENABLED", False))


def get_importer_record_kinds(app=None) -> Tuple[str, ...]:
    """Record kinds listed in ``IMPORTER_RECORD_KINDS``, in configured order."""
    return tuple(_config_for(app).get("IMPORTER_RECORD_KINDS", ()))
