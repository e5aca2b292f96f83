"""Shared auth-mode enum values."""

from __future__ import annotations

from enum import Enum


class AuthMode(str, Enum):
    """Supported caller-identity resolution modes."""

    LOCAL = "local"
    PASSTHROUGH = "passthrough"
