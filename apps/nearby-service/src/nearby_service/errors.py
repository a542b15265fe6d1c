from __future__ import annotations

from dataclasses import dataclass


class NearbyError(Exception):
    """Base nearby-service exception."""


class InvalidInputError(NearbyError, ValueError):
    """Raised when caller-supplied coordinates or radius are unusable."""


class DirectoryUnavailableError(NearbyError):
    """Raised when the provider directory could not be read. Safe to retry."""


@dataclass
class ApiError(Exception):
    code: str
    message: str
    status_code: int
