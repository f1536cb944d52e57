"""Permission-related data models."""

from enum import Enum


class AuthorizationStatus(Enum):
    """Speech recognition authorization outcome reported by the permission service."""
    AUTHORIZED = "authorized"
    DENIED = "denied"
    RESTRICTED = "restricted"
    NOT_DETERMINED = "not_determined"
