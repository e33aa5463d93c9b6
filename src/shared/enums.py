"""
Shared enumerations.

ResourceType, BypassScope and DocumentStatus are domain concepts and live in
src/domain/enums.py.
"""

from enum import Enum


class ActorType(str, Enum):
    """Who is behind the current request"""

    USER = "user"  # identified by the gateway header
    SYSTEM = "system"  # startup, background refresh, no caller
