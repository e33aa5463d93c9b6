"""
Request-scoped caller identity.

The upstream gateway authenticates; the identity middleware copies the caller
into a ContextVar so dependencies and exception handlers can read it without
threading the request through. Each request task gets its own copy.
"""

from contextvars import ContextVar
from dataclasses import dataclass

from src.shared.enums import ActorType


@dataclass(frozen=True)
class ActorContext:
    """Immutable snapshot of who is behind the current request."""

    user_id: str | None = None
    actor_type: ActorType = ActorType.SYSTEM
    ip_address: str | None = None

    @property
    def is_authenticated(self) -> bool:
        return self.actor_type == ActorType.USER and bool(self.user_id)


_ANONYMOUS = ActorContext()

_current_actor: ContextVar[ActorContext] = ContextVar("current_actor", default=_ANONYMOUS)


def set_current_user(
    user_id: str | None,
    actor_type: ActorType = ActorType.USER,
    ip_address: str | None = None,
) -> None:
    _current_actor.set(ActorContext(user_id=user_id, actor_type=actor_type, ip_address=ip_address))


def clear_current_user() -> None:
    _current_actor.set(_ANONYMOUS)


def get_actor_context() -> ActorContext:
    return _current_actor.get()


def get_current_actor_id() -> str | None:
    """The authenticated user id, or None for anonymous and system callers"""
    actor = _current_actor.get()
    return actor.user_id if actor.is_authenticated else None
