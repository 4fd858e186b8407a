"""
Ambient interaction state for Vigil.

Context variables carrying the current user, the current action name and
the current AuthorizationContext. Each thread and each asyncio task sees
its own values, so one interaction never observes another's state.
"""

from __future__ import annotations

import contextvars
from collections.abc import Iterator
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from vigil.context.authorization import AuthorizationContext

# Context variable for current user
_current_user: contextvars.ContextVar[Any | None] = contextvars.ContextVar(
    "vigil_user", default=None
)

# Context variable for the current action name (e.g. "update")
_current_action: contextvars.ContextVar[str | None] = contextvars.ContextVar(
    "vigil_action", default=None
)

# Context variable for the current authorization context
_current_context: contextvars.ContextVar[AuthorizationContext | None] = contextvars.ContextVar(
    "vigil_context", default=None
)


def get_current_user() -> Any | None:
    """Get the current user from context."""
    return _current_user.get()


def get_current_action() -> str | None:
    """Get the current action name from context."""
    return _current_action.get()


def get_current_context() -> AuthorizationContext | None:
    """Get the current authorization context, if one is bound."""
    return _current_context.get()


@contextmanager
def user_context(user: Any, action: str | None = None) -> Iterator[Any]:
    """
    Context manager to set the current user (and optionally action).

    Example:
        >>> with user_context(current_user, action="update"):
        ...     handle_request()
    """
    user_token = _current_user.set(user)
    action_token = _current_action.set(action) if action is not None else None
    try:
        yield user
    finally:
        if action_token is not None:
            _current_action.reset(action_token)
        _current_user.reset(user_token)


@contextmanager
def bind_context(context: AuthorizationContext) -> Iterator[AuthorizationContext]:
    """Bind an AuthorizationContext as the current one for the block."""
    token = _current_context.set(context)
    try:
        yield context
    finally:
        _current_context.reset(token)
