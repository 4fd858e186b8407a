"""
Decorators for Vigil.

Lifecycle guards that run a handler and then verify that the current
interaction performed an authorization check. They are the fail-closed
counterpart of forgetting to call ``authorize`` or ``policy_scope``.

Handlers must run inside an interaction (see ``authorization_context``).
"""

from __future__ import annotations

import functools
import inspect
from collections.abc import Callable
from typing import Any, ParamSpec, TypeVar

from vigil.context.current import get_current_context
from vigil.exceptions import AuthorizationNotPerformedError

P = ParamSpec("P")
T = TypeVar("T")


def _verify(check: str, name: str) -> None:
    context = get_current_context()
    if context is None:
        raise AuthorizationNotPerformedError(
            check, f"{name} ran outside of an authorization context"
        )
    if check == "authorize":
        context.verify_authorized()
    else:
        context.verify_policy_scoped()


def _guard(check: str) -> Callable[[Callable[P, T]], Callable[P, T]]:
    def decorator(func: Callable[P, T]) -> Callable[P, T]:
        name = func.__qualname__

        if inspect.iscoroutinefunction(func):
            @functools.wraps(func)
            async def async_wrapper(*args: P.args, **kwargs: P.kwargs) -> Any:
                result = await func(*args, **kwargs)
                _verify(check, name)
                return result

            return async_wrapper  # type: ignore
        else:
            @functools.wraps(func)
            def sync_wrapper(*args: P.args, **kwargs: P.kwargs) -> T:
                result = func(*args, **kwargs)
                _verify(check, name)
                return result

            return sync_wrapper

    return decorator


def verify_authorized(func: Callable[P, T]) -> Callable[P, T]:
    """
    Require that ``func`` calls ``authorize`` on the current context.

    Raises:
        AuthorizationNotPerformedError: After ``func`` returns, if no
            authorization attempt was recorded.

    Example:
        >>> @verify_authorized
        ... def update_post(post_id: int, attrs: dict):
        ...     auth = get_current_context()
        ...     post = Post.get(post_id)
        ...     auth.authorize(post)
        ...     post.update(**attrs)
    """
    return _guard("authorize")(func)


def verify_policy_scoped(func: Callable[P, T]) -> Callable[P, T]:
    """
    Require that ``func`` calls ``policy_scope`` on the current context.

    Raises:
        AuthorizationNotPerformedError: After ``func`` returns, if no scope
            was resolved.

    Example:
        >>> @verify_policy_scoped
        ... async def list_posts():
        ...     return get_current_context().policy_scope(Post)
    """
    return _guard("policy_scope")(func)
