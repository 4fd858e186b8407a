"""
Interaction-scoped authorization for Vigil.

Provides the AuthorizationContext, which caches policy lookups for one user
during one interaction and records whether authorization happened, plus the
ambient context variables that carry the current user, action and context.
"""

from vigil.context.authorization import (
    AuthorizationContext,
    ContextConfig,
    authorization_context,
)
from vigil.context.current import (
    bind_context,
    get_current_action,
    get_current_context,
    get_current_user,
    user_context,
)

__all__ = [
    "AuthorizationContext",
    "ContextConfig",
    "authorization_context",
    "bind_context",
    "get_current_action",
    "get_current_context",
    "get_current_user",
    "user_context",
]
