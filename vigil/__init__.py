"""
Vigil: policy-object authorization for Python.

Vigil maps any resource (a class, an instance or a symbolic name) to the
policy class responsible for it, then answers authorization queries, lists
permitted attributes and narrows collections to what a user may see.

Basic Usage:
    >>> from vigil import AuthorizationContext, Policy, Scope
    >>>
    >>> class PostPolicy(Policy):
    ...     def can_update(self) -> bool:
    ...         return self.resource.owner == self.user
    ...
    ...     class Scope(Scope):
    ...         def resolve(self):
    ...             return self.scope.published()
    >>>
    >>> context = AuthorizationContext(current_user, action="update")
    >>> context.authorize(post)            # PostPolicy(user, post).can_update()
    True
    >>> context.policy_scope(Post)         # PostPolicy.Scope(user, Post).resolve()
    >>> context.verify_authorized()
"""

__version__ = "0.1.0"

from vigil.context import (
    AuthorizationContext,
    ContextConfig,
    authorization_context,
    get_current_action,
    get_current_context,
    get_current_user,
    user_context,
)
from vigil.core import (
    policy,
    policy_attributes,
    policy_attributes_or_raise,
    policy_or_raise,
    policy_scope,
    policy_scope_or_raise,
)
from vigil.decorators import verify_authorized, verify_policy_scoped
from vigil.exceptions import (
    AttributesNotFoundError,
    AuthorizationNotPerformedError,
    ConfigurationError,
    NotAuthorizedError,
    NotDefinedError,
    ParameterMissingError,
    PolicyNotFoundError,
    ScopeNotFoundError,
    VigilError,
)
from vigil.params import MappingParamsFilter, ParamsFilter, PydanticParamsFilter
from vigil.policies import (
    Attributes,
    FinderConfig,
    Policy,
    PolicyFinder,
    PolicyRegistry,
    Scope,
    get_global_registry,
    reset_global_registry,
)
from vigil.types import UserContext

__all__ = [
    # Version
    "__version__",
    # Lookups
    "policy",
    "policy_or_raise",
    "policy_scope",
    "policy_scope_or_raise",
    "policy_attributes",
    "policy_attributes_or_raise",
    # Policy
    "Policy",
    "Scope",
    "Attributes",
    "PolicyFinder",
    "FinderConfig",
    "PolicyRegistry",
    "get_global_registry",
    "reset_global_registry",
    # Context
    "AuthorizationContext",
    "ContextConfig",
    "authorization_context",
    "user_context",
    "get_current_user",
    "get_current_action",
    "get_current_context",
    # Decorators
    "verify_authorized",
    "verify_policy_scoped",
    # Params
    "ParamsFilter",
    "MappingParamsFilter",
    "PydanticParamsFilter",
    # Types
    "UserContext",
    # Exceptions
    "VigilError",
    "NotDefinedError",
    "PolicyNotFoundError",
    "ScopeNotFoundError",
    "AttributesNotFoundError",
    "NotAuthorizedError",
    "AuthorizationNotPerformedError",
    "ParameterMissingError",
    "ConfigurationError",
]
