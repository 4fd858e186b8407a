"""
Policy system for Vigil.

Policies are classes that answer yes/no questions about what a user may do
with a resource. The finder locates the policy for any resource reference
by naming convention (``Post`` -> ``PostPolicy``) or by an explicit
``policy_class`` override.

Quick Start:
    >>> from vigil.policies import Policy, PolicyFinder, Scope
    >>>
    >>> class PostPolicy(Policy):
    ...     def can_update(self) -> bool:
    ...         return self.resource.owner == self.user
    ...
    ...     class Scope(Scope):
    ...         def resolve(self):
    ...             return [p for p in self.scope if p.published]
    >>>
    >>> PolicyFinder(post).policy()
    <class 'PostPolicy'>
"""

from vigil.policies.base import (
    Attributes,
    Policy,
    Scope,
)
from vigil.policies.finder import (
    FinderConfig,
    PolicyFinder,
)
from vigil.policies.naming import (
    camelize,
    classify,
    singularize,
)
from vigil.policies.registry import (
    PolicyRegistry,
    get_global_registry,
    reset_global_registry,
)

__all__ = [
    # Base classes
    "Policy",
    "Scope",
    "Attributes",
    # Resolution
    "PolicyFinder",
    "FinderConfig",
    # Registry
    "PolicyRegistry",
    "get_global_registry",
    "reset_global_registry",
    # Naming
    "camelize",
    "classify",
    "singularize",
]
