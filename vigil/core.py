"""
Module-level policy lookups for Vigil.

These functions resolve and instantiate policies, scopes and attribute
lists for a user without any per-interaction state. Each comes in a lenient
form returning None when nothing is defined and a strict ``*_or_raise``
form raising a NotDefinedError subclass.

Use AuthorizationContext instead when decisions need caching or auditing.
"""

from __future__ import annotations

from typing import Any

from vigil.policies.finder import FinderConfig, PolicyFinder
from vigil.policies.registry import PolicyRegistry
from vigil.types import ResourceReference


def policy(
    user: Any,
    record: ResourceReference,
    *,
    registry: PolicyRegistry | None = None,
    config: FinderConfig | None = None,
) -> Any | None:
    """
    Return the policy instance for ``record``, or None if there is none.

    Example:
        >>> vigil.policy(user, post).can_update()
        True
        >>> vigil.policy(user, Article) is None
        True
    """
    policy_class = PolicyFinder(record, registry, config).policy()
    if policy_class is None:
        return None
    return policy_class(user, record)


def policy_or_raise(
    user: Any,
    record: ResourceReference,
    *,
    registry: PolicyRegistry | None = None,
    config: FinderConfig | None = None,
) -> Any:
    """
    Return the policy instance for ``record``.

    Raises:
        PolicyNotFoundError: If no policy can be resolved.
    """
    policy_class = PolicyFinder(record, registry, config).policy_or_raise()
    return policy_class(user, record)


def policy_scope(
    user: Any,
    scope: Any,
    *,
    registry: PolicyRegistry | None = None,
    config: FinderConfig | None = None,
) -> Any | None:
    """Return ``Scope(user, scope).resolve()``, or None if there is no Scope."""
    scope_class = PolicyFinder(scope, registry, config).scope()
    if scope_class is None:
        return None
    return scope_class(user, scope).resolve()


def policy_scope_or_raise(
    user: Any,
    scope: Any,
    *,
    registry: PolicyRegistry | None = None,
    config: FinderConfig | None = None,
) -> Any:
    """
    Return ``Scope(user, scope).resolve()``.

    Raises:
        ScopeNotFoundError: If the policy or its Scope cannot be resolved.
    """
    scope_class = PolicyFinder(scope, registry, config).scope_or_raise()
    return scope_class(user, scope).resolve()


def policy_attributes(
    user: Any,
    record: ResourceReference,
    *,
    registry: PolicyRegistry | None = None,
    config: FinderConfig | None = None,
) -> Any | None:
    """Return the permitted attributes for ``record``, or None if undefined."""
    attributes_class = PolicyFinder(record, registry, config).attributes()
    if attributes_class is None:
        return None
    return attributes_class(user, record).permitted_attributes()


def policy_attributes_or_raise(
    user: Any,
    record: ResourceReference,
    *,
    registry: PolicyRegistry | None = None,
    config: FinderConfig | None = None,
) -> Any:
    """
    Return the permitted attributes for ``record``.

    Raises:
        AttributesNotFoundError: If the policy or its Attributes cannot be
            resolved.
    """
    attributes_class = PolicyFinder(record, registry, config).attributes_or_raise()
    return attributes_class(user, record).permitted_attributes()
