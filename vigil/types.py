"""
Core type definitions for Vigil.

This module defines the capability contracts Vigil imposes on scope and
attributes types, plus a small user context dataclass that can
serve as the acting subject.

Vigil never requires domain objects or policies to subclass anything: the
protocols below describe the shape the resolver and the authorization
context rely on.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any, Protocol, runtime_checkable

# A class, an instance, a symbolic name, or an already-resolved policy type.
ResourceReference = Any


@runtime_checkable
class ScopeLike(Protocol):
    """Constructible from ``(user, scope)``; filters the collection."""

    def resolve(self) -> Any: ...


@runtime_checkable
class AttributesLike(Protocol):
    """Constructible from ``(user, resource)``; lists permitted attributes."""

    def permitted_attributes(self) -> Iterable[Any]: ...


@dataclass(frozen=True)
class UserContext:
    """
    Represents the authenticated user acting in an interaction.

    Any object can be the subject of an authorization check; this class is
    a convenient default for applications without their own user model.

    Attributes:
        user_id: Unique identifier for the user.
        roles: Role names assigned to the user (e.g. ["editor"]).
        attributes: Additional custom attributes for policy decisions.

    Example:
        >>> user = UserContext(user_id="user_123", roles=["editor"])
        >>> user.has_role("editor")
        True
    """
    user_id: str
    roles: list[str] = field(default_factory=list)
    attributes: dict[str, Any] = field(default_factory=dict)

    def has_role(self, role: str) -> bool:
        """Check if user has a specific role."""
        return role in self.roles

