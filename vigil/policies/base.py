"""
Policy base classes for Vigil.

Policies are plain classes constructed with ``(user, resource)`` that answer
zero-argument yes/no queries. By convention a query such as ``"update?"`` is
answered by a ``can_update`` method. A policy may nest a ``Scope`` class
that narrows a collection down to what the user may see, and an
``Attributes`` class that lists the attributes the user may set.

Subclassing these bases is optional; any class with the same shape works.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, Any, Generic, TypeVar

if TYPE_CHECKING:
    from vigil.types import UserContext

# Type variable for the resource being authorized
T = TypeVar("T")


class Policy(Generic[T]):
    """
    Base class for Vigil policies.

    Each policy class corresponds to a resource type, and methods named
    ``can_<action>`` answer the query ``"<action>?"``. Queries take no
    arguments: everything a decision needs is on ``self.user`` and
    ``self.resource``.

    Attributes:
        user: The acting subject.
        resource: The resource being accessed (an instance, a class, or a
            symbolic name).

    Example:
        >>> class PostPolicy(Policy):
        ...     def can_show(self) -> bool:
        ...         return True
        ...
        ...     def can_update(self) -> bool:
        ...         return self.resource.owner == self.user
        ...
        ...     class Scope(Scope):
        ...         def resolve(self):
        ...             return [p for p in self.scope if p.published]
    """

    def __init__(self, user: UserContext | Any, resource: T | None = None) -> None:
        self.user = user
        self.resource = resource

    @classmethod
    def policy_class(cls) -> type[Policy[Any]]:
        """Resolve a policy type passed as a resource reference to itself."""
        return cls

    def __repr__(self) -> str:
        return f"<{type(self).__name__} user={self.user!r} resource={self.resource!r}>"


class Scope(Generic[T]):
    """
    Base class for filtering collections based on user permissions.

    Example:
        >>> class PostPolicy(Policy):
        ...     class Scope(Scope):
        ...         def resolve(self):
        ...             if self.user.has_role("admin"):
        ...                 return self.scope
        ...             return [p for p in self.scope if p.owner == self.user]
    """

    def __init__(self, user: UserContext | Any, scope: Any) -> None:
        self.user = user
        self.scope = scope

    def resolve(self) -> Any:
        """
        Filter the scope to authorized items.

        Subclasses should override this method; the default exposes nothing.
        """
        return []


class Attributes(Generic[T]):
    """
    Base class for listing the attributes a user may act on.

    Example:
        >>> class PostPolicy(Policy):
        ...     class Attributes(Attributes):
        ...         def permitted_attributes(self):
        ...             if self.user.has_role("admin"):
        ...                 return ["title", "body", "published"]
        ...             return ["title", "body"]
    """

    def __init__(self, user: UserContext | Any, resource: T | str | None = None) -> None:
        self.user = user
        self.resource = resource

    def permitted_attributes(self) -> Iterable[str]:
        """Return permitted attribute names; the default permits nothing."""
        return []
