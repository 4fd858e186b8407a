"""
Custom exceptions for Vigil.

This module defines the exception hierarchy for the library. Two families
are kept apart:

- Definition errors (``NotDefinedError`` and its subclasses) mean a policy,
  scope or attributes type could not be found for a resource. These point
  at missing configuration or metadata.
- Authorization errors (``NotAuthorizedError``) mean a policy was found and
  it denied access. This is a legitimate outcome, not a bug.

``AuthorizationNotPerformedError`` signals that an interaction completed
without any authorization check at all, which is a programming error in
the embedding layer.
"""

from __future__ import annotations

from typing import Any


class VigilError(Exception):
    """
    Base exception for all Vigil errors.

    Attributes:
        message: Human-readable error description.
        details: Additional context about the error.

    Example:
        >>> try:
        ...     context.authorize(post, "update?")
        ... except VigilError as e:
        ...     logger.error(f"Vigil error: {e}")
    """

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def __str__(self) -> str:
        return self.message

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


def _describe(resource: Any) -> str:
    if isinstance(resource, type):
        return resource.__qualname__
    if isinstance(resource, str):
        return repr(resource)
    return f"{type(resource).__qualname__} instance"


class NotDefinedError(VigilError):
    """
    Raised by strict lookups when no type could be resolved for a resource.

    Attributes:
        name: The type name that was looked up (e.g. ``"PostPolicy"`` or
            ``"PostPolicy.Scope"``).
        resource: The original resource reference.
    """

    kind = "policy"

    def __init__(self, name: str, resource: Any = None) -> None:
        self.name = name
        self.resource = resource

        message = f"unable to find {self.kind} {name}"
        if resource is not None:
            message += f" for {_describe(resource)}"
        details = {
            "name": name,
            "resource": _describe(resource) if resource is not None else None,
        }
        super().__init__(message, details)


class PolicyNotFoundError(NotDefinedError):
    """
    Raised when no policy type exists for a resource.

    Attributes:
        name: The attempted policy name.
        resource: The resource that was being resolved.
        available_policies: Registered policy names (for debugging).

    Example:
        >>> raise PolicyNotFoundError("ArticlePolicy", Article)
    """

    kind = "policy"

    def __init__(
        self,
        name: str,
        resource: Any = None,
        available_policies: list[str] | None = None,
    ) -> None:
        self.available_policies = available_policies or []
        super().__init__(name, resource)
        if self.available_policies:
            self.message += f". Available policies: {', '.join(self.available_policies)}"
            self.details["available_policies"] = self.available_policies
            self.args = (self.message,)


class ScopeNotFoundError(NotDefinedError):
    """Raised when a policy has no nested Scope type (or no policy exists)."""

    kind = "scope"


class AttributesNotFoundError(NotDefinedError):
    """Raised when a policy has no nested Attributes type (or no policy exists)."""

    kind = "attributes"


class NotAuthorizedError(VigilError):
    """
    Raised when a policy query returns a falsy value.

    Attributes:
        query: The query that was checked (e.g. ``"update?"``).
        record: The resource the query was checked against.
        policy: The policy instance that rendered the decision.

    Example:
        >>> try:
        ...     context.authorize(post, "destroy?")
        ... except NotAuthorizedError as e:
        ...     flash(f"You may not {e.query.rstrip('?')} this post")
    """

    def __init__(self, query: str, record: Any, policy: Any) -> None:
        self.query = query
        self.record = record
        self.policy = policy

        message = f"not allowed to {query} this {_describe(record)}"
        details = {
            "query": query,
            "record": _describe(record),
            "policy": type(policy).__name__,
        }
        super().__init__(message, details)


class AuthorizationNotPerformedError(VigilError):
    """
    Raised when an interaction finished without any authorization check.

    This is a fail-closed guard against forgotten ``authorize`` or
    ``policy_scope`` calls, not a user-facing condition.

    Attributes:
        check: Which check was expected (``"authorize"`` or ``"policy_scope"``).
    """

    def __init__(self, check: str = "authorize", message: str | None = None) -> None:
        self.check = check
        if message is None:
            message = f"{check} was not performed during this interaction"
        super().__init__(message, {"check": check})


class ParameterMissingError(VigilError):
    """
    Raised when the parameter bag has no entry for the expected key.

    Attributes:
        key: The missing top-level parameter key (e.g. ``"post"``).
    """

    def __init__(self, key: str) -> None:
        self.key = key
        super().__init__(f"Missing params[{key!r}]", {"key": key})


class ConfigurationError(VigilError):
    """
    Raised when there is a configuration error in Vigil setup.

    Attributes:
        config_key: The configuration key that has an issue.
        expected: What was expected for this configuration.
        received: What was actually provided.

    Example:
        >>> raise ConfigurationError(
        ...     config_key="policy_suffix",
        ...     expected="a non-empty string",
        ...     received=""
        ... )
    """

    def __init__(
        self,
        config_key: str,
        expected: str | None = None,
        received: Any = None,
    ) -> None:
        self.config_key = config_key
        self.expected = expected
        self.received = received

        message = f"Configuration error for '{config_key}'"
        if expected:
            message += f": expected {expected}"
        if received is not None:
            message += f", got {received!r}"

        details = {
            "config_key": config_key,
            "expected": expected,
            "received": str(received) if received is not None else None,
        }
        super().__init__(message, details)
