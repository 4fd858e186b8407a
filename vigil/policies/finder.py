"""
Policy resolution for Vigil.

The PolicyFinder maps any resource reference (a class, an instance, a
symbolic name or a policy type) to the policy class responsible for it, and
from there to the policy's nested Scope and Attributes classes.

Resolution order, first match wins:

1. An explicit ``policy_class`` on the reference (or on its type). Classes
   are used as-is, strings are looked up by name, other callables are
   called and their result is used.
2. The conventional name ``<ResourceName>Policy``, where the resource name
   comes from ``model_name`` (on the reference or its type), the classified
   form of a string (``"posts"`` -> ``"Post"``), the reference itself when
   it is a class, or the reference's type.

Every lookup has a lenient form returning None and a strict ``*_or_raise``
form raising a NotDefinedError subclass. The finder holds no state of its
own; every call recomputes from the reference.
"""

from __future__ import annotations

import inspect
import logging
from dataclasses import dataclass
from typing import Any

from vigil.exceptions import (
    AttributesNotFoundError,
    ConfigurationError,
    PolicyNotFoundError,
    ScopeNotFoundError,
)
from vigil.policies.naming import classify
from vigil.policies.registry import PolicyRegistry, get_global_registry
from vigil.types import ResourceReference

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FinderConfig:
    """
    Naming conventions used by the PolicyFinder.

    Attributes:
        policy_suffix: Appended to the resource name to form the policy name.
        scope_name: Name of the nested scope class on a policy.
        attributes_name: Name of the nested attributes class on a policy.
        policy_class_attr: Attribute holding an explicit policy override.
        model_name_attr: Attribute holding an explicit resource name.
    """

    policy_suffix: str = "Policy"
    scope_name: str = "Scope"
    attributes_name: str = "Attributes"
    policy_class_attr: str = "policy_class"
    model_name_attr: str = "model_name"

    def __post_init__(self) -> None:
        for key, value in self.to_dict().items():
            if not isinstance(value, str) or not value:
                raise ConfigurationError(
                    config_key=key,
                    expected="a non-empty string",
                    received=value,
                )

    def to_dict(self) -> dict[str, Any]:
        """Convert config to dictionary."""
        return {
            "policy_suffix": self.policy_suffix,
            "scope_name": self.scope_name,
            "attributes_name": self.attributes_name,
            "policy_class_attr": self.policy_class_attr,
            "model_name_attr": self.model_name_attr,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> FinderConfig:
        """Create config from dictionary."""
        return cls(
            policy_suffix=data.get("policy_suffix", "Policy"),
            scope_name=data.get("scope_name", "Scope"),
            attributes_name=data.get("attributes_name", "Attributes"),
            policy_class_attr=data.get("policy_class_attr", "policy_class"),
            model_name_attr=data.get("model_name_attr", "model_name"),
        )


DEFAULT_FINDER_CONFIG = FinderConfig()

_MISSING = object()


class PolicyFinder:
    """
    Resolves a resource reference to its policy, scope and attributes types.

    Args:
        obj: The resource reference.
        registry: Registry used for name lookups. Defaults to the global one.
        config: Naming conventions. Defaults to FinderConfig().

    Example:
        >>> finder = PolicyFinder(post)
        >>> finder.policy()
        <class 'app.models.PostPolicy'>
        >>> finder.scope()
        <class 'app.models.PostPolicy.Scope'>
        >>> finder.params_key()
        'post'
        >>> PolicyFinder(Article).policy() is None
        True
    """

    def __init__(
        self,
        obj: ResourceReference,
        registry: PolicyRegistry | None = None,
        config: FinderConfig | None = None,
    ) -> None:
        self.obj = obj
        self.registry = registry if registry is not None else get_global_registry()
        self.config = config or DEFAULT_FINDER_CONFIG

    def __repr__(self) -> str:
        return f"PolicyFinder({self.obj!r})"

    # Policy

    def policy(self) -> type | None:
        """Return the policy class for the reference, or None."""
        _, policy = self._find()
        return policy

    def policy_or_raise(self) -> type:
        """
        Return the policy class for the reference.

        Raises:
            PolicyNotFoundError: If no policy class can be resolved.
        """
        name, policy = self._find()
        if policy is None:
            raise PolicyNotFoundError(name, self.obj)
        return policy

    def policy_name(self) -> str:
        """Return the name of the policy this reference resolves through."""
        name, _ = self._find()
        return name

    # Scope

    def scope(self) -> Any | None:
        """Return the policy's nested Scope class, or None."""
        return self._nested(self.policy(), self.config.scope_name)

    def scope_or_raise(self) -> Any:
        """
        Return the policy's nested Scope class.

        Raises:
            ScopeNotFoundError: If there is no policy or it has no Scope.
        """
        name, policy = self._find()
        scope = self._nested(policy, self.config.scope_name)
        if scope is None:
            raise ScopeNotFoundError(f"{name}.{self.config.scope_name}", self.obj)
        return scope

    # Attributes

    def attributes(self) -> Any | None:
        """Return the policy's nested Attributes class, or None."""
        return self._nested(self.policy(), self.config.attributes_name)

    def attributes_or_raise(self) -> Any:
        """
        Return the policy's nested Attributes class.

        Raises:
            AttributesNotFoundError: If there is no policy or it has no Attributes.
        """
        name, policy = self._find()
        attributes = self._nested(policy, self.config.attributes_name)
        if attributes is None:
            raise AttributesNotFoundError(f"{name}.{self.config.attributes_name}", self.obj)
        return attributes

    # Names

    def resource_name(self) -> str | type:
        """
        Return the canonical resource name.

        A string when the reference carries a ``model_name`` or is itself a
        symbolic name; otherwise the class the reference stands for.
        """
        attr = self.config.model_name_attr
        value = self._lookup(attr)
        if value is not _MISSING:
            if callable(value):
                value = value()
            return str(value)
        if isinstance(self.obj, str):
            return classify(self.obj)
        if isinstance(self.obj, type):
            return self.obj
        return type(self.obj)

    def params_key(self) -> str:
        """
        Return the parameter key for the reference.

        Example:
            >>> PolicyFinder(BlogPost).params_key()
            'blogpost'
            >>> PolicyFinder("posts").params_key()
            'post'
        """
        name = self.resource_name()
        if isinstance(name, type):
            name = name.__name__
        return name.rsplit(".", 1)[-1].lower()

    # Internals

    def _lookup(self, attr: str) -> Any:
        """Read ``attr`` from the reference, falling back to its type."""
        value = getattr(self.obj, attr, _MISSING)
        if value is _MISSING and not isinstance(self.obj, type):
            value = getattr(type(self.obj), attr, _MISSING)
        return value

    def _namespace(self) -> str | None:
        if isinstance(self.obj, str):
            return None
        cls = self.obj if isinstance(self.obj, type) else type(self.obj)
        return cls.__module__

    def _find(self) -> tuple[str, type | None]:
        """Return (policy name, policy class or None)."""
        override = self._override()
        if override is not _MISSING:
            return self._coerce(override)

        name = self.resource_name()
        if isinstance(name, type):
            policy_name = f"{name.__name__}{self.config.policy_suffix}"
            namespace = name.__module__
        else:
            policy_name = f"{name}{self.config.policy_suffix}"
            namespace = self._namespace()

        policy = self.registry.resolve(policy_name, namespace=namespace)
        logger.debug(
            f"Resolved {policy_name} for {self.obj!r}: "
            f"{policy.__name__ if policy is not None else 'not found'}"
        )
        return policy_name, policy

    def _override(self) -> Any:
        """
        Return the explicit ``policy_class`` value, or _MISSING.

        On a class reference an instance method comes back unbound and
        cannot be called, so it only applies to instances.
        """
        attr = self.config.policy_class_attr
        override = self._lookup(attr)
        if isinstance(self.obj, type) and inspect.isfunction(override):
            if not isinstance(inspect.getattr_static(self.obj, attr), staticmethod):
                return _MISSING
        return override

    def _coerce(self, override: Any) -> tuple[str, type | None]:
        """Interpret an explicit ``policy_class`` value."""
        if callable(override) and not isinstance(override, type):
            override = override()

        if isinstance(override, type):
            return override.__name__, override
        if isinstance(override, str):
            return override, self.registry.resolve(override, namespace=self._namespace())
        return repr(override), None

    @staticmethod
    def _nested(policy: type | None, name: str) -> Any | None:
        if policy is None:
            return None
        return getattr(policy, name, None)
