"""
Policy registry for Vigil.

This module provides the PolicyRegistry class, the name-to-type lookup the
resolver relies on. Lookups are late bound: a policy only has to exist by
the time it is resolved, not when the registry is created. Names are found,
in order, among explicit registrations, as dotted import paths, in the
namespace module of the resource type, and in configured namespace modules.
"""

from __future__ import annotations

import importlib
import logging
import sys
import threading
from collections.abc import Iterable
from types import ModuleType
from typing import Any

from vigil.exceptions import PolicyNotFoundError

logger = logging.getLogger(__name__)


class PolicyRegistry:
    """
    Registry for policy classes.

    Features:
        - Decorator-based registration (``@registry.policy()``)
        - Late-bound lookup in namespace modules
        - Dotted-path lookup (``"app.policies.PostPolicy"``)
        - Thread-safe operations

    Example:
        >>> registry = PolicyRegistry(namespaces=["app.policies"])
        >>>
        >>> @registry.policy()
        ... class CommentPolicy(Policy):
        ...     def can_update(self) -> bool:
        ...         return self.resource.author == self.user
        >>>
        >>> registry.resolve("CommentPolicy")
        <class 'CommentPolicy'>

    Thread Safety:
        All operations are thread-safe via internal locking.
    """

    def __init__(self, namespaces: Iterable[str] | None = None) -> None:
        """
        Initialize the registry.

        Args:
            namespaces: Module names searched (in order) for policy classes
                not registered explicitly. Modules are imported on first use.
        """
        self._policies: dict[str, type] = {}
        self._namespaces: list[str] = list(namespaces or [])
        self._lock = threading.RLock()

    def policy(self, name: str | None = None) -> Any:
        """
        Decorator for registering a policy class.

        Args:
            name: Name to register under. Defaults to the class name.

        Example:
            >>> @registry.policy()
            ... class PostPolicy(Policy):
            ...     ...
            >>> @registry.policy("LegacyPostPolicy")
            ... class OldPostPolicy(Policy):
            ...     ...
        """
        def decorator(policy_class: type) -> type:
            self.register(name or policy_class.__name__, policy_class)
            return policy_class
        return decorator

    def register(self, name: str, policy_class: type) -> None:
        """
        Register a policy class under a name.

        Registering a name twice replaces the earlier class.
        """
        with self._lock:
            if name in self._policies and self._policies[name] is not policy_class:
                existing = self._policies[name].__name__
                logger.warning(
                    f"Overwriting policy '{name}': "
                    f"{existing} -> {policy_class.__name__}"
                )

            self._policies[name] = policy_class
            logger.debug(f"Registered policy '{policy_class.__name__}' as '{name}'")

    def register_by_convention(self, policy_class: type) -> type:
        """
        Register a policy class under its own class name.

        Returns the class so this can also be used as a bare decorator.
        """
        self.register(policy_class.__name__, policy_class)
        return policy_class

    def add_namespace(self, module_name: str) -> None:
        """Append a module to the namespaces searched by resolve()."""
        with self._lock:
            if module_name not in self._namespaces:
                self._namespaces.append(module_name)

    @property
    def namespaces(self) -> list[str]:
        with self._lock:
            return list(self._namespaces)

    def resolve(self, name: str, namespace: str | None = None) -> type | None:
        """
        Look up a policy class by name.

        Args:
            name: A bare class name (``"PostPolicy"``), a nested name
                (``"Outer.PostPolicy"``) or a dotted import path
                (``"app.policies.PostPolicy"``).
            namespace: Module searched after explicit registrations; the
                resolver passes the module the resource type was defined in.

        Returns:
            The class, or None if the name cannot be resolved.
        """
        with self._lock:
            registered = self._policies.get(name)
            namespaces = list(self._namespaces)

        if registered is not None:
            return registered

        found = self._import_path(name)
        if found is not None:
            return found

        candidates = [namespace] if namespace else []
        candidates.extend(ns for ns in namespaces if ns != namespace)
        for module_name in candidates:
            module = self._load_module(module_name)
            if module is None:
                continue
            found = self._lookup_attr(module, name)
            if found is not None:
                logger.debug(f"Resolved '{name}' in namespace '{module_name}'")
                return found

        return None

    def get_policy(self, name: str, namespace: str | None = None) -> type:
        """
        Get a policy class by name, raising if it cannot be resolved.

        Raises:
            PolicyNotFoundError: If the name does not resolve.
        """
        found = self.resolve(name, namespace)
        if found is None:
            raise PolicyNotFoundError(name, available_policies=sorted(self.list_policies()))
        return found

    def has_policy(self, name: str) -> bool:
        """Check if a policy is explicitly registered under a name."""
        with self._lock:
            return name in self._policies

    def list_policies(self) -> dict[str, str]:
        """
        List all explicitly registered policies.

        Returns:
            Dictionary mapping registered names to policy class names.
        """
        with self._lock:
            return {
                name: policy.__name__
                for name, policy in self._policies.items()
            }

    def unregister(self, name: str) -> bool:
        """
        Unregister a policy.

        Returns:
            True if a policy was unregistered, False if none was registered.
        """
        with self._lock:
            if name in self._policies:
                del self._policies[name]
                logger.debug(f"Unregistered policy '{name}'")
                return True
            return False

    def clear(self) -> None:
        """Clear all registered policies and namespaces."""
        with self._lock:
            self._policies.clear()
            self._namespaces.clear()
            logger.debug("Cleared all registered policies")

    @staticmethod
    def _load_module(module_name: str) -> ModuleType | None:
        module = sys.modules.get(module_name)
        if module is not None:
            return module
        try:
            return importlib.import_module(module_name)
        except ModuleNotFoundError as e:
            # Only a missing namespace itself counts as "not found"
            if e.name and (module_name == e.name or module_name.startswith(f"{e.name}.")):
                logger.debug(f"Namespace module '{module_name}' not found")
                return None
            raise

    @staticmethod
    def _lookup_attr(root: Any, dotted: str) -> type | None:
        obj = root
        for part in dotted.split("."):
            obj = getattr(obj, part, None)
            if obj is None:
                return None
        return obj if isinstance(obj, type) else None

    def _import_path(self, name: str) -> type | None:
        """Resolve ``"package.module.ClassName"`` by importing the module."""
        module_name, _, attr = name.rpartition(".")
        while module_name:
            module = self._load_module(module_name)
            if module is not None:
                return self._lookup_attr(module, attr)
            module_name, _, head = module_name.rpartition(".")
            attr = f"{head}.{attr}"
        return None


# Global registry instance for convenience
_global_registry: PolicyRegistry | None = None
_global_registry_lock = threading.Lock()


def get_global_registry() -> PolicyRegistry:
    """
    Get the global policy registry instance.

    Creates one if it doesn't exist. Used by the module-level functions and
    by any AuthorizationContext built without an explicit registry.
    """
    global _global_registry
    if _global_registry is not None:
        return _global_registry
    with _global_registry_lock:
        # Double-check after acquiring lock
        if _global_registry is None:
            _global_registry = PolicyRegistry()
        return _global_registry


def reset_global_registry() -> None:
    """
    Reset the global registry.

    Clears the global registry instance. Primarily useful for testing.
    """
    global _global_registry
    with _global_registry_lock:
        if _global_registry is not None:
            _global_registry.clear()
        _global_registry = None
