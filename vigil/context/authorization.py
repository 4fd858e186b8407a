"""
Per-interaction authorization context for Vigil.

An AuthorizationContext binds policy resolution to one acting user for one
interaction (typically one request or one task). It:

- caches resolved policies, scopes and attribute lists per reference,
- renders authorization decisions (``authorize``),
- records whether a decision or a scope resolution happened at all, so the
  embedding layer can fail closed with ``verify_authorized`` and
  ``verify_policy_scoped``.

A context is single-owner state. Create a fresh one per interaction; the
audit flags are never reset.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any

from vigil.context.current import (
    bind_context,
    get_current_action,
    get_current_user,
    user_context,
)
from vigil.exceptions import (
    AuthorizationNotPerformedError,
    ConfigurationError,
    NotAuthorizedError,
)
from vigil.params import MappingParamsFilter, ParamsFilter
from vigil.policies.finder import FinderConfig, PolicyFinder
from vigil.policies.registry import PolicyRegistry, get_global_registry
from vigil.types import AttributesLike, ResourceReference, ScopeLike

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ContextConfig:
    """
    Configuration for authorization contexts.

    Attributes:
        query_suffix: Appended to the action name to form the default query
            (``"update"`` -> ``"update?"``).
        query_prefix: Prefix of the policy method answering a suffixed query
            (``"update?"`` -> ``can_update``).
        action_param: Key of the action name in the parameter bag.
    """

    query_suffix: str = "?"
    query_prefix: str = "can_"
    action_param: str = "action"

    def __post_init__(self) -> None:
        if not self.query_suffix:
            raise ConfigurationError(
                config_key="query_suffix",
                expected="a non-empty string",
                received=self.query_suffix,
            )
        if not self.action_param:
            raise ConfigurationError(
                config_key="action_param",
                expected="a non-empty string",
                received=self.action_param,
            )

    def to_dict(self) -> dict[str, Any]:
        """Convert config to dictionary."""
        return {
            "query_suffix": self.query_suffix,
            "query_prefix": self.query_prefix,
            "action_param": self.action_param,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> ContextConfig:
        """Create config from dictionary."""
        return cls(
            query_suffix=data.get("query_suffix", "?"),
            query_prefix=data.get("query_prefix", "can_"),
            action_param=data.get("action_param", "action"),
        )


class _Unset:
    def __repr__(self) -> str:
        return "UNSET"


UNSET: Any = _Unset()


class _ReferenceCache:
    """
    Maps references to computed values.

    Symbolic names are keyed by value, everything else by object identity.
    """

    def __init__(self) -> None:
        # key -> (reference, value); the reference is held so its id stays unique
        self._entries: dict[tuple[str, Any], tuple[Any, Any]] = {}

    @staticmethod
    def _key(reference: Any) -> tuple[str, Any]:
        if isinstance(reference, str):
            return ("str", reference)
        return ("id", id(reference))

    def get(self, reference: Any) -> Any:
        entry = self._entries.get(self._key(reference))
        if entry is None:
            return UNSET
        if not isinstance(reference, str) and entry[0] is not reference:
            return UNSET
        return entry[1]

    def set(self, reference: Any, value: Any) -> None:
        self._entries[self._key(reference)] = (reference, value)


class AuthorizationContext:
    """
    Authorization state for one user during one interaction.

    Args:
        user: The acting subject. When omitted, ``user_loader`` is called,
            then the ambient user from ``vigil.context.current`` is used.
        user_loader: Zero-arg callable returning the acting subject.
        action: Name of the action being performed (e.g. ``"update"``),
            used to derive the default query.
        action_loader: Zero-arg callable returning the action name.
        params: Raw parameter bag of the interaction.
        registry: Policy registry. Defaults to the global registry.
        finder_config: Naming conventions for policy resolution.
        config: Query conventions for this context.
        params_filter: Strategy used by ``policy_params``.

    Example:
        >>> context = AuthorizationContext(current_user, action="update")
        >>> context.authorize(post)          # checks PostPolicy.can_update()
        True
        >>> posts = context.policy_scope(Post)
        >>> context.verify_authorized()
    """

    def __init__(
        self,
        user: Any = None,
        *,
        user_loader: Callable[[], Any] | None = None,
        action: str | None = None,
        action_loader: Callable[[], str | None] | None = None,
        params: Mapping[str, Any] | None = None,
        registry: PolicyRegistry | None = None,
        finder_config: FinderConfig | None = None,
        config: ContextConfig | None = None,
        params_filter: ParamsFilter | None = None,
    ) -> None:
        self._user = user
        self._user_loader = user_loader
        self._action = action
        self._action_loader = action_loader
        self.params: Mapping[str, Any] = params if params is not None else {}
        self.registry = registry if registry is not None else get_global_registry()
        self.finder_config = finder_config
        self.config = config or ContextConfig()
        self.params_filter = params_filter or MappingParamsFilter()

        self.policy_override: Any = None
        self.policy_scope_override: Any = None
        self.policy_attributes_override: Any = None

        self._policies = _ReferenceCache()
        self._scopes = _ReferenceCache()
        self._attributes = _ReferenceCache()

        self._authorization_performed = False
        self._scoping_performed = False

    def __repr__(self) -> str:
        return (
            f"<AuthorizationContext user={self.user!r} "
            f"authorized={self._authorization_performed} "
            f"scoped={self._scoping_performed}>"
        )

    # Embedding-layer capabilities

    @property
    def user(self) -> Any:
        """The acting subject of this interaction."""
        if self._user is not None:
            return self._user
        if self._user_loader is not None:
            return self._user_loader()
        return get_current_user()

    @property
    def action(self) -> str | None:
        """The ambient action name, if one is known."""
        if self._action is not None:
            return self._action
        if self._action_loader is not None:
            return self._action_loader()
        action = self.params.get(self.config.action_param)
        if action is not None:
            return str(action)
        return get_current_action()

    @property
    def authorization_performed(self) -> bool:
        return self._authorization_performed

    @property
    def scoping_performed(self) -> bool:
        return self._scoping_performed

    def finder(self, resource: ResourceReference) -> PolicyFinder:
        """Build a PolicyFinder using this context's registry and conventions."""
        return PolicyFinder(resource, registry=self.registry, config=self.finder_config)

    # Policies

    def policy(self, resource: ResourceReference) -> Any:
        """
        Return the policy instance for a resource.

        An assigned ``policy_override`` wins over resolution. Otherwise the
        policy is resolved once per reference and cached.

        Raises:
            PolicyNotFoundError: If no policy can be resolved.
        """
        if self.policy_override is not None:
            return self.policy_override

        cached = self._policies.get(resource)
        if cached is not UNSET:
            logger.debug(f"Cached {type(cached).__name__} for {resource!r}")
            return cached

        policy_class = self.finder(resource).policy_or_raise()
        policy = policy_class(self.user, resource)
        self._policies.set(resource, policy)
        logger.debug(f"Instantiated {policy_class.__name__} for {resource!r}")
        return policy

    def default_query(self) -> str:
        """Derive the query from the ambient action (``"update"`` -> ``"update?"``)."""
        action = self.action
        if not action:
            raise ConfigurationError(
                config_key=self.config.action_param,
                expected="an action name to derive the default query from",
            )
        return f"{action}{self.config.query_suffix}"

    def query_method(self, query: str) -> str:
        """Map a query to the policy method answering it."""
        suffix = self.config.query_suffix
        if query.endswith(suffix):
            return f"{self.config.query_prefix}{query[: -len(suffix)]}"
        return query

    def authorize(self, resource: ResourceReference, query: str | None = None) -> Any:
        """
        Check a policy query for a resource.

        The attempt is recorded before anything is resolved, so
        ``verify_authorized`` passes even when this call raises.

        Args:
            resource: The resource reference.
            query: The query to check. Defaults to the ambient action name
                followed by the query suffix.

        Returns:
            The truthy result of the query.

        Raises:
            NotAuthorizedError: If the query returns a falsy value.
            PolicyNotFoundError: If no policy can be resolved.
        """
        self._authorization_performed = True
        query = query or self.default_query()

        policy = self.policy(resource)
        result = getattr(policy, self.query_method(query))()
        if not result:
            logger.info(
                f"Denied {query} on {resource!r} by {type(policy).__name__} "
                f"for user {self.user!r}"
            )
            raise NotAuthorizedError(query, resource, policy)

        logger.debug(f"Allowed {query} on {resource!r} by {type(policy).__name__}")
        return result

    # Scopes

    def policy_scope(self, scope: Any) -> Any:
        """
        Return the scope of ``scope`` visible to the user.

        An assigned ``policy_scope_override`` wins over resolution. Otherwise
        the policy's Scope is resolved once per reference and cached.

        Raises:
            ScopeNotFoundError: If the policy or its Scope cannot be resolved.
        """
        if self.policy_scope_override is not None:
            self._scoping_performed = True
            return self.policy_scope_override

        cached = self._scopes.get(scope)
        if cached is UNSET:
            scope_class = self.finder(scope).scope_or_raise()
            resolver: ScopeLike = scope_class(self.user, scope)
            cached = resolver.resolve()
            self._scopes.set(scope, cached)

        self._scoping_performed = True
        return cached

    # Attributes

    def policy_attributes(self, resource: ResourceReference) -> Any:
        """
        Return the attributes the user may act on for a resource.

        Accepts a symbolic name (``"post"``), a class or an instance. An
        assigned ``policy_attributes_override`` wins over resolution.

        Raises:
            AttributesNotFoundError: If the policy or its Attributes cannot
                be resolved.
        """
        if self.policy_attributes_override is not None:
            return self.policy_attributes_override

        cached = self._attributes.get(resource)
        if cached is not UNSET:
            return cached

        attributes_class = self.finder(resource).attributes_or_raise()
        lister: AttributesLike = attributes_class(self.user, resource)
        permitted = lister.permitted_attributes()
        self._attributes.set(resource, permitted)
        return permitted

    def policy_params(self, resource: ResourceReference) -> dict[str, Any]:
        """
        Return the interaction's parameters for a resource, restricted to
        the attributes the user may set.

        Example:
            >>> context = AuthorizationContext(user, params={"post": {"title": "t", "body": "b"}})
            >>> context.policy_params(Post)
            {'title': 't'}

        Raises:
            ParameterMissingError: If the parameter bag has no entry for the
                resource's key.
        """
        if isinstance(resource, str):
            key = resource
        else:
            key = self.finder(resource).params_key()

        permitted = [str(name) for name in self.policy_attributes(resource)]
        return self.params_filter.permit(self.params, key, permitted)

    # Verification

    def verify_authorized(self) -> None:
        """
        Raises:
            AuthorizationNotPerformedError: If ``authorize`` was never called.
        """
        if not self._authorization_performed:
            raise AuthorizationNotPerformedError("authorize")

    def verify_policy_scoped(self) -> None:
        """
        Raises:
            AuthorizationNotPerformedError: If ``policy_scope`` never produced
                a result.
        """
        if not self._scoping_performed:
            raise AuthorizationNotPerformedError("policy_scope")


@contextmanager
def authorization_context(
    user: Any = None,
    *,
    action: str | None = None,
    verify: bool = False,
    verify_scoped: bool = False,
    **kwargs: Any,
) -> Iterator[AuthorizationContext]:
    """
    Run a block as one interaction with its own AuthorizationContext.

    The context, user and action are bound as the ambient values for the
    block. When the block exits without an exception, ``verify`` and
    ``verify_scoped`` run the matching verification.

    Args:
        user: The acting subject.
        action: The action name of the interaction.
        verify: Call ``verify_authorized`` on exit.
        verify_scoped: Call ``verify_policy_scoped`` on exit.
        **kwargs: Passed to AuthorizationContext.

    Example:
        >>> with authorization_context(user, action="update", verify=True) as auth:
        ...     auth.authorize(post)
        ...     post.update(**auth.policy_params(post))
    """
    context = AuthorizationContext(user, action=action, **kwargs)
    ambient_user = user if user is not None else get_current_user()
    with user_context(ambient_user, action=action), bind_context(context):
        yield context
        if verify:
            context.verify_authorized()
        if verify_scoped:
            context.verify_policy_scoped()
