"""
Parameter permitting for Vigil.

A ParamsFilter narrows a raw parameter bag down to the attributes a policy
permits. Two strategies are provided:

- MappingParamsFilter: plain dictionary slicing, no dependencies.
- PydanticParamsFilter: validates and coerces through pydantic models.
  Requires: pip install vigil[pydantic]

Example:
    >>> params = {"post": {"title": "Hello", "body": "...", "admin": True}}
    >>> MappingParamsFilter().permit(params, "post", ["title", "body"])
    {'title': 'Hello', 'body': '...'}
"""

from __future__ import annotations

import logging
import threading
from abc import ABC, abstractmethod
from collections.abc import Iterable, Mapping
from typing import Any

from vigil.exceptions import ParameterMissingError
from vigil.policies.naming import camelize

logger = logging.getLogger(__name__)

# Check if Pydantic is available
try:
    from pydantic import BaseModel, ConfigDict, create_model
    HAS_PYDANTIC = True
except ImportError:
    HAS_PYDANTIC = False
    BaseModel = None  # type: ignore


class ParamsFilter(ABC):
    """
    Abstract base class for parameter permitting strategies.
    """

    @abstractmethod
    def permit(
        self,
        params: Mapping[str, Any],
        key: str,
        permitted: Iterable[str],
    ) -> dict[str, Any]:
        """
        Extract ``params[key]`` restricted to the permitted attributes.

        Args:
            params: The raw parameter bag of the interaction.
            key: Top-level key holding the resource's attributes.
            permitted: Attribute names the user may set.

        Returns:
            A new dictionary with string keys.

        Raises:
            ParameterMissingError: If ``params`` has no entry for ``key``.
        """

    @staticmethod
    def fetch(params: Mapping[str, Any], key: str) -> Mapping[str, Any]:
        """Return ``params[key]``, raising ParameterMissingError if absent."""
        attributes = params.get(key) if isinstance(params, Mapping) else None
        if attributes is None or not isinstance(attributes, Mapping):
            raise ParameterMissingError(key)
        return attributes


class MappingParamsFilter(ParamsFilter):
    """
    Permits parameters by slicing a plain mapping.

    Keys are converted to strings; the result follows the order of the
    permitted names.
    """

    def permit(
        self,
        params: Mapping[str, Any],
        key: str,
        permitted: Iterable[str],
    ) -> dict[str, Any]:
        attributes = {str(k): v for k, v in self.fetch(params, key).items()}
        result = {name: attributes[name] for name in permitted if name in attributes}
        dropped = set(attributes) - set(result)
        if dropped:
            logger.debug(f"Unpermitted parameters for '{key}': {sorted(dropped)}")
        return result


class PydanticParamsFilter(ParamsFilter):
    """
    Permits parameters by validating them through a pydantic model.

    A model registered for a key validates and coerces the permitted
    values; keys without a registered model get a permissive model built
    from the permitted names. Only the permitted fields that were actually
    supplied are returned.

    Requires: pip install vigil[pydantic]

    Example:
        >>> class PostParams(BaseModel):
        ...     title: str
        ...     views: int = 0
        >>>
        >>> params_filter = PydanticParamsFilter({"post": PostParams})
        >>> params_filter.permit({"post": {"title": "Hi", "views": "3"}}, "post", ["title", "views"])
        {'title': 'Hi', 'views': 3}
    """

    def __init__(self, models: Mapping[str, type[BaseModel]] | None = None) -> None:
        """
        Initialize the filter.

        Raises:
            ImportError: If pydantic is not installed.
        """
        if not HAS_PYDANTIC:
            raise ImportError(
                "Pydantic is not installed. Install with: pip install vigil[pydantic]"
            )

        self._models: dict[str, type[BaseModel]] = dict(models or {})
        self._built: dict[tuple[str, tuple[str, ...]], type[BaseModel]] = {}
        self._lock = threading.Lock()

    def register_model(self, key: str, model: type[BaseModel]) -> None:
        """Validate parameters under ``key`` with ``model``."""
        with self._lock:
            self._models[key] = model

    def permit(
        self,
        params: Mapping[str, Any],
        key: str,
        permitted: Iterable[str],
    ) -> dict[str, Any]:
        permitted = list(permitted)
        attributes = {str(k): v for k, v in self.fetch(params, key).items()}
        data = {name: attributes[name] for name in permitted if name in attributes}

        model = self._model_for(key, permitted)
        validated = model.model_validate(data).model_dump(exclude_unset=True)
        return {name: validated[name] for name in permitted if name in validated}

    def _model_for(self, key: str, permitted: list[str]) -> type[BaseModel]:
        with self._lock:
            if key in self._models:
                return self._models[key]

            cache_key = (key, tuple(permitted))
            model = self._built.get(cache_key)
            if model is None:
                fields: dict[str, Any] = {name: (Any, None) for name in permitted}
                model = create_model(
                    f"{camelize(key)}Params",
                    __config__=ConfigDict(extra="ignore"),
                    **fields,
                )
                self._built[cache_key] = model
            return model
