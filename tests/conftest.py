"""
Pytest fixtures for Vigil tests.

Provides common fixtures used across all test modules.
"""

from __future__ import annotations

from collections.abc import Generator

import pytest

from tests.models import Document, DocumentCollection, Post
from vigil.context.authorization import AuthorizationContext
from vigil.policies.registry import PolicyRegistry, reset_global_registry
from vigil.types import UserContext

MODELS_MODULE = "tests.models"


# ============================================================================
# User Context Fixtures
# ============================================================================


@pytest.fixture
def user() -> UserContext:
    """Create a basic user context for testing."""
    return UserContext(user_id="user_123", roles=["user"])


@pytest.fixture
def other_user() -> UserContext:
    """Create a second, unrelated user."""
    return UserContext(user_id="user_456", roles=["user"])


@pytest.fixture
def admin_user() -> UserContext:
    """Create an admin user context for testing."""
    return UserContext(user_id="admin_789", roles=["admin", "user"])


# ============================================================================
# Registry Fixtures
# ============================================================================


@pytest.fixture
def policy_registry() -> PolicyRegistry:
    """Create a registry that finds the test policies by convention."""
    return PolicyRegistry(namespaces=[MODELS_MODULE])


@pytest.fixture(autouse=True)
def clean_global_registry() -> Generator[None, None, None]:
    """Ensure no test leaks registrations into the global registry."""
    reset_global_registry()
    yield
    reset_global_registry()


# ============================================================================
# Resource Fixtures
# ============================================================================


@pytest.fixture
def post(user: UserContext) -> Post:
    """A post owned by the basic user."""
    return Post(user, title="Hello")


@pytest.fixture
def documents(user: UserContext, other_user: UserContext) -> DocumentCollection:
    """Documents owned by two different users."""
    return DocumentCollection(
        [
            Document(user, "mine"),
            Document(other_user, "theirs"),
            Document(user, "also mine"),
        ]
    )


# ============================================================================
# Context Fixtures
# ============================================================================


@pytest.fixture
def context(user: UserContext, policy_registry: PolicyRegistry) -> AuthorizationContext:
    """An authorization context for the basic user handling an update."""
    return AuthorizationContext(
        user,
        params={"action": "update"},
        registry=policy_registry,
    )
