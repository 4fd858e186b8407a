"""
Tests for policy resolution.

Tests cover:
- Convention-based lookup for classes, instances and symbolic names
- model_name and policy_class overrides
- Scope / Attributes lookups in lenient and strict form
- params_key derivation
- FinderConfig
"""

from __future__ import annotations

import pytest

from tests.models import (
    Article,
    ArticleTag,
    ArtificialBlog,
    Blog,
    BlogPolicy,
    BlogPost,
    Comment,
    CommentPolicy,
    DocumentCollection,
    DocumentPolicy,
    LegacyPost,
    NamedPolicyRecord,
    Post,
    PostPolicy,
)
from vigil.exceptions import (
    AttributesNotFoundError,
    ConfigurationError,
    NotDefinedError,
    PolicyNotFoundError,
    ScopeNotFoundError,
)
from vigil.policies.base import Policy
from vigil.policies.finder import FinderConfig, PolicyFinder
from vigil.policies.registry import PolicyRegistry


class TestPolicyLookup:
    """Tests for resolving the policy class."""

    def test_class_resolves_by_convention(self, policy_registry: PolicyRegistry):
        """A class maps to <Name>Policy in its own module."""
        assert PolicyFinder(Post, policy_registry).policy() is PostPolicy

    def test_instance_resolves_through_its_type(self, policy_registry: PolicyRegistry):
        """An instance maps to the policy of its type."""
        assert PolicyFinder(Post(), policy_registry).policy() is PostPolicy

    def test_type_module_used_without_namespaces(self):
        """Classes resolve in their own module even with an empty registry."""
        assert PolicyFinder(Post, PolicyRegistry()).policy() is PostPolicy

    def test_symbol_resolves_by_classified_name(self, policy_registry: PolicyRegistry):
        """A symbolic name is classified before the suffix is added."""
        assert PolicyFinder("post", policy_registry).policy() is PostPolicy
        assert PolicyFinder("posts", policy_registry).policy() is PostPolicy

    def test_symbol_needs_registry_namespace(self):
        """Symbols carry no module, so they resolve only through the registry."""
        assert PolicyFinder("post", PolicyRegistry()).policy() is None

    def test_model_name_on_class(self, policy_registry: PolicyRegistry):
        """A model_name classmethod provides the resource name."""
        assert PolicyFinder(Comment, policy_registry).policy() is CommentPolicy
        assert PolicyFinder(Comment(), policy_registry).policy() is CommentPolicy

    def test_model_name_string(self, policy_registry: PolicyRegistry):
        """A plain model_name string overrides the class name."""
        assert PolicyFinder(LegacyPost, policy_registry).policy() is PostPolicy
        assert PolicyFinder(LegacyPost(), policy_registry).policy() is PostPolicy

    def test_model_name_on_collection(self, policy_registry: PolicyRegistry):
        """A collection reference resolves through its model_name."""
        collection = DocumentCollection([])
        assert PolicyFinder(collection, policy_registry).policy() is DocumentPolicy

    def test_missing_policy_returns_none(self, policy_registry: PolicyRegistry):
        """Lenient lookup returns None when nothing matches."""
        assert PolicyFinder(Article, policy_registry).policy() is None
        assert PolicyFinder(Article(), policy_registry).policy() is None

    def test_missing_policy_raises(self, policy_registry: PolicyRegistry):
        """Strict lookup raises PolicyNotFoundError naming the attempted policy."""
        with pytest.raises(PolicyNotFoundError) as exc_info:
            PolicyFinder(Article, policy_registry).policy_or_raise()

        assert exc_info.value.name == "ArticlePolicy"
        assert exc_info.value.resource is Article
        assert "ArticlePolicy" in str(exc_info.value)

    def test_policy_not_found_is_not_defined_error(self, policy_registry: PolicyRegistry):
        """PolicyNotFoundError belongs to the not-defined family."""
        with pytest.raises(NotDefinedError):
            PolicyFinder(Article(), policy_registry).policy_or_raise()

    def test_registered_policy_wins(self, policy_registry: PolicyRegistry):
        """Explicit registrations are consulted before namespaces."""
        class ReplacementPostPolicy(Policy):
            pass

        policy_registry.register("PostPolicy", ReplacementPostPolicy)
        assert PolicyFinder(Post, policy_registry).policy() is ReplacementPostPolicy

    def test_local_class_found_through_registry(self):
        """Classes defined in a function resolve once registered."""
        class Invoice:
            pass

        registry = PolicyRegistry()
        assert PolicyFinder(Invoice, registry).policy() is None

        @registry.policy()
        class InvoicePolicy(Policy):
            pass

        assert PolicyFinder(Invoice, registry).policy() is InvoicePolicy

    def test_policy_name(self, policy_registry: PolicyRegistry):
        """policy_name reports the conventional name, found or not."""
        assert PolicyFinder(Post, policy_registry).policy_name() == "PostPolicy"
        assert PolicyFinder("comments", policy_registry).policy_name() == "CommentPolicy"
        assert PolicyFinder(Article(), policy_registry).policy_name() == "ArticlePolicy"


class TestExplicitPolicyClass:
    """Tests for the policy_class override."""

    def test_override_on_class(self, policy_registry: PolicyRegistry):
        """A class-level policy_class beats the naming convention."""
        assert PolicyFinder(ArtificialBlog, policy_registry).policy() is BlogPolicy

    def test_override_on_instance(self, policy_registry: PolicyRegistry):
        """Instances see the override defined on their type."""
        assert PolicyFinder(ArtificialBlog(), policy_registry).policy() is BlogPolicy

    def test_override_beats_existing_conventional_policy(self, policy_registry: PolicyRegistry):
        """The override wins even when <Name>Policy exists."""
        class Special(Post):
            policy_class = BlogPolicy

        assert PolicyFinder(Special, policy_registry).policy() is BlogPolicy

    def test_override_returning_anonymous_class(self, policy_registry: PolicyRegistry):
        """A callable override may build a class on the fly."""
        policy = PolicyFinder(ArticleTag, policy_registry).policy()

        assert isinstance(policy, type)
        assert issubclass(policy, Policy)
        assert policy(None, ArticleTag).can_show() is True

        instance_policy = PolicyFinder(ArticleTag(), policy_registry).policy()
        assert instance_policy(None, None).can_destroy() is False

    def test_string_override_resolved_late(self, policy_registry: PolicyRegistry):
        """A string override is looked up by name at resolution time."""
        assert PolicyFinder(NamedPolicyRecord, policy_registry).policy() is BlogPolicy
        assert PolicyFinder(NamedPolicyRecord, policy_registry).policy_name() == "BlogPolicy"

    def test_string_override_dotted_path(self):
        """A dotted string override is imported."""
        class Record:
            policy_class = "tests.models.BlogPolicy"

        assert PolicyFinder(Record, PolicyRegistry()).policy() is BlogPolicy

    def test_unresolvable_string_override(self, policy_registry: PolicyRegistry):
        """An override naming a missing class is not found, not an error."""
        class Record:
            policy_class = "MissingPolicy"

        assert PolicyFinder(Record, policy_registry).policy() is None
        with pytest.raises(PolicyNotFoundError, match="MissingPolicy"):
            PolicyFinder(Record, policy_registry).policy_or_raise()

    def test_instance_method_override_only_applies_to_instances(self, policy_registry: PolicyRegistry):
        """On the class itself an instance-method override is ignored."""
        class Draft:
            def policy_class(self):
                return BlogPolicy

        assert PolicyFinder(Draft(), policy_registry).policy() is BlogPolicy
        assert PolicyFinder(Draft, policy_registry).policy() is None
        assert PolicyFinder(Draft, policy_registry).policy_name() == "DraftPolicy"

    def test_staticmethod_override_on_class(self, policy_registry: PolicyRegistry):
        """A staticmethod override is callable from the class."""
        class Draft:
            @staticmethod
            def policy_class():
                return BlogPolicy

        assert PolicyFinder(Draft, policy_registry).policy() is BlogPolicy

    def test_policy_type_resolves_to_itself(self, policy_registry: PolicyRegistry):
        """An already-resolved policy type is its own policy."""
        assert PolicyFinder(PostPolicy, policy_registry).policy() is PostPolicy

    def test_errors_from_override_propagate(self, policy_registry: PolicyRegistry):
        """Only name-resolution failures become 'not found'."""
        class Broken:
            @classmethod
            def policy_class(cls):
                raise RuntimeError("boom")

        with pytest.raises(RuntimeError, match="boom"):
            PolicyFinder(Broken, policy_registry).policy()


class TestNestedLookups:
    """Tests for Scope and Attributes lookups."""

    def test_scope(self, policy_registry: PolicyRegistry):
        """scope returns the nested Scope class."""
        assert PolicyFinder(Post, policy_registry).scope() is PostPolicy.Scope
        assert PolicyFinder(Comment, policy_registry).scope_or_raise() is CommentPolicy.Scope

    def test_attributes(self, policy_registry: PolicyRegistry):
        """attributes returns the nested Attributes class."""
        assert PolicyFinder(Post(), policy_registry).attributes() is PostPolicy.Attributes
        assert PolicyFinder("post", policy_registry).attributes_or_raise() is PostPolicy.Attributes

    def test_missing_policy_short_circuits(self, policy_registry: PolicyRegistry):
        """Without a policy, lenient nested lookups return None."""
        finder = PolicyFinder(Article, policy_registry)
        assert finder.scope() is None
        assert finder.attributes() is None

    def test_missing_policy_strict_nested_raises(self, policy_registry: PolicyRegistry):
        """Strict nested lookups name the nested type they looked for."""
        finder = PolicyFinder(Article, policy_registry)

        with pytest.raises(ScopeNotFoundError) as scope_info:
            finder.scope_or_raise()
        assert scope_info.value.name == "ArticlePolicy.Scope"

        with pytest.raises(AttributesNotFoundError) as attrs_info:
            finder.attributes_or_raise()
        assert attrs_info.value.name == "ArticlePolicy.Attributes"

    def test_policy_without_scope(self, policy_registry: PolicyRegistry):
        """A policy lacking Scope is distinct from a missing policy."""
        finder = PolicyFinder(ArticleTag, policy_registry)

        assert finder.policy() is not None
        assert finder.scope() is None
        with pytest.raises(ScopeNotFoundError, match="AnonymousTagPolicy.Scope"):
            finder.scope_or_raise()

    def test_policy_without_attributes(self, policy_registry: PolicyRegistry):
        """A policy lacking Attributes raises AttributesNotFoundError."""
        finder = PolicyFinder(Blog, policy_registry)

        assert finder.policy() is BlogPolicy
        assert finder.attributes() is None
        with pytest.raises(AttributesNotFoundError) as exc_info:
            finder.attributes_or_raise()

        assert "BlogPolicy.Attributes" in str(exc_info.value)
        assert exc_info.value.resource is Blog


class TestNames:
    """Tests for resource names and params keys."""

    def test_resource_name_for_class(self, policy_registry: PolicyRegistry):
        """Classes are their own resource name."""
        assert PolicyFinder(Post, policy_registry).resource_name() is Post
        assert PolicyFinder(Post(), policy_registry).resource_name() is Post

    def test_resource_name_for_symbol(self, policy_registry: PolicyRegistry):
        """Symbols are classified."""
        assert PolicyFinder("blog_posts", policy_registry).resource_name() == "BlogPost"

    def test_resource_name_from_model_name(self, policy_registry: PolicyRegistry):
        """model_name takes precedence over the class."""
        assert PolicyFinder(LegacyPost(), policy_registry).resource_name() == "Post"

    def test_params_key(self, policy_registry: PolicyRegistry):
        """params_key is the lower-cased resource name."""
        assert PolicyFinder(Post, policy_registry).params_key() == "post"
        assert PolicyFinder(Post(), policy_registry).params_key() == "post"
        assert PolicyFinder("posts", policy_registry).params_key() == "post"
        assert PolicyFinder(BlogPost, policy_registry).params_key() == "blogpost"
        assert PolicyFinder(Comment, policy_registry).params_key() == "comment"
        assert PolicyFinder(LegacyPost, policy_registry).params_key() == "post"


class TestFinderConfig:
    """Tests for FinderConfig."""

    def test_defaults(self):
        """Default conventions."""
        config = FinderConfig()
        assert config.policy_suffix == "Policy"
        assert config.scope_name == "Scope"
        assert config.attributes_name == "Attributes"

    def test_round_trip(self):
        """to_dict/from_dict preserve values."""
        config = FinderConfig(policy_suffix="Rules")
        assert FinderConfig.from_dict(config.to_dict()) == config

    def test_empty_value_rejected(self):
        """Empty names are a configuration error."""
        with pytest.raises(ConfigurationError) as exc_info:
            FinderConfig(scope_name="")
        assert exc_info.value.config_key == "scope_name"

    def test_custom_suffix(self):
        """A custom suffix changes the conventional name."""
        class Ledger:
            pass

        class LedgerRules(Policy):
            pass

        registry = PolicyRegistry()
        registry.register("LedgerRules", LedgerRules)
        finder = PolicyFinder(Ledger, registry, FinderConfig(policy_suffix="Rules"))

        assert finder.policy_name() == "LedgerRules"
        assert finder.policy() is LedgerRules
