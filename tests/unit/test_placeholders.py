"""Unit tests for placeholder resolution."""

from __future__ import annotations

from knative_router.core.placeholders import PlaceholderResolver


class TestPlaceholderResolver:
    """Resolution never raises; anything unresolved yields None."""

    def test_plain_value_unchanged(self):
        assert PlaceholderResolver().resolve("myNamespace") == "myNamespace"

    def test_none_passes_through(self):
        assert PlaceholderResolver().resolve(None) is None

    def test_property_lookup(self):
        resolver = PlaceholderResolver({"myNamespaceKey": "myNamespace"})
        assert resolver.resolve("{{myNamespaceKey}}") == "myNamespace"

    def test_embedded_placeholder(self):
        resolver = PlaceholderResolver({"ns": "prod"})
        assert resolver.resolve("svc.{{ns}}.cluster") == "svc.prod.cluster"

    def test_whitespace_inside_braces(self):
        resolver = PlaceholderResolver({"ns": "prod"})
        assert resolver.resolve("{{ ns }}") == "prod"

    def test_unknown_key_yields_none(self):
        assert PlaceholderResolver().resolve("{{missing}}") is None

    def test_partial_failure_yields_none(self):
        resolver = PlaceholderResolver({"a": "x"})
        assert resolver.resolve("{{a}}.{{b}}") is None

    def test_fallback_used_when_absent(self):
        assert PlaceholderResolver().resolve("{{ns:default}}") == "default"

    def test_fallback_ignored_when_present(self):
        resolver = PlaceholderResolver({"ns": "prod"})
        assert resolver.resolve("{{ns:default}}") == "prod"

    def test_environment_lookup(self):
        resolver = PlaceholderResolver(environ={"NAMESPACE": "from-env"})
        assert resolver.resolve("{{env:NAMESPACE}}") == "from-env"

    def test_environment_missing_yields_none(self):
        resolver = PlaceholderResolver(environ={})
        assert resolver.resolve("{{env:NAMESPACE}}") is None

    def test_properties_are_copied(self):
        props = {"ns": "one"}
        resolver = PlaceholderResolver(props)
        props["ns"] = "two"
        assert resolver.resolve("{{ns}}") == "one"
