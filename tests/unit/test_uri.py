"""Unit tests for logical URI parsing and per-endpoint configuration."""

from __future__ import annotations

import pytest

from knative_router.config import KnativeSettings
from knative_router.errors import ConfigError
from knative_router.models.service import ServiceKind
from knative_router.router.configuration import KnativeConfiguration
from knative_router.router.uri import parse_logical_uri


class TestParseLogicalUri:

    def test_endpoint(self):
        uri = parse_logical_uri("knative:endpoint/myEndpoint")
        assert uri.kind == ServiceKind.ENDPOINT
        assert uri.name == "myEndpoint"
        assert uri.sub_path is None
        assert uri.params == {}
        assert uri.canonical == "knative://endpoint/myEndpoint"

    def test_double_slash_form(self):
        assert parse_logical_uri("knative://channel/c1").kind == ServiceKind.CHANNEL

    def test_sub_path(self):
        uri = parse_logical_uri("knative:endpoint/myEndpoint/another/path")
        assert uri.name == "myEndpoint"
        assert uri.sub_path == "/another/path"
        assert uri.canonical == "knative://endpoint/myEndpoint/another/path"

    def test_trailing_slash_has_no_sub_path(self):
        assert parse_logical_uri("knative:endpoint/e/").sub_path is None

    def test_params_sorted_in_canonical(self):
        uri = parse_logical_uri("knative:endpoint/e?jsonSerializationEnabled=true&cloudEventsType=my.type")
        assert uri.params == {"cloudEventsType": "my.type", "jsonSerializationEnabled": "true"}
        assert uri.canonical == (
            "knative://endpoint/e?cloudEventsType=my.type&jsonSerializationEnabled=true"
        )

    def test_equivalent_uris_share_canonical(self):
        first = parse_logical_uri("knative:endpoint/e?b=2&a=1")
        second = parse_logical_uri("knative://endpoint/e?a=1&b=2")
        assert first.canonical == second.canonical

    @pytest.mark.parametrize(
        "uri",
        ["http://endpoint/e", "endpoint/e", "knative:queue/q", "knative:endpoint", "knative:endpoint/"],
    )
    def test_malformed(self, uri):
        with pytest.raises(ConfigError):
            parse_logical_uri(uri)


class TestKnativeConfiguration:

    def test_defaults(self):
        config = KnativeConfiguration()
        assert config.cloud_events_spec_version == "0.1"
        assert config.json_serialization_enabled is False
        assert config.cloud_events_type is None
        assert config.transport_options == {}

    def test_from_settings(self, monkeypatch: pytest.MonkeyPatch):
        monkeypatch.setenv("KNATIVE_CLOUD_EVENTS_SPEC_VERSION", "0.3")
        monkeypatch.setenv("KNATIVE_JSON_SERIALIZATION_ENABLED", "true")
        config = KnativeConfiguration.from_settings(KnativeSettings(_env_file=None))
        assert config.cloud_events_spec_version == "0.3"
        assert config.json_serialization_enabled is True

    def test_with_parameters(self):
        config = KnativeConfiguration().with_parameters(
            {
                "cloudEventsSpecVersion": "0.2",
                "jsonSerializationEnabled": "true",
                "cloudEventsType": "my.type",
                "filterHeaderName": "CE-Source",
                "filterHeaderValue": "CE1",
                "transport.timeout": "5",
            }
        )
        assert config.cloud_events_spec_version == "0.2"
        assert config.json_serialization_enabled is True
        assert config.cloud_events_type == "my.type"
        assert config.filter_header_name == "CE-Source"
        assert config.filter_header_value == "CE1"
        assert config.transport_options == {"timeout": "5"}

    def test_parameters_do_not_mutate_base(self):
        base = KnativeConfiguration(transport_options={"a": "1"})
        derived = base.with_parameters({"transport.b": "2"})
        assert base.transport_options == {"a": "1"}
        assert derived.transport_options == {"a": "1", "b": "2"}

    def test_environment_kept(self, make_environment):
        env = make_environment({"name": "e"})
        config = KnativeConfiguration(environment=env).with_parameters({"cloudEventsType": "t"})
        assert config.environment is env

    def test_unknown_parameter(self):
        with pytest.raises(ConfigError, match="Unknown parameter 'bogus'"):
            KnativeConfiguration().with_parameters({"bogus": "1"})

    def test_bad_value(self):
        with pytest.raises(ConfigError, match="Invalid endpoint parameters"):
            KnativeConfiguration().with_parameters({"jsonSerializationEnabled": "maybe"})
