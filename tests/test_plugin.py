import json

import pytest
from google.protobuf.struct_pb2 import Struct, Value

from pactbuf.config import ConfigError
from pactbuf.mismatches import BodyMatchResult, MetadataMatchResult
from pactbuf.plugin import CatalogueEntry, EntryType, ProtobufPactPlugin
from pactbuf.results import MockServerRegistry


def _string_value(text):
    return Value(string_value=text)


def _struct_value(data):
    struct = Struct()
    struct.update(data)
    return Value(struct_value=struct)


def test_init_plugin():
    plugin = ProtobufPactPlugin()
    catalogue = plugin.init_plugin("test", "0")
    assert len(catalogue) == 3

    first, second, third = catalogue
    assert first.key == "protobuf"
    assert first.type == EntryType.CONTENT_MATCHER
    assert first.values.get("content-types") == "application/protobuf;application/grpc"

    assert second.key == "protobuf"
    assert second.type == EntryType.CONTENT_GENERATOR
    assert second.values.get("content-types") == "application/protobuf;application/grpc"

    assert third == CatalogueEntry(EntryType.TRANSPORT, "grpc", {})
    assert third.values == {}


def test_configure_interaction_with_no_config():
    plugin = ProtobufPactPlugin()
    assert plugin.configure_interaction_errors({}) == (
        "Config item with key 'pact:proto' and path to the proto file is required"
    )


def test_configure_interaction_with_missing_message_or_service_name():
    plugin = ProtobufPactPlugin()
    fields = {"pact:proto": _string_value("test.proto")}
    assert plugin.configure_interaction_errors(fields) == (
        "Config item with key 'pact:message-type' and the protobuf message name or "
        "'pact:proto-service' and the service name is required"
    )


def test_configure_interaction_with_valid_config():
    plugin = ProtobufPactPlugin()
    fields = {
        "pact:proto": _string_value("test.proto"),
        "pact:proto-service": _string_value("Test/GetTest"),
    }
    assert plugin.configure_interaction_errors(fields) is None


def test_configure_interaction_with_invalid_protobuf_config():
    plugin = ProtobufPactPlugin()
    fields = {
        "pact:proto": _string_value("test.proto"),
        "pact:message-type": _string_value("MessageIn"),
        "pact:protobuf-config": _string_value("nope"),
    }
    error = plugin.configure_interaction_errors(fields)
    assert error.startswith("pact:protobuf-config must be an object")


def test_host_to_bind_to_default():
    assert ProtobufPactPlugin().host_to_bind_to() is None


def test_host_to_bind_to_with_string_value():
    plugin = ProtobufPactPlugin({"pluginConfig": {"hostToBindTo": "127.0.1.1"}})
    assert plugin.host_to_bind_to() == "127.0.1.1"


def test_host_to_bind_to_with_non_string_value():
    plugin = ProtobufPactPlugin({"pluginConfig": {"hostToBindTo": "127"}})
    assert plugin.host_to_bind_to() == "127"


def test_additional_includes_default():
    assert ProtobufPactPlugin().additional_includes({}) == []


def test_additional_includes_with_string_value():
    plugin = ProtobufPactPlugin()
    assert plugin.additional_includes({"additionalIncludes": "/some/path"}) == ["/some/path"]


def test_additional_includes_with_list_value():
    plugin = ProtobufPactPlugin()
    config = {"additionalIncludes": ["/path1", "/path2"]}
    assert plugin.additional_includes(config) == ["/path1", "/path2"]


def test_additional_includes_with_non_string_values():
    plugin = ProtobufPactPlugin()
    config = {"additionalIncludes": ["/path1", 200]}
    assert plugin.additional_includes(config) == ["/path1", "200"]


def test_setup_plugin_config_overwrites_manifest_config_from_test_config():
    plugin = ProtobufPactPlugin({"pluginConfig": {"protocVersion": "1"}})
    fields = {"pact:protobuf-config": _struct_value({"protocVersion": "2"})}
    assert plugin.setup_plugin_config(fields) == {"protocVersion": "2"}


def test_setup_plugin_config_merges_lists_and_adds_keys():
    plugin = ProtobufPactPlugin({"pluginConfig": {"additionalIncludes": ["/a"]}})
    fields = {"pact:protobuf-config": {"additionalIncludes": ["/b"], "other": "x"}}
    assert plugin.setup_plugin_config(fields) == {
        "additionalIncludes": ["/a", "/b"],
        "other": "x",
    }
    assert plugin.plugin_config == {"additionalIncludes": ["/a"]}


def test_setup_plugin_config_without_test_config_returns_manifest_config():
    plugin = ProtobufPactPlugin({"pluginConfig": {"protocVersion": "1"}})
    assert plugin.setup_plugin_config({}) == {"protocVersion": "1"}
    null_value = Value(null_value=0)
    assert plugin.setup_plugin_config({"pact:protobuf-config": null_value}) == {
        "protocVersion": "1"
    }


def test_setup_plugin_config_rejects_non_object():
    plugin = ProtobufPactPlugin()
    with pytest.raises(ConfigError):
        plugin.setup_plugin_config({"pact:protobuf-config": Value(number_value=1)})


def test_from_manifest_file_missing_file_gives_empty_manifest(tmp_path):
    plugin = ProtobufPactPlugin.from_manifest_file(tmp_path / "missing.json")
    assert plugin.manifest == {}
    assert plugin.host_to_bind_to() is None


def test_from_manifest_file_reads_plugin_config(tmp_path):
    path = tmp_path / "pact-plugin.json"
    path.write_text(json.dumps({"name": "protobuf", "pluginConfig": {"hostToBindTo": "0.0.0.0"}}))
    plugin = ProtobufPactPlugin.from_manifest_file(path)
    assert plugin.host_to_bind_to() == "0.0.0.0"


def test_shutdown_mock_server_returns_an_error_if_the_server_key_was_not_found():
    plugin = ProtobufPactPlugin()
    ok, results = plugin.shutdown_mock_server("1234abcd")
    assert ok is False
    assert results[0].error == "Did not find any mock server results for a server with ID 1234abcd"


def test_get_mock_server_results_returns_an_error_if_the_server_key_was_not_found():
    plugin = ProtobufPactPlugin()
    ok, results = plugin.get_mock_server_results("1234abcd")
    assert ok is False
    assert results[0].error == "Did not find any mock server results for a server with ID 1234abcd"


def test_mock_server_results_and_shutdown_with_registered_server():
    registry = MockServerRegistry()
    registry.register(
        "server1",
        {"Test/GetTest": (1, [(BodyMatchResult(), MetadataMatchResult.ok())])},
    )
    plugin = ProtobufPactPlugin(registry=registry)

    ok, results = plugin.get_mock_server_results("server1")
    assert ok is True
    assert [r.path for r in results] == ["Test/GetTest"]

    ok, results = plugin.shutdown_mock_server("server1")
    assert ok is True
    assert len(results) == 1
    assert "server1" not in registry

    ok, _ = plugin.get_mock_server_results("server1")
    assert ok is False