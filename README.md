# pactbuf

Building blocks for Protobuf and gRPC support in Pact contract tests. The
package does five things:

- finds message, enum and service types in a `FileDescriptorSet`;
- reads the Protobuf settings stored in a V4 Pact file;
- merges plugin configuration;
- turns comparison mismatches into the plugin's content mismatch shape;
- reports the results that gRPC mock servers recorded.

## Installation

```
pip install pactbuf
```

Running the test suite needs the `test` extra:

```
pip install "pactbuf[test]"
pytest
```

## Modules

### `pactbuf.descriptors`

Lookups over `google.protobuf.descriptor_pb2` messages:

- `find_message_type_by_name` searches every file in a set.
- `find_message_type_in_file_descriptor` and
  `find_message_type_in_file_descriptors` search one file, or one file and
  then the others.
- `find_nested_type` and `is_map_field` look at message-typed fields.
- `find_enum_value_by_name` and `find_enum_by_name` find fully qualified
  enums. `find_enum_value_by_name_in_message` and
  `find_enum_by_name_in_message` search a list of enum types.
- `find_service_descriptor` finds a service.
- `enum_name`, `last_name`, `is_repeated_field` and `should_be_packed_type`
  are small helpers for names and field properties.
- `as_hex` and `display_bytes` render bytes. `display_bytes` shows at most 16
  bytes, followed by the total length.
- `proto_value_to_map` turns a `Struct` or null `Value` into a dict.

Failed lookups that must succeed raise `DescriptorError`. Optional lookups
return `None`.

### `pactbuf.pact`

`parse_pact_json` reads Pact JSON into the `Pact`, `Interaction` and
`PluginData` dataclasses.

- `lookup_interaction_by_id` finds an interaction by its key.
- `lookup_interaction_config` returns the interaction's `protobuf` plugin
  configuration.
- `get_descriptors_for_interaction` decodes the base64 `protoDescriptors`
  stored under a descriptor key. It checks their MD5 hash against that key.
- `lookup_service_descriptors_for_interaction` returns the descriptors,
  service, method and package for a gRPC interaction.

Errors raise `PactError`.

### `pactbuf.mismatches`

This module holds `MismatchKind`, `Mismatch`, `BodyMatchResult`,
`MetadataMatchResult` and `ContentMismatch`. `mismatch_to_content_mismatch`
converts a `Mismatch` into a `ContentMismatch`.

### `pactbuf.results`

`summarise_mock_server_results` takes per-route results. For each route it
expects a request count and a list of `(BodyMatchResult, MetadataMatchResult)`
pairs. It returns an overall flag and one `MockServerResult` per route. A route
with no requests gets an error.

`MockServerRegistry` is a thread-safe store keyed by server key. It has
`register`, `results_for` and `shutdown`, and supports `in`.

### `pactbuf.config`

- `merge_value` merges JSON-like configuration values. Lists are extended,
  objects are merged key by key, and a non-null scalar replaces the old value.
- `get_interaction_config`, `lookup_message_key` and
  `lookup_message_and_service` read the interaction level plugin
  configuration.

Errors raise `ConfigError`.

### `pactbuf.plugin`

`ProtobufPactPlugin` is built from a manifest dict, or from a manifest file
with `from_manifest_file`. It provides:

- `init_plugin`, which returns three `CatalogueEntry` values: a content
  matcher, a content generator and a `grpc` transport;
- `host_to_bind_to` and `additional_includes`;
- `setup_plugin_config`, which merges `pact:protobuf-config` over the
  manifest's `pluginConfig`;
- `configure_interaction_errors`, which validates a contents configuration;
- `get_mock_server_results` and `shutdown_mock_server`, both backed by a
  `MockServerRegistry`.

## Example

```python
from pactbuf.config import merge_value
from pactbuf.plugin import ProtobufPactPlugin

merged = merge_value({"additional": ["ok"]}, {"additional": ["more"], "other": "value"})
# {"additional": ["ok", "more"], "other": "value"}

plugin = ProtobufPactPlugin.from_manifest_file("pact-plugin.json")
for entry in plugin.init_plugin("my-test", "1.0"):
    print(entry.type, entry.key, entry.values)

ok, results = plugin.get_mock_server_results("some-server-key")
```

If the manifest file is missing or unreadable, the plugin starts with an
empty manifest. This is not an error.

## What it does not do

This package does not include:

- a gRPC plugin server;
- a running mock server;
- a Protocol Buffers compiler step;
- encoding, decoding, comparison or generation of message bodies;
- verification of a live provider.

Mock server results must be put into a `MockServerRegistry` by the caller.
`configure_interaction_errors` only checks the configuration. It does not
process proto files.