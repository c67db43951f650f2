"""The plugin service: catalogue, interaction configuration and mock server results."""

from __future__ import annotations

import copy
import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import IntEnum
from pathlib import Path
from typing import Any

from google.protobuf.json_format import MessageToDict
from google.protobuf.struct_pb2 import Value

from .config import ConfigError, merge_value
from .results import MockServerRegistry, MockServerResult

DEFAULT_MANIFEST_FILE = "./pact-plugin.json"
PROTOBUF_CONTENT_TYPES = "application/protobuf;application/grpc"


class EntryType(IntEnum):
    """The kind of entry the plugin adds to the catalogue."""

    CONTENT_MATCHER = 0
    CONTENT_GENERATOR = 1
    TRANSPORT = 2
    MATCHER = 3
    INTERACTION = 4


@dataclass(frozen=True)
class CatalogueEntry:
    """One entry that the plugin registers in the plugin catalogue."""

    type: EntryType
    key: str
    values: dict[str, str] = field(default_factory=dict)


def _json_to_string(value: Any) -> str:
    """Render a JSON value as a string: strings as they are, anything else as JSON."""
    if isinstance(value, str):
        return value
    return json.dumps(value, separators=(",", ":"))


def _config_item_present(value: Any) -> bool:
    """True if a contents config item holds a value that renders as a string."""
    if value is None:
        return False
    if isinstance(value, Value):
        kind = value.WhichOneof("kind")
        return kind is not None and kind != "null_value"
    return True


def _describe_value(value: Any) -> str:
    if isinstance(value, Value):
        return json.dumps(MessageToDict(value))
    return json.dumps(value)


class ProtobufPactPlugin:
    """Protobuf and gRPC plugin service, configured from the plugin manifest."""

    def __init__(
        self,
        manifest: Mapping[str, Any] | None = None,
        registry: MockServerRegistry | None = None,
    ) -> None:
        self.manifest: dict[str, Any] = dict(manifest or {})
        self.registry = registry if registry is not None else MockServerRegistry()

    @property
    def plugin_config(self) -> dict[str, Any]:
        """The plugin configuration from the manifest."""
        config = self.manifest.get("pluginConfig")
        return dict(config) if isinstance(config, Mapping) else {}

    @classmethod
    def from_manifest_file(cls, path: str | Path = DEFAULT_MANIFEST_FILE) -> ProtobufPactPlugin:
        """Create a plugin from a manifest file, falling back to an empty manifest."""
        try:
            with open(path, encoding="utf-8") as handle:
                manifest = json.load(handle)
        except (OSError, ValueError):
            manifest = {}
        if not isinstance(manifest, Mapping):
            manifest = {}
        return cls(manifest)

    def host_to_bind_to(self) -> str | None:
        """The configured host to bind to, if the manifest sets one."""
        config = self.plugin_config
        if "hostToBindTo" not in config:
            return None
        return _json_to_string(config["hostToBindTo"])

    def additional_includes(self, config: Mapping[str, Any]) -> list[str]:
        """Extra include paths for the Protocol Buffers compiler from the configuration."""
        if "additionalIncludes" not in config:
            return []
        includes = config["additionalIncludes"]
        if isinstance(includes, list):
            return [_json_to_string(item) for item in includes]
        return [_json_to_string(includes)]

    def setup_plugin_config(self, fields: Mapping[str, Any]) -> dict[str, Any]:
        """Merge any 'pact:protobuf-config' test settings over the manifest configuration."""
        plugin_config = copy.deepcopy(self.plugin_config)
        config = fields.get("pact:protobuf-config")
        if isinstance(config, Value):
            kind = config.WhichOneof("kind")
            if kind is None or kind == "null_value":
                return plugin_config
            if kind != "struct_value":
                raise ConfigError(
                    f"pact:protobuf-config must be an object, got {_describe_value(config)}"
                )
            overrides = MessageToDict(config.struct_value)
        elif config is None:
            return plugin_config
        elif isinstance(config, Mapping):
            overrides = dict(config)
        else:
            raise ConfigError(
                f"pact:protobuf-config must be an object, got {_describe_value(config)}"
            )

        for key, value in overrides.items():
            if key in plugin_config:
                plugin_config[key] = merge_value(plugin_config[key], value)
            else:
                plugin_config[key] = copy.deepcopy(value)
        return plugin_config

    def init_plugin(self, implementation: str, version: str) -> list[CatalogueEntry]:
        """Return the catalogue entries the plugin provides."""
        return [
            CatalogueEntry(
                EntryType.CONTENT_MATCHER,
                "protobuf",
                {"content-types": PROTOBUF_CONTENT_TYPES},
            ),
            CatalogueEntry(
                EntryType.CONTENT_GENERATOR,
                "protobuf",
                {"content-types": PROTOBUF_CONTENT_TYPES},
            ),
            CatalogueEntry(EntryType.TRANSPORT, "grpc", {}),
        ]

    def configure_interaction_errors(self, fields: Mapping[str, Any]) -> str | None:
        """Return the error a configure interaction request reports, or None if it is valid."""
        if not _config_item_present(fields.get("pact:proto")):
            return "Config item with key 'pact:proto' and path to the proto file is required"
        if "pact:message-type" not in fields and "pact:proto-service" not in fields:
            return (
                "Config item with key 'pact:message-type' and the protobuf message name "
                "or 'pact:proto-service' and the service name is required"
            )
        try:
            self.setup_plugin_config(fields)
        except ConfigError as err:
            return str(err)
        return None

    def get_mock_server_results(self, server_key: str) -> tuple[bool, list[MockServerResult]]:
        """Return the results recorded by the mock server with the given key."""
        return self.registry.results_for(server_key)

    def shutdown_mock_server(self, server_key: str) -> tuple[bool, list[MockServerResult]]:
        """Return the results of the mock server with the given key and forget it."""
        return self.registry.shutdown(server_key)