"""Pact file models and lookups of the Protobuf configuration stored in them."""

from __future__ import annotations

import base64
import binascii
import hashlib
import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from google.protobuf.descriptor_pb2 import (
    FileDescriptorSet,
    MethodDescriptorProto,
    ServiceDescriptorProto,
)
from google.protobuf.message import DecodeError

from .descriptors import find_service_descriptor

PLUGIN_NAME = "protobuf"

SYNCHRONOUS_HTTP = "Synchronous/HTTP"
ASYNCHRONOUS_MESSAGES = "Asynchronous/Messages"
SYNCHRONOUS_MESSAGES = "Synchronous/Messages"


class PactError(ValueError):
    """Raised when a Pact file or its Protobuf configuration is not usable."""


def _json_to_string(value: Any) -> str:
    """Render a JSON value as a string: strings as they are, anything else as compact JSON."""
    if isinstance(value, str):
        return value
    return json.dumps(value, separators=(",", ":"))


@dataclass
class PluginData:
    """Pact level data recorded by a plugin."""

    name: str
    version: str = ""
    configuration: dict[str, Any] = field(default_factory=dict)


@dataclass
class Interaction:
    """A single interaction from a V4 Pact."""

    key: str
    type: str
    description: str = ""
    plugin_config: dict[str, dict[str, Any]] = field(default_factory=dict)
    data: dict[str, Any] = field(default_factory=dict)

    @property
    def is_sync_message(self) -> bool:
        """True for a V4 synchronous message interaction."""
        return self.type == SYNCHRONOUS_MESSAGES

    @classmethod
    def from_json(cls, data: Mapping[str, Any], default_type: str) -> Interaction:
        if not isinstance(data, Mapping):
            raise PactError("Failed to parse Pact JSON: interaction is not a JSON object")
        body = dict(data)
        key = body.get("key")
        if not isinstance(key, str) or not key:
            without_key = {k: v for k, v in body.items() if k != "key"}
            canonical = json.dumps(without_key, sort_keys=True, separators=(",", ":"))
            key = hashlib.md5(canonical.encode("utf-8")).hexdigest()
        plugin_config = body.get("pluginConfiguration") or {}
        if not isinstance(plugin_config, Mapping):
            raise PactError("Failed to parse Pact JSON: pluginConfiguration is not a JSON object")
        return cls(
            key=key,
            type=str(body.get("type", default_type)),
            description=str(body.get("description", "")),
            plugin_config={
                name: dict(config) if isinstance(config, Mapping) else {}
                for name, config in plugin_config.items()
            },
            data=body,
        )


@dataclass
class Pact:
    """A V4 Pact: its participants, interactions and plugin data."""

    consumer: str = ""
    provider: str = ""
    interactions: list[Interaction] = field(default_factory=list)
    plugin_data: list[PluginData] = field(default_factory=list)
    metadata: dict[str, Any] = field(default_factory=dict)

    def plugin(self, name: str) -> PluginData | None:
        """Return the plugin data recorded under the given name, if any."""
        return next((data for data in self.plugin_data if data.name == name), None)


def _participant_name(value: Any) -> str:
    if isinstance(value, Mapping):
        return str(value.get("name", ""))
    return ""


def _load_plugin_data(metadata: Mapping[str, Any]) -> list[PluginData]:
    plugins = metadata.get("plugins") or []
    if not isinstance(plugins, list):
        raise PactError("Failed to parse Pact JSON: metadata plugins is not a list")
    result = []
    for entry in plugins:
        if not isinstance(entry, Mapping):
            raise PactError("Failed to parse Pact JSON: plugin entry is not a JSON object")
        configuration = entry.get("configuration") or {}
        if not isinstance(configuration, Mapping):
            raise PactError("Failed to parse Pact JSON: plugin configuration is not a JSON object")
        result.append(
            PluginData(
                name=str(entry.get("name", "")),
                version=str(entry.get("version", "")),
                configuration=dict(configuration),
            )
        )
    return result


def _load_interactions(document: Mapping[str, Any]) -> list[Interaction]:
    interactions = []
    for section, default_type in (
        ("interactions", SYNCHRONOUS_HTTP),
        ("messages", ASYNCHRONOUS_MESSAGES),
    ):
        entries = document.get(section) or []
        if not isinstance(entries, list):
            raise PactError(f"Failed to parse Pact JSON: {section} is not a list")
        interactions.extend(Interaction.from_json(entry, default_type) for entry in entries)
    return interactions


def parse_pact_json(pact_json: str, source: str) -> Pact:
    """Parse a Pact JSON document into a V4 Pact model."""
    try:
        document = json.loads(pact_json)
    except json.JSONDecodeError as err:
        raise PactError(f"Failed to parse Pact JSON: {err}") from err
    if not isinstance(document, Mapping):
        raise PactError(f"Failed to parse Pact JSON: expected a JSON object from {source}")

    metadata = document.get("metadata") or {}
    if not isinstance(metadata, Mapping):
        raise PactError("Failed to parse Pact JSON: metadata is not a JSON object")

    return Pact(
        consumer=_participant_name(document.get("consumer")),
        provider=_participant_name(document.get("provider")),
        interactions=_load_interactions(document),
        plugin_data=_load_plugin_data(metadata),
        metadata=dict(metadata),
    )


def lookup_interaction_by_id(interaction_key: str, pact: Pact) -> Interaction | None:
    """Find the interaction in the Pact with the given unique key."""
    return next((i for i in pact.interactions if i.key == interaction_key), None)


def lookup_interaction_config(interaction: Interaction) -> dict[str, Any] | None:
    """Return the Protobuf plugin configuration of the interaction, if any."""
    config = interaction.plugin_config.get(PLUGIN_NAME)
    return dict(config) if config is not None else None


def get_descriptors_for_interaction(
    message_key: str, plugin_config: Mapping[str, Any]
) -> FileDescriptorSet:
    """Decode the base64 descriptors stored under the key, checking their MD5 checksum."""
    keys = json.dumps(sorted(plugin_config.keys()))
    if message_key not in plugin_config:
        raise PactError(
            f"Plugin configuration item with key '{message_key}' is required. "
            f"Received config {keys}"
        )
    descriptor_config = plugin_config[message_key]
    if not isinstance(descriptor_config, Mapping):
        raise PactError(
            f"Plugin configuration item with key '{message_key}' has an invalid format"
        )
    encoded = descriptor_config.get("protoDescriptors")
    encoded = _json_to_string(encoded) if encoded is not None else ""
    if not encoded:
        raise PactError(
            f"Plugin configuration item with key '{message_key}' is required, but the "
            f"descriptors were empty. Received config {keys}"
        )

    try:
        descriptor_bytes = base64.b64decode(encoded, validate=True)
    except (binascii.Error, ValueError) as err:
        raise PactError(f"Failed to decode the Protobuf descriptor - {err}") from err

    descriptor_hash = hashlib.md5(descriptor_bytes).hexdigest()
    if descriptor_hash != message_key:
        raise PactError(
            f"Protobuf descriptors checksum failed. Expected {message_key} "
            f"but got {descriptor_hash}"
        )

    descriptors = FileDescriptorSet()
    try:
        descriptors.ParseFromString(descriptor_bytes)
    except DecodeError as err:
        raise PactError(str(err)) from err
    return descriptors


def lookup_service_descriptors_for_interaction(
    interaction: Interaction, pact: Pact
) -> tuple[FileDescriptorSet, ServiceDescriptorProto, MethodDescriptorProto, str]:
    """Return the descriptors, service, method and package that the interaction is for."""
    interaction_config = lookup_interaction_config(interaction)
    if interaction_config is None:
        raise PactError("Interaction does not have any Protobuf configuration")
    if "descriptorKey" not in interaction_config:
        raise PactError("Interaction descriptorKey was missing in Pact file")
    descriptor_key = _json_to_string(interaction_config["descriptorKey"])
    if "service" not in interaction_config:
        raise PactError("Interaction gRPC service was missing in Pact file")
    service = _json_to_string(interaction_config["service"])
    service_name, sep, method_name = service.partition("/")
    if not sep:
        raise PactError(
            f"Service name '{service}' is not valid, it should be of the form <SERVICE>/<METHOD>"
        )

    plugin = pact.plugin(PLUGIN_NAME)
    if plugin is None:
        raise PactError("Did not find any Protobuf configuration in the Pact file")
    descriptors = get_descriptors_for_interaction(descriptor_key, plugin.configuration)
    file_descriptor, service_descriptor = find_service_descriptor(descriptors, service_name)
    method_descriptor = next(
        (method for method in service_descriptor.method if method.name == method_name),
        None,
    )
    if method_descriptor is None:
        raise PactError(
            f"Did not find the method {method_name} in the Protobuf file descriptor "
            f"for service '{service}'"
        )
    return descriptors, service_descriptor, method_descriptor, file_descriptor.package