"""Plugin configuration handling: merging config values and reading interaction settings."""

from __future__ import annotations

import copy
import json
import math
from collections.abc import Mapping
from typing import Any

from google.protobuf.json_format import MessageToDict
from google.protobuf.message import Message
from google.protobuf.struct_pb2 import Struct, Value

INTERACTION_CONFIGURATION = "interactionConfiguration"


class ConfigError(ValueError):
    """Raised when plugin configuration is missing or can not be combined."""


def _to_plain(value: Any) -> Any:
    """Convert protobuf Struct and Value messages into plain JSON values."""
    if isinstance(value, Value):
        kind = value.WhichOneof("kind")
        if kind is None or kind == "null_value":
            return None
        return MessageToDict(value)
    if isinstance(value, Message):
        return MessageToDict(value)
    return value


def _value_to_string(value: Any) -> str | None:
    """Render a configuration value as a string; null values give None."""
    value = _to_plain(value)
    if value is None:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and math.isfinite(value) and value.is_integer():
        return str(int(value))
    if isinstance(value, (int, float)):
        return str(value)
    return json.dumps(value, separators=(",", ":"))


def merge_value(initial: Any, updated: Any) -> Any:
    """Merge an updated JSON configuration value into an initial one.

    Lists are extended (a non-list update is appended), objects are merged key by key,
    and for anything else a non-null update replaces the initial value.
    """
    if isinstance(initial, list):
        merged = copy.deepcopy(initial)
        if isinstance(updated, list):
            merged.extend(copy.deepcopy(updated))
        else:
            merged.append(copy.deepcopy(updated))
        return merged
    if isinstance(initial, dict):
        if updated is None:
            return copy.deepcopy(initial)
        if isinstance(updated, dict):
            merged = copy.deepcopy(initial)
            for key, value in updated.items():
                if key in merged:
                    merged[key] = merge_value(merged[key], value)
                else:
                    merged[key] = copy.deepcopy(value)
            return merged
        raise ConfigError(
            f"Can not merge config values: {json.dumps(initial)} and {json.dumps(updated)}"
        )
    if updated is None:
        return copy.deepcopy(initial)
    return copy.deepcopy(updated)


def get_interaction_config(config: Mapping[str, Any]) -> dict[str, Any]:
    """Return the interaction level plugin configuration as plain JSON values."""
    interaction_config = config.get(INTERACTION_CONFIGURATION)
    if interaction_config is None:
        raise ConfigError("Plugin configuration for the interaction is required")
    if isinstance(interaction_config, Struct):
        return MessageToDict(interaction_config)
    if not isinstance(interaction_config, Mapping):
        raise ConfigError("Plugin configuration for the interaction is required")
    return {key: _to_plain(value) for key, value in interaction_config.items()}


def lookup_message_key(interaction_config: Mapping[str, Any]) -> str:
    """Return the descriptor key from the interaction configuration."""
    key = _value_to_string(interaction_config.get("descriptorKey"))
    if key is None:
        raise ConfigError("Plugin configuration item with key 'descriptorKey' is required")
    return key


def lookup_message_and_service(
    interaction_config: Mapping[str, Any],
) -> tuple[str | None, str | None]:
    """Return the message type name and service name; at least one must be set."""
    message = _value_to_string(interaction_config.get("message"))
    service = _value_to_string(interaction_config.get("service"))
    if message is None and service is None:
        raise ConfigError(
            "Plugin configuration item with key 'message' or 'service' is required"
        )
    return message, service