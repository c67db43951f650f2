"""Lookups over Protocol Buffers descriptors: messages, nested types, enums and services."""

from __future__ import annotations

from collections.abc import Iterable, Mapping

from google.protobuf.descriptor_pb2 import (
    DescriptorProto,
    EnumDescriptorProto,
    FieldDescriptorProto,
    FileDescriptorProto,
    FileDescriptorSet,
    ServiceDescriptorProto,
)
from google.protobuf.struct_pb2 import Value

_Type = FieldDescriptorProto.Type

_PACKED_TYPES = frozenset(
    {
        FieldDescriptorProto.TYPE_DOUBLE,
        FieldDescriptorProto.TYPE_FLOAT,
        FieldDescriptorProto.TYPE_INT64,
        FieldDescriptorProto.TYPE_UINT64,
        FieldDescriptorProto.TYPE_INT32,
        FieldDescriptorProto.TYPE_FIXED64,
        FieldDescriptorProto.TYPE_FIXED32,
        FieldDescriptorProto.TYPE_UINT32,
        FieldDescriptorProto.TYPE_SFIXED32,
        FieldDescriptorProto.TYPE_SFIXED64,
        FieldDescriptorProto.TYPE_SINT32,
        FieldDescriptorProto.TYPE_SINT64,
        FieldDescriptorProto.TYPE_ENUM,
    }
)

_KIND_NAMES = {
    "null_value": "Null",
    "number_value": "Number",
    "string_value": "String",
    "bool_value": "Bool",
    "struct_value": "Struct",
    "list_value": "List",
}


class DescriptorError(LookupError):
    """Raised when a descriptor lookup or conversion fails."""


def last_name(entry_type_name: str) -> str:
    """Return the last name in a dot separated string."""
    return entry_type_name.split(".")[-1]


def find_message_type_by_name(
    message_name: str, descriptors: FileDescriptorSet
) -> tuple[DescriptorProto, FileDescriptorProto]:
    """Search every file in the set for a message type with the given name."""
    for file_descriptor in descriptors.file:
        try:
            message = find_message_type_in_file_descriptor(message_name, file_descriptor)
        except DescriptorError:
            continue
        return message, file_descriptor
    raise DescriptorError(f"Did not find a message type '{message_name}' in the descriptors")


def find_message_type_in_file_descriptor(
    message_name: str, descriptor: FileDescriptorProto
) -> DescriptorProto:
    """Search a single file descriptor for a top level message type with the given name."""
    for message in descriptor.message_type:
        if message.name == message_name:
            return message
    file_name = descriptor.name if descriptor.HasField("name") else "unknown"
    raise DescriptorError(
        f"Did not find a message type '{message_name}' in the file descriptor '{file_name}'"
    )


def find_message_type_in_file_descriptors(
    message_type: str,
    file_descriptor: FileDescriptorProto,
    all_descriptors: Mapping[str, FileDescriptorProto],
) -> DescriptorProto:
    """Search the given file descriptor first, then all the other descriptors."""
    try:
        return find_message_type_in_file_descriptor(message_type, file_descriptor)
    except DescriptorError:
        pass
    for other in all_descriptors.values():
        try:
            return find_message_type_in_file_descriptor(message_type, other)
        except DescriptorError:
            continue
    raise DescriptorError(
        f"Did not find a message type '{message_type}' in any of the file descriptors"
    )


def is_map_field(message_descriptor: DescriptorProto, field: FieldDescriptorProto) -> bool:
    """True if the field is repeated, of message type, and its nested type is a map entry."""
    if (
        field.label != FieldDescriptorProto.LABEL_REPEATED
        or field.type != FieldDescriptorProto.TYPE_MESSAGE
    ):
        return False
    nested = find_nested_type(message_descriptor, field)
    if nested is None or not nested.HasField("options"):
        return False
    return nested.options.map_entry


def find_nested_type(
    message_descriptor: DescriptorProto, field: FieldDescriptorProto
) -> DescriptorProto | None:
    """Return the nested descriptor for a message-typed field, if there is one."""
    if field.type != FieldDescriptorProto.TYPE_MESSAGE:
        return None
    message_type = last_name(field.type_name)
    return next(
        (nested for nested in message_descriptor.nested_type if nested.name == message_type),
        None,
    )


def as_hex(data: bytes | Iterable[int]) -> str:
    """Return the lower case hexadecimal representation of the bytes."""
    return bytes(data).hex()


def display_bytes(data: bytes | Iterable[int]) -> str:
    """Render bytes for display, truncating after the first 16."""
    data = bytes(data)
    if len(data) <= 16:
        return as_hex(data)
    return f"{as_hex(data[:16])}... ({len(data)} bytes)"


def is_repeated_field(descriptor: FieldDescriptorProto) -> bool:
    """True if the field is a repeated field."""
    return descriptor.label == FieldDescriptorProto.LABEL_REPEATED


def enum_name(enum_value: int, descriptor: EnumDescriptorProto) -> str:
    """Return the name of the enum value with the given number."""
    for value in descriptor.value:
        number = value.number if value.HasField("number") else -1
        if number == enum_value:
            return value.name if value.HasField("name") else f"enum {enum_value}"
    return f"Unknown enum {enum_value}"


def find_enum_value_by_name_in_message(
    enum_types: Iterable[EnumDescriptorProto], enum_name: str, enum_value: str
) -> tuple[int, EnumDescriptorProto] | None:
    """Find the number of the named value of the named enum among the given enum types."""
    short_name = last_name(enum_name)
    for enum_descriptor in enum_types:
        if not enum_descriptor.HasField("name") or enum_descriptor.name != short_name:
            continue
        for value in enum_descriptor.value:
            if value.HasField("name") and value.name == enum_value and value.HasField("number"):
                return value.number, enum_descriptor
    return None


def find_enum_by_name_in_message(
    enum_types: Iterable[EnumDescriptorProto], enum_name: str
) -> EnumDescriptorProto | None:
    """Find the enum type with the given name among the given enum types."""
    short_name = last_name(enum_name)
    return next(
        (
            enum_descriptor
            for enum_descriptor in enum_types
            if enum_descriptor.HasField("name") and enum_descriptor.name == short_name
        ),
        None,
    )


def _enum_container(file_descriptor: FileDescriptorProto, enum_name: str):
    """Return the enum types that could hold the named enum in this file, or None."""
    full_name = ".".join(part for part in enum_name.split(".") if part)
    package = file_descriptor.package
    if not full_name.startswith(package):
        return None
    parts = [part for part in full_name.replace(package, "").split(".") if part]
    if not parts:
        return None
    message_path = parts[:-1]
    if not message_path:
        return file_descriptor.enum_type
    try:
        message = find_message_type_in_file_descriptor(".".join(message_path), file_descriptor)
    except DescriptorError:
        return None
    return message.enum_type


def find_enum_value_by_name(
    descriptors: Mapping[str, FileDescriptorProto], enum_name: str, enum_value: str
) -> tuple[int, EnumDescriptorProto] | None:
    """Find the number of the named value of a fully qualified enum in all the descriptors."""
    for file_descriptor in descriptors.values():
        enum_types = _enum_container(file_descriptor, enum_name)
        if enum_types is None:
            continue
        result = find_enum_value_by_name_in_message(enum_types, enum_name, enum_value)
        if result is not None:
            return result
    return None


def find_enum_by_name(
    descriptors: FileDescriptorSet, enum_name: str
) -> EnumDescriptorProto | None:
    """Find a fully qualified enum type in all the descriptors of the set."""
    for file_descriptor in descriptors.file:
        enum_types = _enum_container(file_descriptor, enum_name)
        if enum_types is None:
            continue
        result = find_enum_by_name_in_message(enum_types, enum_name)
        if result is not None:
            return result
    return None


def find_service_descriptor(
    descriptors: FileDescriptorSet, service_name: str
) -> tuple[FileDescriptorProto, ServiceDescriptorProto]:
    """Find the file and service descriptor for the service with the given name."""
    for file_descriptor in descriptors.file:
        for service in file_descriptor.service:
            if service.name == service_name:
                return file_descriptor, service
    raise DescriptorError(f"Did not find a descriptor for service '{service_name}'")


def should_be_packed_type(field_type: int) -> bool:
    """True for the scalar numeric and enum field types that are packed when repeated."""
    return field_type in _PACKED_TYPES


def proto_value_to_map(val: Value) -> dict[str, Value]:
    """Convert a Struct or null Value into a dict of its fields."""
    kind = val.WhichOneof("kind")
    if kind is None or kind == "null_value":
        return {}
    if kind == "struct_value":
        return dict(val.struct_value.fields.items())
    raise DescriptorError(f"Must be a Protobuf Struct or NullValue, got {_KIND_NAMES[kind]}")