"""Helpers that build descriptors the way protoc would hand them to the plugin."""

from google.protobuf import descriptor_pb2 as d2
from google.protobuf.compiler import plugin_pb2

FD = d2.FieldDescriptorProto


def make_file(name, package="", syntax="proto3"):
    return d2.FileDescriptorProto(name=name, package=package, syntax=syntax)


def add_enum(container, name, values):
    """Add an enum to a file or message; values is a list of (name, number)."""
    enum = container.enum_type.add(name=name)
    for value_name, number in values:
        enum.value.add(name=value_name, number=number)
    return enum


def add_message(container, name):
    if isinstance(container, d2.FileDescriptorProto):
        return container.message_type.add(name=name)
    return container.nested_type.add(name=name)


def add_field(message, name, kind, number=None, type_name="", repeated=False):
    number = number if number is not None else len(message.field) + 1
    label = FD.LABEL_REPEATED if repeated else FD.LABEL_OPTIONAL
    return message.field.add(name=name, number=number, type=kind, label=label, type_name=type_name)


def add_map_field(message, name, key_kind, value_kind, full_message_name, value_type_name=""):
    """Add a map field plus its synthetic entry type, as protoc does."""
    entry_name = "".join(p.capitalize() for p in name.split("_")) + "Entry"
    entry = message.nested_type.add(name=entry_name)
    entry.options.map_entry = True
    add_field(entry, "key", key_kind, number=1)
    add_field(entry, "value", value_kind, number=2, type_name=value_type_name)
    return add_field(
        message, name, FD.TYPE_MESSAGE,
        type_name=f"{full_message_name}.{entry_name}", repeated=True,
    )


def make_request(files, to_generate, parameter=""):
    request = plugin_pb2.CodeGeneratorRequest(parameter=parameter)
    request.proto_file.extend(files)
    request.file_to_generate.extend(to_generate)
    return request
