"""Map schema fields to TypeScript type expressions and default values."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Sequence, Tuple

from google.protobuf import descriptor_pb2 as d2

from protoc_gen_ts.imports import ModuleResolver
from protoc_gen_ts.models import (
    EnumDeclaration,
    GenerationError,
    MessageDeclaration,
    ResolvedName,
)
from protoc_gen_ts.namespace import SEPARATOR, Namespace

FD = d2.FieldDescriptorProto

# Scalar kind -> (TypeScript type, default value)
SCALAR_TYPE_MAP: Dict[int, Tuple[str, str]] = {
    FD.TYPE_STRING: ("string", '""'),
    FD.TYPE_BYTES: ("Uint8Array", "new Uint8Array(0)"),
    FD.TYPE_INT64: ("bigint", "0n"),
    FD.TYPE_UINT64: ("bigint", "0n"),
    FD.TYPE_SINT64: ("bigint", "0n"),
    FD.TYPE_FIXED64: ("bigint", "0n"),
    FD.TYPE_SFIXED64: ("bigint", "0n"),
    FD.TYPE_INT32: ("number", "0"),
    FD.TYPE_UINT32: ("number", "0"),
    FD.TYPE_SINT32: ("number", "0"),
    FD.TYPE_FIXED32: ("number", "0"),
    FD.TYPE_SFIXED32: ("number", "0"),
    FD.TYPE_FLOAT: ("number", "0.0"),
    FD.TYPE_DOUBLE: ("number", "0.0"),
    FD.TYPE_BOOL: ("boolean", "false"),
}

MESSAGE_KINDS = (FD.TYPE_MESSAGE, FD.TYPE_GROUP)


class UnexpectedFieldKind(GenerationError):
    """Raised when a field's declared kind has no mapping rule."""


@dataclass
class FieldInfo:
    """A schema field together with whatever its type name resolved to."""

    descriptor: d2.FieldDescriptorProto
    resolved: Optional[ResolvedName] = None
    is_map: bool = False
    enum_zero: Optional[str] = None
    key: Optional[FieldInfo] = None
    value: Optional[FieldInfo] = None

    @property
    def name(self) -> str:
        return self.descriptor.name

    @property
    def is_repeated(self) -> bool:
        return self.descriptor.label == FD.LABEL_REPEATED

    def is_oneof_member(self) -> bool:
        # Oneof members are emitted as ordinary fields.
        return False


def _zero_value_name(enum: d2.EnumDescriptorProto) -> Optional[str]:
    for value in enum.value:
        if value.number == 0:
            return value.name
    if enum.value:
        return enum.value[0].name
    return None


def _is_map_entry(declaration) -> bool:
    return isinstance(declaration, MessageDeclaration) and declaration.descriptor.options.map_entry


class FieldTypeMapper:
    """Resolves field types against ``namespace`` for the file owning ``resolver``.

    The ``path`` arguments name the messages enclosing the declaration being
    emitted (``["Outer", "Inner"]``), which decides what a bare type name
    refers to inside its ``export namespace`` block.
    """

    def __init__(self, namespace: Namespace, resolver: ModuleResolver):
        self.namespace = namespace
        self.resolver = resolver

    def wrap(self, field: d2.FieldDescriptorProto) -> FieldInfo:
        info = FieldInfo(descriptor=field)
        if not field.type_name:
            return info

        info.resolved = self.namespace.find_qualified_name(field.type_name)
        declaration = info.resolved.declaration
        if isinstance(declaration, EnumDeclaration):
            info.enum_zero = _zero_value_name(declaration.descriptor)
        elif isinstance(declaration, MessageDeclaration):
            entry = declaration.descriptor
            if entry.options.map_entry and info.is_repeated:
                info.is_map = True
                entry_fields = {f.number: f for f in entry.field}
                info.key = self.wrap(entry_fields[1])
                info.value = self.wrap(entry_fields[2])
        return info

    def is_shadowed(self, name: str, path: Sequence[str]) -> bool:
        """Whether a type nested along ``path`` hides the top-level ``name``."""
        for depth in range(1, len(path) + 1):
            scope = self.namespace.names.get(path[:depth])
            nested = scope.children.get(name) if scope is not None else None
            if nested is not None and not _is_map_entry(nested.declaration):
                return True
        return False

    def _reference(self, info: FieldInfo, expected: type, path: Sequence[str]) -> str:
        kind = info.descriptor.type
        if info.resolved is None or not isinstance(info.resolved.declaration, expected):
            raise UnexpectedFieldKind(
                f"field '{info.name}' of kind {kind} refers to "
                f"'{info.descriptor.type_name}', which is not a {expected.__name__}"
            )
        name = info.resolved.name
        module_import = self.resolver.resolve(info.resolved.file)
        if module_import is None:
            if not self.is_shadowed(name.split(SEPARATOR)[0], path):
                return name
            module_import = self.resolver.resolve_self()
        return f"{module_import.alias}.{name}"

    def type_of(self, info: FieldInfo, path: Sequence[str] = ()) -> str:
        kind = info.descriptor.type
        if kind in SCALAR_TYPE_MAP:
            return SCALAR_TYPE_MAP[kind][0]
        if kind in MESSAGE_KINDS:
            return self._reference(info, MessageDeclaration, path)
        if kind == FD.TYPE_ENUM:
            return self._reference(info, EnumDeclaration, path)
        raise UnexpectedFieldKind(f"unexpected kind {kind} for field '{info.name}'")

    def default_of(self, info: FieldInfo, path: Sequence[str] = ()) -> str:
        kind = info.descriptor.type
        if kind in SCALAR_TYPE_MAP:
            return SCALAR_TYPE_MAP[kind][1]
        if kind in MESSAGE_KINDS:
            self._reference(info, MessageDeclaration, path)
            return "null"
        if kind == FD.TYPE_ENUM:
            enum_type = self._reference(info, EnumDeclaration, path)
            if info.enum_zero is None:
                raise UnexpectedFieldKind(
                    f"enum '{info.descriptor.type_name}' of field '{info.name}' has no values"
                )
            return f"{enum_type}.{info.enum_zero}"
        raise UnexpectedFieldKind(f"unexpected kind {kind} for field '{info.name}'")

    def labeled_type_of(self, info: FieldInfo, path: Sequence[str] = ()) -> str:
        if info.is_map:
            return f"Map<{self.type_of(info.key, path)}, {self.type_of(info.value, path)}>"
        base = self.type_of(info, path)
        if info.is_repeated:
            return f"Array<{base}>"
        if info.descriptor.type in MESSAGE_KINDS:
            return f"{base} | null"
        return base

    def labeled_default_of(self, info: FieldInfo, path: Sequence[str] = ()) -> str:
        if info.is_map:
            return f"new Map<{self.type_of(info.key, path)}, {self.type_of(info.value, path)}>()"
        if info.is_repeated:
            # validates the element kind even though the default is empty
            self.type_of(info, path)
            return "[]"
        return self.default_of(info, path)
