from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Union

from google.protobuf import descriptor_pb2 as d2

if TYPE_CHECKING:
    from protoc_gen_ts.namespace import Namespace


class GenerationError(Exception):
    """Base class for diagnostics that abort the whole compilation request."""


@dataclass(frozen=True)
class MessageDeclaration:
    descriptor: d2.DescriptorProto
    file: d2.FileDescriptorProto


@dataclass(frozen=True)
class EnumDeclaration:
    descriptor: d2.EnumDescriptorProto
    file: d2.FileDescriptorProto


Declaration = Union[MessageDeclaration, EnumDeclaration]


@dataclass(frozen=True)
class ResolvedName:
    """A fully qualified name split at the namespace boundary.

    ``namespace`` has no trailing separator (``""`` for the root package) and
    ``name`` is the dotted type path inside that namespace.
    """

    namespace: str
    name: str
    declaration: Declaration
    node: Namespace

    @property
    def file(self) -> d2.FileDescriptorProto:
        return self.declaration.file

    @property
    def full_name(self) -> str:
        return f"{self.namespace}.{self.name}"


@dataclass(frozen=True)
class GeneratorOptions:
    services: bool = False
    debug: bool = False
    verbose: bool = False
