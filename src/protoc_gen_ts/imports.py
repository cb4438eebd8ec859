from __future__ import annotations

import posixpath
import re
from dataclasses import dataclass
from typing import Dict, List, Optional

from google.protobuf import descriptor_pb2 as d2

PROTO_EXTENSION = ".proto"
MODULE_SUFFIX = "_pb"
OUTPUT_EXTENSION = ".ts"


def module_name(proto_name: str) -> str:
    """Generated module path for a schema file: ``a/b.proto`` -> ``a/b_pb``."""
    if proto_name.endswith(PROTO_EXTENSION):
        proto_name = proto_name[: -len(PROTO_EXTENSION)]
    return proto_name + MODULE_SUFFIX


def output_file_name(proto_name: str) -> str:
    return module_name(proto_name) + OUTPUT_EXTENSION


def _sanitize_alias(path: str) -> str:
    alias = re.sub(r"[^0-9A-Za-z_]", "_", path)
    if not alias or alias[0].isdigit():
        alias = "_" + alias
    return alias


@dataclass(frozen=True)
class ModuleImport:
    alias: str
    path: str


class ModuleResolver:
    """Assigns import aliases to the modules referenced by one generated file.

    Aliases are handed out once per target file and listed in the order they
    were first requested.
    """

    def __init__(self, current_file: d2.FileDescriptorProto):
        self.current_file = current_file
        self._imports: Dict[str, ModuleImport] = {}

    def resolve(self, target_file: d2.FileDescriptorProto) -> Optional[ModuleImport]:
        """Return the import for ``target_file``, or None for the current file."""
        if target_file.name == self.current_file.name:
            return None

        existing = self._imports.get(target_file.name)
        if existing is not None:
            return existing

        current_dir = posixpath.dirname(self.current_file.name) or "."
        relative = posixpath.relpath(module_name(target_file.name), current_dir)
        return self._register(target_file.name, relative)

    def resolve_self(self) -> ModuleImport:
        """Return an import of the current file's own module.

        Lets nested declarations name a top-level type that a nested type of
        the same name would otherwise hide.
        """
        existing = self._imports.get(self.current_file.name)
        if existing is not None:
            return existing
        relative = posixpath.basename(module_name(self.current_file.name))
        return self._register(self.current_file.name, relative)

    def _register(self, file_name: str, relative: str) -> ModuleImport:
        path = relative if relative.startswith("../") else "./" + relative

        alias = _sanitize_alias(relative)
        taken = {imp.alias for imp in self._imports.values()}
        if alias in taken:
            suffix = 2
            while f"{alias}{suffix}" in taken:
                suffix += 1
            alias = f"{alias}{suffix}"

        module_import = ModuleImport(alias=alias, path=path)
        self._imports[file_name] = module_import
        return module_import

    @property
    def imports(self) -> List[ModuleImport]:
        return list(self._imports.values())
