from __future__ import annotations

import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Sequence

from google.protobuf import descriptor_pb2 as d2
from jinja2 import Environment, FileSystemLoader

from protoc_gen_ts.field_types import FieldTypeMapper
from protoc_gen_ts.imports import ModuleImport, ModuleResolver
from protoc_gen_ts.namespace import SEPARATOR, Namespace

INDENT = "  "

# Property names a TypeScript class cannot declare
RESERVED_MEMBER_NAMES = frozenset({"constructor"})


@dataclass
class FileEmission:
    """Declarations rendered for one schema file plus the imports they need."""

    source: str
    body: str
    imports: List[ModuleImport] = field(default_factory=list)


def _get_template_env() -> Environment:
    template_dir = Path(__file__).parent.parent / "templates"
    return Environment(
        loader=FileSystemLoader(str(template_dir)),
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
    )


def _member_name(name: str) -> str:
    return name + "_" if name in RESERVED_MEMBER_NAMES else name


def _open_scope(lines: List[str], path: Sequence[str]) -> str:
    """Open ``export namespace A.B {`` for nested declarations.

    Returns the indentation to use for the declaration itself.
    """
    if not path:
        return ""
    lines.append(f"export namespace {'.'.join(path)} {{")
    return INDENT


def _close_scope(lines: List[str], path: Sequence[str]) -> None:
    if path:
        lines.append("}")


def emit_enum(lines: List[str], enum: d2.EnumDescriptorProto, path: Sequence[str] = ()) -> None:
    if lines:
        lines.append("")
    ind = _open_scope(lines, path)
    lines.append(f"{ind}export enum {enum.name} {{")
    for value in enum.value:
        lines.append(f"{ind}{INDENT}{value.name} = {value.number},")
    lines.append(f"{ind}}}")
    _close_scope(lines, path)


def emit_message(
    lines: List[str],
    message: d2.DescriptorProto,
    mapper: FieldTypeMapper,
    path: Sequence[str] = (),
    debug: bool = False,
) -> None:
    """Emit a class for ``message``, followed by its nested enums and messages.

    Nested types become siblings wrapped in ``export namespace Outer { ... }``
    blocks rather than members of the outer class.
    """
    fields = [mapper.wrap(f) for f in message.field]
    members = [f for f in fields if not f.is_oneof_member()]

    if lines:
        lines.append("")
    ind = _open_scope(lines, path)
    body = ind + INDENT
    lines.append(f"{ind}export class {message.name} {{")
    for info in members:
        lines.append(f"{body}{_member_name(info.name)}: {mapper.labeled_type_of(info, path)};")
    if members:
        lines.append("")

    lines.append(f"{body}constructor() {{")
    if debug:
        qualified = SEPARATOR.join(list(path) + [message.name])
        lines.append(f'{body}{INDENT}console.log("PROTOC-DEBUG: constructing {qualified}");')
    for info in fields:
        lines.append(f"{body}{INDENT}this.{_member_name(info.name)} = {mapper.labeled_default_of(info, path)};")
    lines.append(f"{body}}}")
    lines.append(f"{ind}}}")
    _close_scope(lines, path)

    nested_path = list(path) + [message.name]
    for enum in message.enum_type:
        emit_enum(lines, enum, nested_path)
    for nested in message.nested_type:
        if nested.options.map_entry:
            continue
        emit_message(lines, nested, mapper, nested_path, debug=debug)


def emit_file(
    file: d2.FileDescriptorProto,
    root: Namespace,
    services: bool = False,
    debug: bool = False,
) -> FileEmission:
    """Emit every top-level enum and message of ``file``.

    ``root`` must already hold every file of the request. The returned
    emission carries the imports collected while resolving field types.
    """
    namespace = root.find_namespace(SEPARATOR + file.package)
    resolver = ModuleResolver(file)
    mapper = FieldTypeMapper(namespace, resolver)

    lines: List[str] = []
    for enum in file.enum_type:
        emit_enum(lines, enum)
    for message in file.message_type:
        emit_message(lines, message, mapper, debug=debug)

    if services and file.service:
        print(
            f"Warning: service generation is not supported; "
            f"skipping {len(file.service)} service(s) in '{file.name}'",
            file=sys.stderr,
        )

    return FileEmission(source=file.name, body="\n".join(lines), imports=resolver.imports)


def render_module(emission: FileEmission) -> str:
    """Render the header, import block and declarations of one module."""
    env = _get_template_env()
    template = env.get_template("module.ts.j2")
    return template.render(
        source=emission.source,
        imports=emission.imports,
        body=emission.body,
    )


def generate_module(
    file: d2.FileDescriptorProto,
    root: Namespace,
    services: bool = False,
    debug: bool = False,
) -> str:
    return render_module(emit_file(file, root, services=services, debug=debug))
