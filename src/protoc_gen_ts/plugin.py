"""protoc plugin entry point: CodeGeneratorRequest on stdin, response on stdout.

Usage:
    protoc --plugin=protoc-gen-ts=$(which protoc-gen-ts) --ts_out=./gen foo.proto
"""

from __future__ import annotations

import sys
from typing import Dict

from google.protobuf import descriptor_pb2 as d2
from google.protobuf.compiler import plugin_pb2

from protoc_gen_ts.generator.ts_generator import generate_module
from protoc_gen_ts.imports import output_file_name
from protoc_gen_ts.models import GenerationError, GeneratorOptions
from protoc_gen_ts.namespace import Namespace

SUPPORTED_SYNTAX = "proto3"
GRPC_PARAMETER = "plugins=grpc"


class UnsupportedSchemaSyntax(GenerationError):
    """Raised for files declaring a syntax other than proto3."""


def parse_parameter(parameter: str) -> GeneratorOptions:
    """Turn the protoc ``parameter`` string into generator options.

    ``plugins=grpc`` anywhere in the string enables service mode; the
    comma separated flags ``debug`` and ``verbose`` enable the matching
    options. Anything else is ignored.
    """
    flags = {part.strip() for part in parameter.split(",") if part.strip()}
    return GeneratorOptions(
        services=GRPC_PARAMETER in parameter,
        debug="debug" in flags,
        verbose="verbose" in flags,
    )


def check_syntax(file: d2.FileDescriptorProto) -> None:
    syntax = file.syntax or "proto2"
    if syntax != SUPPORTED_SYNTAX:
        raise UnsupportedSchemaSyntax(
            f"{file.name}: syntax '{syntax}' is not supported, only '{SUPPORTED_SYNTAX}'"
        )


def generate(request: plugin_pb2.CodeGeneratorRequest) -> plugin_pb2.CodeGeneratorResponse:
    """Generate one TypeScript module per requested file.

    Raises a GenerationError subclass if any file cannot be generated; no
    response is produced in that case.
    """
    options = parse_parameter(request.parameter)
    files: Dict[str, d2.FileDescriptorProto] = {f.name: f for f in request.proto_file}

    for name in request.file_to_generate:
        if name not in files:
            raise GenerationError(f"File not found in request: {name}")
        check_syntax(files[name])

    # Every file must be registered before any reference is resolved.
    root = Namespace()
    for f in request.proto_file:
        root.parse(f)

    response = plugin_pb2.CodeGeneratorResponse()
    response.supported_features = plugin_pb2.CodeGeneratorResponse.FEATURE_PROTO3_OPTIONAL
    for name in request.file_to_generate:
        content = generate_module(files[name], root, services=options.services, debug=options.debug)
        out_name = output_file_name(name)
        response.file.add(name=out_name, content=content)
        if options.verbose:
            print(f"Generated: {out_name}", file=sys.stderr)

    return response


def main():
    if sys.stdin.isatty():
        print("protoc-gen-ts is a protoc plugin and reads a CodeGeneratorRequest from stdin.", file=sys.stderr)
        print("Usage: protoc --plugin=protoc-gen-ts=$(which protoc-gen-ts) --ts_out=DIR FILE.proto", file=sys.stderr)
        sys.exit(1)

    request = plugin_pb2.CodeGeneratorRequest()
    request.ParseFromString(sys.stdin.buffer.read())

    try:
        response = generate(request)
    except GenerationError as e:
        print(f"FATAL: {e}", file=sys.stderr)
        sys.exit(1)

    sys.stdout.buffer.write(response.SerializeToString())


if __name__ == "__main__":
    main()
