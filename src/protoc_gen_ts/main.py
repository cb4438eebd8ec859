from __future__ import annotations

import argparse
import os
import subprocess
import sys
import tempfile
from pathlib import Path
from typing import List, Sequence

from google.protobuf import descriptor_pb2 as d2
from google.protobuf.compiler import plugin_pb2

from protoc_gen_ts.models import GenerationError
from protoc_gen_ts.plugin import generate


def _find_proto_files(root: str) -> List[str]:
    """Recursively find .proto files under root, sorted for deterministic output."""
    return sorted(str(p) for p in Path(root).rglob("*.proto"))


def load_descriptor_set(proto_paths: Sequence[str], include_dirs: Sequence[str]) -> d2.FileDescriptorSet:
    """Invoke protoc to build a descriptor set covering proto_paths and their imports."""
    # de-dup while preserving order
    seen = set()
    inc_args: List[str] = []
    for inc in include_dirs:
        if inc and inc not in seen:
            seen.add(inc)
            inc_args.extend(["-I", inc])

    with tempfile.TemporaryDirectory() as td:
        desc_path = os.path.join(td, "descriptor_set.pb")
        cmd = ["protoc", "--include_imports", f"--descriptor_set_out={desc_path}"] + inc_args + list(proto_paths)
        try:
            subprocess.run(cmd, check=True, capture_output=True)
        except FileNotFoundError as e:
            raise RuntimeError("'protoc' not found. Please install Protocol Buffers compiler and ensure it is in PATH.") from e
        except subprocess.CalledProcessError as e:
            raise RuntimeError(f"protoc failed: {e.stderr.decode('utf-8', errors='ignore')}") from e

        fds = d2.FileDescriptorSet()
        with open(desc_path, "rb") as f:
            fds.ParseFromString(f.read())
    return fds


def build_request(
    descriptor_set: d2.FileDescriptorSet,
    files_to_generate: Sequence[str],
    parameter: str = "",
) -> plugin_pb2.CodeGeneratorRequest:
    request = plugin_pb2.CodeGeneratorRequest(parameter=parameter)
    request.proto_file.extend(descriptor_set.file)
    request.file_to_generate.extend(files_to_generate)
    return request


def run(proto: str, out_dir: str, parameter: str = "") -> List[str]:
    """Generate TypeScript modules for a .proto file or a directory of them.

    Returns the list of written file paths.
    """
    if os.path.isdir(proto):
        include_root = os.path.abspath(proto)
        inputs = _find_proto_files(proto)
    else:
        include_root = os.path.dirname(os.path.abspath(proto))
        inputs = [proto]
    if not inputs:
        return []

    # protoc names files relative to the include root
    names = [Path(os.path.abspath(p)).relative_to(include_root).as_posix() for p in inputs]
    fds = load_descriptor_set(inputs, [include_root])
    response = generate(build_request(fds, names, parameter))

    out_dir = out_dir or "."
    written: List[str] = []
    for generated in response.file:
        out_path = os.path.join(out_dir, generated.name)
        os.makedirs(os.path.dirname(out_path), exist_ok=True)
        Path(out_path).write_text(generated.content, encoding="utf-8")
        written.append(out_path)
    return written


def main():
    parser = argparse.ArgumentParser(description="Generate TypeScript declarations from .proto files")
    parser.add_argument("--proto", required=True, help="Path to a .proto file or a directory containing .proto files (recursively)")
    parser.add_argument("--out", required=True, help="Output directory for generated .ts file(s)")
    parser.add_argument("--parameter", default="", help="Generator parameter string, as passed by protoc (e.g. 'debug,verbose')")
    args = parser.parse_args()

    try:
        generated = run(args.proto, args.out, args.parameter)
    except (GenerationError, RuntimeError) as e:
        print(f"FATAL: {e}", file=sys.stderr)
        sys.exit(1)

    if not generated:
        print(f"No .proto files found under directory: {args.proto}")
        return
    print("Generated:\n" + "\n".join(generated))


if __name__ == "__main__":
    main()
