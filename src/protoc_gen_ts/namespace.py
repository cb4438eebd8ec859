"""Namespace tree and per-namespace symbol tables.

Every file descriptor of a request is parsed into one tree before any code
is generated, so a reference from any file can be resolved no matter the
order in which files were listed.
"""

from __future__ import annotations

from typing import Dict, Iterable, List, Optional

from google.protobuf import descriptor_pb2 as d2

from protoc_gen_ts.models import (
    Declaration,
    EnumDeclaration,
    GenerationError,
    MessageDeclaration,
    ResolvedName,
)

SEPARATOR = "."


class NamespaceNotFound(GenerationError):
    """Raised when a package path has no declared namespace."""


class QualifiedNameNotFound(GenerationError):
    """Raised when a type reference resolves to nothing anywhere in the tree."""


def _split(path: str) -> List[str]:
    return path.split(SEPARATOR) if path else []


class Names:
    """A tree of the messages and enums declared in a single namespace."""

    def __init__(self, parent: Optional[Names] = None):
        self.parent = parent
        self.children: Dict[str, Names] = {}
        self.declaration: Optional[Declaration] = None

    def get(self, parts: Iterable[str], create: bool = False) -> Optional[Names]:
        node = self
        for part in parts:
            child = node.children.get(part)
            if child is None:
                if not create:
                    return None
                child = Names(node)
                node.children[part] = child
            node = child
        return node

    def parse_message(self, descriptor: d2.DescriptorProto, file: d2.FileDescriptorProto) -> None:
        """Register the nested enums and messages of ``descriptor`` below this node."""
        for enum in descriptor.enum_type:
            self.get([enum.name], create=True).declaration = EnumDeclaration(enum, file)
        for nested in descriptor.nested_type:
            child = self.get([nested.name], create=True)
            child.declaration = MessageDeclaration(nested, file)
            child.parse_message(nested, file)


class Namespace:
    """A tree of packages, where each package owns a tree of Names.

    ``fqn`` is the fully qualified prefix of the package, always ending in a
    separator: ``"."`` for the root, ``".a.b."`` for package ``a.b``.
    """

    def __init__(self, parent: Optional[Namespace] = None, name: str = ""):
        self.parent = parent
        prefix = parent.fqn if parent is not None else ""
        self.fqn = prefix + name + SEPARATOR
        self.names = Names()
        self.children: Dict[str, Namespace] = {}

    def __repr__(self) -> str:
        return f"Namespace({self.fqn!r})"

    @property
    def root(self) -> Namespace:
        node = self
        while node.parent is not None:
            node = node.parent
        return node

    def get(self, parts: Iterable[str], create: bool = False) -> Optional[Namespace]:
        node = self
        for part in parts:
            child = node.children.get(part)
            if child is None:
                if not create:
                    return None
                child = Namespace(node, part)
                node.children[part] = child
            node = child
        return node

    def parse(self, file: d2.FileDescriptorProto) -> Namespace:
        """Register every enum and message of ``file`` under its package."""
        package = self.get(_split(file.package), create=True)

        for enum in file.enum_type:
            package.names.get([enum.name], create=True).declaration = EnumDeclaration(enum, file)

        for message in file.message_type:
            child = package.names.get([message.name], create=True)
            child.declaration = MessageDeclaration(message, file)
            child.parse_message(message, file)

        return package

    def find_namespace(self, fqns: str) -> Namespace:
        """Look up a package from the root, e.g. ``".foo.bar"``."""
        if fqns == "":
            fqns = SEPARATOR
        if not fqns.startswith(SEPARATOR):
            raise NamespaceNotFound(f"not fully qualified: {fqns}")

        root = self.root
        if fqns == SEPARATOR:
            return root

        found = root.get(_split(fqns[len(SEPARATOR):]))
        if found is None:
            raise NamespaceNotFound(f"unable to find target namespace: {fqns}")
        return found

    def find_qualified_name(self, fqn: str) -> ResolvedName:
        """Resolve a fully qualified type name, e.g. ``".foo.bar.Baz"``.

        The search starts here, covers every descendant, and then restarts
        from each ancestor in turn, so the whole tree is reachable from any
        node.
        """
        if not fqn.startswith(SEPARATOR):
            raise QualifiedNameNotFound(f"not fully qualified: {fqn}")
        found = self._find(fqn, check_parent=True)
        if found is None:
            raise QualifiedNameNotFound(f"couldn't resolve name: {fqn}")
        return found

    def _find(self, fqn: str, check_parent: bool) -> Optional[ResolvedName]:
        if fqn.startswith(self.fqn):
            relative = fqn[len(self.fqn):]
            names = self.names.get(_split(relative))
            if names is not None and names.declaration is not None:
                return ResolvedName(
                    namespace=self.fqn[:-len(SEPARATOR)],
                    name=relative,
                    declaration=names.declaration,
                    node=self,
                )
            for child in self.children.values():
                found = child._find(fqn, check_parent=False)
                if found is not None:
                    return found

        # TODO: skip the subtree already searched when restarting from the parent.
        if check_parent and self.parent is not None:
            return self.parent.find_qualified_name(fqn)
        return None
