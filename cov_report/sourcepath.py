"""Source path categorisation.

Coverage data also records functions inlined from the Rust standard library
and from external crates. This module tells those paths apart from the
workspace's own sources so reports can hide them and display shorter paths.

Usage:
    kind, cut = identify_source_path("/checkout/src/libstd/lib.rs", "/work/")
    # kind is SourceType.RUSTSRC, cut == len("/checkout/")
    simplify_source_path("/checkout/src/libstd/lib.rs", "/work/")
    # "«rust»/src/libstd/lib.rs"
"""

import os
from enum import Flag
from pathlib import Path
from typing import Iterable

#: Rust sources of the standard library as built on macOS CI builders
MACOS_RUSTSRC_DIR = "/Users/travis/build/rust-lang/rust/"
#: ... on Docker-based builders (everything not macOS or Windows)
DOCKER_RUSTSRC_DIR = "/checkout/"
#: ... on Windows builders
WINDOWS_RUSTSRC_DIR = "C:\\projects\\rust\\"

_RUSTSRC_DIRS = (MACOS_RUSTSRC_DIR, DOCKER_RUSTSRC_DIR, WINDOWS_RUSTSRC_DIR)


class UnsupportedSourceTypeName(ValueError):
    """Raised when a source type name is not recognised."""


class SourceType(Flag):
    LOCAL = 1
    MACROS = 2
    UNKNOWN = 4
    CRATES = 8
    RUSTSRC = 16

    DEFAULT = LOCAL | MACROS | UNKNOWN
    ALL = LOCAL | MACROS | UNKNOWN | CRATES | RUSTSRC

    @classmethod
    def parse(cls, name: str) -> "SourceType":
        try:
            return _NAMES[name.strip().lower()]
        except KeyError:
            raise UnsupportedSourceTypeName(
                f"Unsupported source type '{name}'. "
                f"Expected one of: {', '.join(_NAMES)}"
            ) from None

    @classmethod
    def parse_many(cls, names: Iterable[str]) -> "SourceType":
        """Return the union of all parsed *names* (empty flag for no names)."""
        result = cls(0)
        for name in names:
            result |= cls.parse(name)
        return result

    @property
    def prefix(self) -> str:
        """Display prefix replacing the stripped part of the path."""
        return _PREFIXES.get(self, "")


_NAMES = {
    "local": SourceType.LOCAL,
    "macros": SourceType.MACROS,
    "rustsrc": SourceType.RUSTSRC,
    "crates": SourceType.CRATES,
    "unknown": SourceType.UNKNOWN,
    "all": SourceType.ALL,
}

_PREFIXES = {
    SourceType.LOCAL: ".",
    SourceType.RUSTSRC: "«rust»",
    SourceType.CRATES: "«crates»",
}


def default_registry_path() -> str:
    """Return ``$CARGO_HOME/registry/src/`` (``~/.cargo`` when unset)."""
    cargo_home = os.environ.get("CARGO_HOME") or str(Path.home() / ".cargo")
    return os.path.join(cargo_home, "registry", "src") + os.sep


def identify_source_path(path: str, crate_path: str,
                         registry_path: str | None = None) -> tuple[SourceType, int]:
    """Return the source type of *path* and how many leading characters to cut.

    *crate_path* is the workspace root; paths under it are LOCAL. Registry
    paths also lose their ``<index-name>/`` directory so that the display path
    starts at the crate name.
    """
    if registry_path is None:
        registry_path = default_registry_path()

    if crate_path and path.startswith(crate_path):
        return SourceType.LOCAL, len(crate_path)
    if path.startswith(registry_path):
        subpath = path[len(registry_path):]
        slash = subpath.find(os.sep)
        cut = slash + len(os.sep) if slash >= 0 else 0
        return SourceType.CRATES, len(registry_path) + cut
    if path.startswith("<") and path.endswith(" macros>"):
        return SourceType.MACROS, 0
    for rustsrc in _RUSTSRC_DIRS:
        if path.startswith(rustsrc):
            return SourceType.RUSTSRC, len(rustsrc)
    return SourceType.UNKNOWN, 0


def simplify_source_path(path: str, crate_path: str,
                         registry_path: str | None = None) -> str:
    """Shorten *path* for display, e.g. ``./src/lib.rs`` or ``«crates»/serde-1.0/...``."""
    source_type, cut = identify_source_path(path, crate_path, registry_path)
    prefix = source_type.prefix
    if not prefix:
        return path
    return f"{prefix}/{path[cut:].lstrip('/')}"
