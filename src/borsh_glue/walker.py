"""
Source tree walker (Rust files -> ordered layout list).

Visits every `.rs` file below a root directory in sorted order and turns
each marked declaration into layouts, file by file, declaration by
declaration. The same tree always yields the same list in the same order.

All failures are fatal and raised immediately; there is no best-effort
mode.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional

from borsh_glue.config import GlueConfig
from borsh_glue.errors import LayoutCollisionError, SourceLocation, SourceReadError
from borsh_glue.layout import Layout
from borsh_glue.rust_parser import parse_source


logger = logging.getLogger(__name__)

SOURCE_SUFFIX = ".rs"


@dataclass
class LayoutCollector:
    """
    Accumulates layouts in emission order across a scan.

    Passed explicitly through the walk; owns the only run state.
    """

    layouts: List[Layout] = field(default_factory=list)
    locations: Dict[str, SourceLocation] = field(default_factory=dict)

    def add(self, layout: Layout) -> None:
        """
        Append a layout.

        Raises:
            LayoutCollisionError: If a layout with the same name was
                already collected
        """
        location = layout.source or SourceLocation(path="<unknown>")
        if layout.name in self.locations:
            raise LayoutCollisionError(layout.name, self.locations[layout.name], location)
        self.locations[layout.name] = location
        self.layouts.append(layout)


def _raise_walk_error(error: OSError) -> None:
    raise SourceReadError(error.filename or "<unknown>", error.strerror or str(error)) from error


def iter_source_files(root: str, exclude_dirs: Optional[List[str]] = None) -> Iterator[str]:
    """
    Yield `.rs` files below root in a stable, sorted order.

    Raises:
        SourceReadError: If a directory below root cannot be listed
    """
    excluded = set(exclude_dirs or [])
    for dirpath, dirnames, filenames in os.walk(root, onerror=_raise_walk_error):
        dirnames[:] = sorted(d for d in dirnames if d not in excluded)
        for filename in sorted(filenames):
            if filename.endswith(SOURCE_SUFFIX):
                yield os.path.join(dirpath, filename)


def _read_source(path: str) -> str:
    try:
        with open(path, "r", encoding="utf-8-sig") as f:
            return f.read()
    except (OSError, UnicodeDecodeError) as e:
        raise SourceReadError(path, str(e)) from e


def collect_file(path: str, collector: LayoutCollector, config: GlueConfig) -> int:
    """
    Parse one file and add its layouts to the collector.

    Returns:
        Number of layouts added
    """
    content = _read_source(path)
    declarations = parse_source(content, path=path, marker=config.derive_marker)
    if not declarations:
        logger.debug("No %s declarations in %s", config.derive_marker, path)
        return 0

    added = 0
    for decl in declarations:
        for layout in Layout.from_declaration(decl):
            collector.add(layout)
            added += 1
    logger.debug("Collected %d layout(s) from %s", added, path)
    return added


def generate_layouts_from_file(path: str, config: Optional[GlueConfig] = None) -> List[Layout]:
    """
    Layouts of a single file, in declaration order.

    Raises:
        SourceReadError, SourceSyntaxError, FieldResolutionError,
        LayoutCollisionError
    """
    config = config or GlueConfig()
    collector = LayoutCollector()
    collect_file(path, collector, config)
    return collector.layouts


def generate_layouts(root: str, config: Optional[GlueConfig] = None) -> List[Layout]:
    """
    Layouts of every marked declaration below root.

    Args:
        root: Directory to scan recursively
        config: Run configuration (marker, excluded directories)

    Returns:
        Layouts in file-then-declaration order

    Raises:
        SourceReadError: If root is not a directory or a file is unreadable
        SourceSyntaxError: If a file is not valid Rust
        FieldResolutionError: If a field type cannot be resolved
        LayoutCollisionError: If two layouts share a name
    """
    config = config or GlueConfig()
    if not os.path.isdir(root):
        raise SourceReadError(root, "not a directory")

    collector = LayoutCollector()
    file_count = 0
    for path in iter_source_files(root, config.exclude_dirs):
        collect_file(path, collector, config)
        file_count += 1

    logger.info("Scanned %d source file(s), found %d layout(s)", file_count, len(collector.layouts))
    return collector.layouts


__all__ = [
    "LayoutCollector",
    "iter_source_files",
    "collect_file",
    "generate_layouts",
    "generate_layouts_from_file",
]
