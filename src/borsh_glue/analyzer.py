"""
Layout Analyzer: diagnostics and inventory of a layout list.

This module provides lightweight analysis of generated layouts:
    - Layout / field inventory
    - Custom references that no layout satisfies
    - Reference graph and cycles (recursive types)
    - Unused variant structs and empty layouts

IMPORTANT: It does NOT modify the layouts and never fails a run.
Only unresolved references and cycles are warnings; unit variants give
empty layouts and every root type is unreferenced, so those two are
inventory only.
Unresolved references may be satisfied by classes supplied outside the
generated modules, so they are warnings, not errors.
"""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

from borsh_glue.layout import Layout, LayoutKind
from borsh_glue.types import referenced_layouts


def _find_cycles_dfs(graph: Dict[str, List[str]], start: str, visited: Set[str],
                     rec_stack: Set[str], path: List[str]) -> Optional[List[str]]:
    """DFS to find a cycle starting from a node."""
    visited.add(start)
    rec_stack.add(start)
    path.append(start)

    for neighbor in graph.get(start, []):
        if neighbor not in visited:
            cycle = _find_cycles_dfs(graph, neighbor, visited, rec_stack, path[:])
            if cycle:
                return cycle
        elif neighbor in rec_stack:
            cycle_start_idx = path.index(neighbor)
            return path[cycle_start_idx:] + [neighbor]

    rec_stack.remove(start)
    return None


@dataclass
class LayoutReport:
    """Analysis report for one layout list."""

    total_layouts: int = 0
    total_structs: int = 0
    total_enums: int = 0
    total_fields: int = 0
    skipped_fields: int = 0

    # Custom reference graph: layout name -> referenced names, in field order
    references: Dict[str, List[str]] = field(default_factory=dict)
    unresolved_references: Dict[str, Set[str]] = field(default_factory=dict)
    unreferenced_layouts: Set[str] = field(default_factory=set)
    empty_layouts: List[str] = field(default_factory=list)

    has_cycles: bool = False
    cycle_example: Optional[List[str]] = None

    warnings: List[str] = field(default_factory=list)

    def add_warning(self, msg: str) -> None:
        """Add a warning to the report."""
        if msg not in self.warnings:
            self.warnings.append(msg)


def analyze_layouts(layouts: List[Layout]) -> LayoutReport:
    """
    Analyze an ordered layout list.

    Checks for:
    - Custom references with no matching layout
    - Reference cycles (legal, reported for information)
    - Layouts no other layout references
    - Layouts without any emitted field

    Returns a LayoutReport with metrics and warnings.
    """
    report = LayoutReport(total_layouts=len(layouts))
    known = {layout.name for layout in layouts}

    # =========================================================================
    # 1. INVENTORY
    # =========================================================================

    for layout in layouts:
        if layout.kind == LayoutKind.ENUM:
            report.total_enums += 1
        else:
            report.total_structs += 1
        report.total_fields += len(layout.fields)
        report.skipped_fields += len(layout.fields) - len(layout.emitted_fields)

        if not layout.emitted_fields and layout.kind == LayoutKind.STRUCT:
            report.empty_layouts.append(layout.name)

    # =========================================================================
    # 2. REFERENCE GRAPH
    # =========================================================================

    unresolved: Dict[str, Set[str]] = defaultdict(set)
    referenced: Set[str] = set()

    for layout in layouts:
        names: List[str] = []
        for layout_field in layout.emitted_fields:
            for name in referenced_layouts(layout_field.ty):
                if name not in names:
                    names.append(name)
                if name in known:
                    referenced.add(name)
                else:
                    unresolved[name].add(layout.name)
        report.references[layout.name] = names

    report.unresolved_references = dict(unresolved)
    report.unreferenced_layouts = known - referenced

    visited: Set[str] = set()
    for layout in layouts:
        if layout.name not in visited:
            cycle = _find_cycles_dfs(report.references, layout.name, visited, set(), [])
            if cycle:
                report.has_cycles = True
                report.cycle_example = cycle
                break

    # =========================================================================
    # 3. WARNING FLAGS
    # =========================================================================

    for name in sorted(report.unresolved_references):
        users = ", ".join(sorted(report.unresolved_references[name]))
        report.add_warning(
            f"Unresolved reference '{name}' (used by {users}); "
            f"it must be supplied outside the generated modules"
        )

    if report.has_cycles:
        report.add_warning(
            f"Recursive layouts: {' -> '.join(report.cycle_example)}"
        )

    return report


__all__ = ["LayoutReport", "analyze_layouts"]
