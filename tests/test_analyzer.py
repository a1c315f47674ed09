"""
Tests for the Layout Analyzer.

Tests verify that the analyzer correctly:
    - Inventories layouts and fields
    - Reports Custom references with no matching layout
    - Finds reference cycles
    - Flags unreferenced and empty layouts
"""

from borsh_glue.analyzer import analyze_layouts
from borsh_glue.layout import Layout, LayoutField, LayoutKind
from borsh_glue.types import Custom, Map, Option, Skip, Vec, STRING, U8, U64


def test_simple_layouts():
    """Two structs, one referencing the other."""
    layouts = [
        Layout(name="A", fields=(LayoutField("b", Custom("B")), LayoutField("n", U64))),
        Layout(name="B", fields=(LayoutField("x", U8),)),
    ]

    report = analyze_layouts(layouts)

    assert report.total_layouts == 2
    assert report.total_structs == 2
    assert report.total_enums == 0
    assert report.total_fields == 3
    assert report.references == {"A": ["B"], "B": []}
    assert report.unresolved_references == {}
    assert report.unreferenced_layouts == {"A"}
    assert not report.has_cycles
    assert report.warnings == []


def test_unresolved_reference_is_a_warning():
    """References to undeclared layouts are reported, not rejected."""
    layouts = [
        Layout(name="A", fields=(LayoutField("x", Option(Vec(Custom("Missing")))),)),
        Layout(name="C", fields=(LayoutField("y", Map(STRING, Custom("Missing"))),)),
    ]

    report = analyze_layouts(layouts)

    assert report.unresolved_references == {"Missing": {"A", "C"}}
    assert len(report.warnings) == 1
    assert "Missing" in report.warnings[0]
    assert "A, C" in report.warnings[0]


def test_skipped_fields_are_counted_but_not_followed():
    layouts = [
        Layout(name="A", fields=(
            LayoutField("kept", U8),
            LayoutField("dropped", Skip()),
        )),
    ]

    report = analyze_layouts(layouts)

    assert report.total_fields == 2
    assert report.skipped_fields == 1
    assert report.unresolved_references == {}


def test_enum_inventory():
    layouts = [
        Layout(name="E", kind=LayoutKind.ENUM, fields=(
            LayoutField("a", Custom("EA")),
            LayoutField("b", Custom("EB")),
        )),
        Layout(name="EA"),
        Layout(name="EB", fields=(LayoutField("unnamed_0", U64),)),
    ]

    report = analyze_layouts(layouts)

    assert report.total_enums == 1
    assert report.total_structs == 2
    assert report.empty_layouts == ["EA"]
    assert report.unreferenced_layouts == {"E"}


def test_recursive_layouts():
    """A -> B -> A is legal but reported."""
    layouts = [
        Layout(name="A", fields=(LayoutField("b", Option(Custom("B"))),)),
        Layout(name="B", fields=(LayoutField("a", Vec(Custom("A"))),)),
    ]

    report = analyze_layouts(layouts)

    assert report.has_cycles
    assert report.cycle_example == ["A", "B", "A"]
    assert any("Recursive" in w for w in report.warnings)


def test_self_reference():
    layouts = [Layout(name="Node", fields=(LayoutField("next", Option(Custom("Node"))),))]

    report = analyze_layouts(layouts)

    assert report.has_cycles
    assert report.cycle_example == ["Node", "Node"]


def test_duplicate_references_listed_once():
    layouts = [
        Layout(name="A", fields=(
            LayoutField("x", Custom("B")),
            LayoutField("y", Vec(Custom("B"))),
        )),
        Layout(name="B"),
    ]

    report = analyze_layouts(layouts)

    assert report.references["A"] == ["B"]


def test_empty_list():
    report = analyze_layouts([])

    assert report.total_layouts == 0
    assert report.warnings == []
    assert not report.has_cycles


def test_empty_and_unreferenced_layouts_are_inventory_only():
    """Unit variants and root types are normal, not warnings."""
    layouts = [
        Layout(name="E", kind=LayoutKind.ENUM, fields=(LayoutField("a", Custom("EA")),)),
        Layout(name="EA"),
        Layout(name="Root", fields=(LayoutField("x", U8),)),
    ]

    report = analyze_layouts(layouts)

    assert report.empty_layouts == ["EA"]
    assert report.unreferenced_layouts == {"E", "Root"}
    assert report.warnings == []
