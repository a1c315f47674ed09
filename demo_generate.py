#!/usr/bin/env python3
"""
Demo: Generate TypeScript layouts and the borsh-js schema from example Rust sources.

Writes the example crate to a temporary directory, scans it and prints
both generated modules plus the analyzer report.
"""

import tempfile

from borsh_glue.analyzer import analyze_layouts
from borsh_glue.examples import write_example_tree
from borsh_glue.output import render_outputs
from borsh_glue.walker import generate_layouts


def main():
    with tempfile.TemporaryDirectory() as tmp:
        layouts = generate_layouts(write_example_tree(tmp))

    print("=" * 80)
    print("BORSH GLUE DEMO")
    print("=" * 80)

    output = render_outputs(layouts)

    print("\nlayouts.ts:")
    print("-" * 80)
    print(output.classes)

    print("\nschema.ts:")
    print("-" * 80)
    print(output.schema)

    report = analyze_layouts(layouts)
    print("\nANALYSIS:")
    print("-" * 80)
    print(f"Layouts:  {report.total_layouts} ({report.total_structs} structs, {report.total_enums} enums)")
    print(f"Fields:   {report.total_fields} ({report.skipped_fields} skipped)")
    print(f"Empty:    {', '.join(report.empty_layouts) or '-'}")
    for warning in report.warnings:
        print(f"WARNING: {warning}")

    print("\n" + "=" * 80)
    print("To write the modules into a front end:")
    print("  borsh-glue --schema programs/my-program/src --output contract-logic")
    print("=" * 80)


if __name__ == "__main__":
    main()
