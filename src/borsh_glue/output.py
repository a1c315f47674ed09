"""
Artifact rendering and all-or-nothing writing.

Both modules are rendered completely, from the same ordered layout list,
before anything touches the file system. Writing goes through temporary
files in the output directory that are renamed into place only once both
have been written; a failed rename restores the previous pair.
"""
from __future__ import annotations

import logging
import os
import shutil
import tempfile
from dataclasses import dataclass
from typing import Dict, List, Optional

from borsh_glue.backends import generate_classes, generate_schema
from borsh_glue.config import GlueConfig
from borsh_glue.errors import OutputWriteError
from borsh_glue.layout import Layout
from borsh_glue.walker import generate_layouts


logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GeneratedOutput:
    """The rendered artifact pair."""

    classes: str
    schema: str


def render_outputs(layouts: List[Layout], config: Optional[GlueConfig] = None) -> GeneratedOutput:
    config = config or GlueConfig()
    return GeneratedOutput(
        classes=generate_classes(layouts, config),
        schema=generate_schema(layouts, config),
    )


def _write_temp(directory: str, content: str) -> str:
    fd, temp_path = tempfile.mkstemp(dir=directory, prefix=".borsh-glue-", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8", newline="\n") as f:
            f.write(content)
    except BaseException:
        os.unlink(temp_path)
        raise
    return temp_path


def _backup(path: str, directory: str) -> Optional[str]:
    """Copy an existing artifact aside so a failed write can restore it."""
    if not os.path.exists(path):
        return None
    fd, backup_path = tempfile.mkstemp(dir=directory, prefix=".borsh-glue-", suffix=".bak")
    os.close(fd)
    shutil.copy2(path, backup_path)
    return backup_path


def _roll_back(replaced: List[str], backups: Dict[str, Optional[str]]) -> None:
    """Put back what the renames already overwrote."""
    for target in reversed(replaced):
        backup = backups.get(target)
        if backup is not None:
            os.replace(backup, target)
        else:
            os.unlink(target)


def write_outputs(output: GeneratedOutput, output_dir: str,
                  config: Optional[GlueConfig] = None) -> List[str]:
    """
    Write a rendered pair into output_dir.

    Both modules go to temporary files first. Existing modules are copied
    aside before the renames, so when the second rename fails the first
    one is undone and the directory keeps its previous pair.

    Returns:
        Paths of the class module and the schema module

    Raises:
        OutputWriteError: If the directory or either file cannot be written
    """
    config = config or GlueConfig()
    targets = [
        (os.path.join(output_dir, config.class_filename), output.classes),
        (os.path.join(output_dir, config.schema_filename), output.schema),
    ]

    temp_paths: List[str] = []
    backups: Dict[str, Optional[str]] = {}
    replaced: List[str] = []
    try:
        os.makedirs(output_dir, exist_ok=True)
        for _, content in targets:
            temp_paths.append(_write_temp(output_dir, content))
        for target, _ in targets:
            backups[target] = _backup(target, output_dir)
        for (target, _), temp_path in zip(targets, temp_paths):
            os.replace(temp_path, target)
            replaced.append(target)
    except OSError as e:
        _roll_back(replaced, backups)
        for temp_path in temp_paths:
            if os.path.exists(temp_path):
                os.unlink(temp_path)
        raise OutputWriteError(output_dir, str(e)) from e
    finally:
        for backup in backups.values():
            if backup is not None and os.path.exists(backup):
                os.unlink(backup)

    paths = [target for target, _ in targets]
    for path in paths:
        logger.info("Wrote %s", path)
    return paths


def generate_output(layouts: List[Layout], output_dir: str,
                    config: Optional[GlueConfig] = None) -> GeneratedOutput:
    """Render both artifacts for layouts and write them to output_dir."""
    output = render_outputs(layouts, config)
    write_outputs(output, output_dir, config)
    return output


def generate_from_directory(schema_dir: str, output_dir: str,
                            config: Optional[GlueConfig] = None) -> List[Layout]:
    """
    Full run: scan schema_dir, then write both artifacts to output_dir.

    Nothing is written unless the scan and both renders succeed.

    Returns:
        The layouts that were emitted
    """
    layouts = generate_layouts(schema_dir, config)
    generate_output(layouts, output_dir, config)
    return layouts


__all__ = [
    "GeneratedOutput",
    "render_outputs",
    "write_outputs",
    "generate_output",
    "generate_from_directory",
]
