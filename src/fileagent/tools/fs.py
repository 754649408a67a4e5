"""
Filesystem tools for fileagent.

This module provides the three tools the model can call:
- read_file: Read a file's contents
- list_files: Recursively list a directory
- edit_file: Replace text in a file, or create a new file

Paths are resolved against ToolContext.working_dir. There is no path
sandboxing: a tool can read and write anything the process can.

These tools handle:
- File not found errors
- Directory/file confusion
- Permission and other OS errors
- Atomic writes (edit_file never leaves a half-written file)
"""

import json
import os
import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

from fileagent.schema import FieldSpec, FieldType, ToolErrorKind, ToolSpec
from fileagent.tools.base import Tool, ToolContext, ToolOutput

if TYPE_CHECKING:
    from fileagent.tools.registry import ToolRegistry

# Existing file content is decoded with surrogateescape so undecodable
# bytes survive a read-modify-write unchanged.
_ENCODING = "utf-8"
_NEW_FILE_MODE = 0o644


class ReadFileTool(Tool):
    """
    Read file contents.

    Arguments:
        path (str): Path to the file to read (required)

    Returns:
        On success: File contents as text
        On failure: NotFound, IsADirectory or IOError
    """

    spec = ToolSpec(
        name="read_file",
        description=(
            "Read the contents of a given relative file path. Use this when you "
            "want to see what's inside a file. Do not use this with directory names."
        ),
        args={
            "path": FieldSpec(
                type=FieldType.STRING,
                required=True,
                description="The relative path of a file in the working directory.",
            ),
        },
    )

    def validate_args(self, args: dict[str, Any]) -> list[str]:
        """Validate read_file arguments."""
        errors = super().validate_args(args)
        if not errors and not args["path"].strip():
            errors.append("'path' cannot be empty")
        return errors

    def execute(self, args: dict[str, Any], context: ToolContext) -> ToolOutput:
        """Read a file and return its contents."""
        errors = self.validate_args(args)
        if errors:
            return self.invalid(errors)

        path_str = args["path"]
        path = context.resolve(path_str)

        if not path.exists():
            return ToolOutput.fail(
                f"File not found: {path_str}",
                ToolErrorKind.NOT_FOUND,
                path=str(path),
            )

        # The model is told not to do this, but nothing stops it
        if path.is_dir():
            return ToolOutput.fail(
                f"Is a directory: {path_str}",
                ToolErrorKind.IS_A_DIRECTORY,
                path=str(path),
            )

        try:
            raw = path.read_bytes()
        except PermissionError:
            return ToolOutput.fail(
                f"Permission denied: {path_str}",
                ToolErrorKind.IO_ERROR,
                path=str(path),
            )
        except OSError as e:
            return ToolOutput.fail(
                f"Error reading {path_str}: {e}",
                ToolErrorKind.IO_ERROR,
                path=str(path),
            )

        return ToolOutput.ok(
            raw.decode(_ENCODING, errors="replace"),
            path=str(path),
            size=len(raw),
        )


class ListFilesTool(Tool):
    """
    Recursively list files and directories.

    Arguments:
        path (str): Directory to list, default "."

    Returns:
        On success: JSON array of paths relative to `path`, directories
            with a trailing "/", depth-first, sorted per directory
        On failure: NotFound, InvalidArgs (not a directory) or IOError
    """

    spec = ToolSpec(
        name="list_files",
        description=(
            "List files and directories at a given path. If no path is provided, "
            "lists files in the current directory."
        ),
        args={
            "path": FieldSpec(
                type=FieldType.STRING,
                required=False,
                description=(
                    "Optional relative path to list files from. Defaults to current "
                    "directory if not provided."
                ),
            ),
        },
    )

    def execute(self, args: dict[str, Any], context: ToolContext) -> ToolOutput:
        """List every entry below a directory."""
        errors = self.validate_args(args)
        if errors:
            return self.invalid(errors)

        path_str = args.get("path") or "."
        root = context.resolve(path_str)

        if not root.exists():
            return ToolOutput.fail(
                f"Directory not found: {path_str}",
                ToolErrorKind.NOT_FOUND,
                path=str(root),
            )
        if not root.is_dir():
            return ToolOutput.fail(
                f"Not a directory: {path_str}",
                ToolErrorKind.INVALID_ARGS,
                path=str(root),
            )

        entries: list[str] = []
        try:
            _walk(root, "", entries)
        except OSError as e:
            return ToolOutput.fail(
                f"Error listing {path_str}: {e}",
                ToolErrorKind.IO_ERROR,
                path=str(root),
            )

        return ToolOutput.ok(json.dumps(entries), path=str(root), count=len(entries))


def _walk(directory: Path, prefix: str, entries: list[str]) -> None:
    """Depth-first walk appending relative entries in name order."""
    with os.scandir(directory) as it:
        children = sorted(it, key=lambda entry: entry.name)

    for child in children:
        rel = prefix + child.name
        # Symlinked directories are listed as plain entries and not followed
        if child.is_dir(follow_symlinks=False):
            entries.append(rel + "/")
            _walk(Path(child.path), rel + "/", entries)
        else:
            entries.append(rel)


@dataclass(frozen=True)
class EditIntent:
    """
    A single planned text substitution.

    Built from edit_file arguments, checked, applied once, then dropped.

    Attributes:
        path: Target file as given by the model
        old: Text to replace; empty means "create the file"
        new: Replacement text, or the content of a new file
    """

    path: str
    old: str
    new: str

    @classmethod
    def from_args(cls, args: dict[str, Any]) -> "EditIntent":
        return cls(path=args["path"], old=args["old_str"], new=args["new_str"])

    @property
    def is_noop(self) -> bool:
        """Identical non-empty old and new text."""
        return self.old != "" and self.old == self.new


class EditFileTool(Tool):
    """
    Replace text in a file, or create a new file.

    Arguments:
        path (str): The file to edit or create (required)
        old_str (str): Exact text to replace; "" to create a new file (required)
        new_str (str): Replacement text, or content for a new file (required)

    Returns:
        On success: "Successfully created file <path>" or
            "File <path> updated successfully (<n> replacements)"
        On failure: InvalidArgs, IsADirectory, NoMatch or IOError

    Either the new content is fully written or the file is left unchanged.
    """

    spec = ToolSpec(
        name="edit_file",
        description=(
            "Make edits to a text file.\n\n"
            "Replaces 'old_str' with 'new_str' in the given file. 'old_str' and "
            "'new_str' MUST be different from each other.\n\n"
            "If the file specified with path doesn't exist, it will be created with "
            "new_str as its contents when old_str is empty."
        ),
        args={
            "path": FieldSpec(
                type=FieldType.STRING,
                required=True,
                description="The path to the file",
            ),
            "old_str": FieldSpec(
                type=FieldType.STRING,
                required=True,
                description=(
                    "Text to search for - must match exactly. Use empty string to "
                    "create a new file."
                ),
            ),
            "new_str": FieldSpec(
                type=FieldType.STRING,
                required=True,
                description=(
                    "Text to replace old_str with, or contents for a new file if "
                    "old_str is empty"
                ),
            ),
        },
    )

    def validate_args(self, args: dict[str, Any]) -> list[str]:
        """Validate edit_file arguments."""
        errors = super().validate_args(args)
        if not errors and not args["path"].strip():
            errors.append("'path' cannot be empty")
        return errors

    def execute(self, args: dict[str, Any], context: ToolContext) -> ToolOutput:
        """Apply one edit intent."""
        errors = self.validate_args(args)
        if errors:
            return self.invalid(errors)

        intent = EditIntent.from_args(args)
        if intent.is_noop:
            return ToolOutput.fail(
                "old_str and new_str must be different",
                ToolErrorKind.INVALID_ARGS,
            )

        path = context.resolve(intent.path)

        if path.is_dir():
            return ToolOutput.fail(
                f"Is a directory: {intent.path}",
                ToolErrorKind.IS_A_DIRECTORY,
                path=str(path),
            )

        if not path.exists():
            if intent.old:
                return ToolOutput.fail(
                    f"File does not exist and old_str is not empty: {intent.path}",
                    ToolErrorKind.INVALID_ARGS,
                    path=str(path),
                )
            return self._create(intent, path)

        if not intent.old:
            return ToolOutput.fail(
                f"File already exists, old_str must not be empty: {intent.path}",
                ToolErrorKind.INVALID_ARGS,
                path=str(path),
            )
        return self._replace(intent, path)

    def _create(self, intent: EditIntent, path: Path) -> ToolOutput:
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            return ToolOutput.fail(
                f"Failed to create directory: {e}",
                ToolErrorKind.IO_ERROR,
                path=str(path),
            )

        try:
            _atomic_write(path, intent.new)
        except OSError as e:
            return ToolOutput.fail(
                f"Failed to create file: {e}",
                ToolErrorKind.IO_ERROR,
                path=str(path),
            )

        return ToolOutput.ok(
            f"Successfully created file {intent.path}",
            path=str(path),
            created=True,
        )

    def _replace(self, intent: EditIntent, path: Path) -> ToolOutput:
        try:
            content = path.read_bytes().decode(_ENCODING, errors="surrogateescape")
        except OSError as e:
            return ToolOutput.fail(
                f"Error reading {intent.path}: {e}",
                ToolErrorKind.IO_ERROR,
                path=str(path),
            )

        count = content.count(intent.old)
        if count == 0:
            return ToolOutput.fail(
                f"old_str not found in file: {intent.path}",
                ToolErrorKind.NO_MATCH,
                path=str(path),
            )

        try:
            _atomic_write(path, content.replace(intent.old, intent.new))
        except OSError as e:
            return ToolOutput.fail(
                f"Error writing {intent.path}: {e}",
                ToolErrorKind.IO_ERROR,
                path=str(path),
            )

        plural = "" if count == 1 else "s"
        return ToolOutput.ok(
            f"File {intent.path} updated successfully ({count} replacement{plural})",
            path=str(path),
            replacements=count,
        )


def _atomic_write(path: Path, content: str) -> None:
    """
    Write content through a temporary sibling file and os.replace().

    The target keeps its permission bits; new files get 0644. A symlinked
    path is written through to the file it points at.
    """
    path = Path(os.path.realpath(path))
    data = content.encode(_ENCODING, errors="surrogateescape")
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        if path.exists():
            shutil.copymode(path, tmp_name)
        else:
            os.chmod(tmp_name, _NEW_FILE_MODE)
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def register_fs_tools(registry: "ToolRegistry") -> None:
    """Register all filesystem tools in a registry."""
    registry.register(ReadFileTool())
    registry.register(ListFilesTool())
    registry.register(EditFileTool())
