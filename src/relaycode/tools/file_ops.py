"""File operation tools: read, write, edit, list, glob."""

from __future__ import annotations

from pathlib import Path

from pydantic import Field

from relaycode.tools.base import Tool, ToolContext, ToolKind, ToolParam
from relaycode.types.messages import ToolResult

DEFAULT_READ_LIMIT = 2000
MAX_GLOB_RESULTS = 100

BINARY_EXTENSIONS = frozenset({
    ".png", ".jpg", ".jpeg", ".gif", ".bmp", ".ico", ".webp",
    ".mp3", ".mp4", ".avi", ".mov", ".wav", ".ogg",
    ".zip", ".tar", ".gz", ".bz2", ".7z", ".rar",
    ".exe", ".dll", ".so", ".dylib", ".bin",
    ".pdf", ".doc", ".docx", ".xls", ".xlsx",
    ".woff", ".woff2", ".ttf", ".eot", ".otf",
})

IGNORED_DIRS = frozenset({".git", "node_modules", "__pycache__", ".venv", "dist", "build"})


class ReadParams(ToolParam):
    path: str = Field(description="Absolute or relative path to the file")
    offset: int = Field(default=1, ge=1, description="Line number to start reading from (1-based)")
    limit: int = Field(default=DEFAULT_READ_LIMIT, ge=1, description="Maximum number of lines to read")


class WriteParams(ToolParam):
    path: str = Field(description="The file path to write")
    content: str = Field(description="Content to write")


class EditParams(ToolParam):
    path: str = Field(description="The file path to edit")
    old_string: str = Field(description="Text to replace")
    new_string: str = Field(description="Replacement text")
    replace_all: bool = Field(default=False, description="Replace every occurrence")


class ListParams(ToolParam):
    path: str = Field(default=".", description="Directory to list")


class GlobParams(ToolParam):
    pattern: str = Field(description="Glob pattern, e.g. **/*.py")
    path: str = Field(default=".", description="Directory to search from")
    max_results: int = Field(default=MAX_GLOB_RESULTS, ge=1)


def is_binary_file(path: Path) -> bool:
    if path.suffix.lower() in BINARY_EXTENSIONS:
        return True
    try:
        with path.open("rb") as f:
            chunk = f.read(4096)
    except OSError:
        return False
    return b"\x00" in chunk


async def read_file(params: ReadParams, ctx: ToolContext) -> ToolResult:
    path = ctx.resolve(params.path)
    if not path.exists():
        return ToolResult.error("File not found", f"File not found: {path}")
    if path.is_dir():
        return ToolResult.error(
            "Not a file", f'"{path}" is a directory. Use the "list" tool to view directory contents.'
        )
    if is_binary_file(path):
        return ToolResult.error(
            "Binary file", f'"{path}" appears to be a binary file and cannot be displayed as text.'
        )
    try:
        content = path.read_text(encoding="utf-8", errors="replace")
    except OSError as e:
        return ToolResult.error("Read error", f'Cannot read "{path}": {e}')

    lines = content.split("\n")
    total = len(lines)
    start = params.offset - 1
    end = min(start + params.limit, total)

    numbered = [f"{i:>6}\t{line}" for i, line in enumerate(lines[start:end], start=params.offset)]
    output = "\n".join(numbered)
    if end < total:
        output += f"\n\n... (showing lines {params.offset}-{end} of {total} total)"
    else:
        output += f"\n\n(End of file - {total} lines)"

    return ToolResult(
        output=output,
        title=f"Read {params.path}",
        metadata={"path": str(path), "total_lines": total, "lines_shown": max(end - start, 0)},
    )


async def write_file(params: WriteParams, ctx: ToolContext) -> ToolResult:
    path = ctx.resolve(params.path)
    existed = path.exists()
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(params.content, encoding="utf-8")
    except OSError as e:
        return ToolResult.error("Write error", f"Error writing file: {e}")
    verb = "Updated" if existed else "Created"
    return ToolResult(
        output=f"Successfully wrote {len(params.content.encode('utf-8'))} bytes to {path}",
        title=f"{verb} {params.path}",
    )


async def edit_file(params: EditParams, ctx: ToolContext) -> ToolResult:
    path = ctx.resolve(params.path)
    if not path.exists():
        return ToolResult.error("File not found", f"File not found: {path}")
    if params.old_string == params.new_string:
        return ToolResult.error("No change", "old_string and new_string are identical")
    try:
        content = path.read_text(encoding="utf-8")
    except OSError as e:
        return ToolResult.error("Read error", f"Error reading file: {e}")

    count = content.count(params.old_string)
    if count == 0:
        return ToolResult.error("Edit failed", f"old_string not found in {path}")
    if count > 1 and not params.replace_all:
        return ToolResult.error(
            "Edit failed",
            f"old_string appears {count} times in {path}. "
            "Use replace_all=true or provide more context.",
        )

    if params.replace_all:
        content = content.replace(params.old_string, params.new_string)
    else:
        content = content.replace(params.old_string, params.new_string, 1)
        count = 1

    try:
        path.write_text(content, encoding="utf-8")
    except OSError as e:
        return ToolResult.error("Write error", f"Error writing file: {e}")
    plural = "es" if count > 1 else ""
    return ToolResult(
        output=f"Successfully edited {path}",
        title=f"Edited {params.path} ({count} match{plural})",
    )


async def list_files(params: ListParams, ctx: ToolContext) -> ToolResult:
    path = ctx.resolve(params.path)
    if not path.exists():
        return ToolResult.error("Not found", f"Directory not found: {path}")
    if not path.is_dir():
        return ToolResult.error("Not a directory", f"Not a directory: {path}")
    try:
        entries = sorted(path.iterdir())
    except OSError as e:
        return ToolResult.error("List error", f"Error listing directory: {e}")

    lines = [
        f"{entry.name}/" if entry.is_dir() else entry.name
        for entry in entries
        if not entry.name.startswith(".")
    ]
    if not lines:
        return ToolResult(output="(empty directory)", title="Empty directory")
    return ToolResult(output="\n".join(lines), title=f"list: {params.path}")


async def glob_files(params: GlobParams, ctx: ToolContext) -> ToolResult:
    root = ctx.resolve(params.path)
    if not root.is_dir():
        return ToolResult.error("Not found", f"Directory not found: {root}")

    matches = sorted(
        m for m in root.glob(params.pattern)
        if not IGNORED_DIRS.intersection(m.relative_to(root).parts)
    )
    if not matches:
        return ToolResult(output="No files found", title="No files found")

    lines = [str(m.relative_to(root)) for m in matches[: params.max_results]]
    if len(matches) > params.max_results:
        lines.append(f"... and {len(matches) - params.max_results} more")
    return ToolResult(
        output="\n".join(lines),
        title=f"glob: {params.pattern}",
        metadata={"count": len(matches)},
    )


def create_file_tools() -> list[Tool]:
    return [
        Tool(
            name=ToolKind.READ.value,
            description="Read the contents of a file. Returns line-numbered content with pagination support.",
            params=ReadParams,
            execute=read_file,
        ),
        Tool(
            name=ToolKind.WRITE.value,
            description="Write content to a file, creating parent directories as needed.",
            params=WriteParams,
            execute=write_file,
        ),
        Tool(
            name=ToolKind.EDIT.value,
            description="Edit a file by replacing old_string with new_string.",
            params=EditParams,
            execute=edit_file,
        ),
        Tool(
            name=ToolKind.LIST.value,
            description="List files in a directory.",
            params=ListParams,
            execute=list_files,
        ),
        Tool(
            name=ToolKind.GLOB.value,
            description="Find files matching a glob pattern.",
            params=GlobParams,
            execute=glob_files,
        ),
    ]
