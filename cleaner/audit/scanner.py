"""Source file discovery."""

import os
from pathlib import Path

import structlog

logger = structlog.get_logger()


def find_source_files(
    root_dir: str | Path,
    extension: str = ".js",
    ignored_dirs: list[str] | tuple[str, ...] = ("node_modules",),
    target_path: str | Path | None = None,
) -> list[Path]:
    """Find source files under a root, in a stable order.

    Dot-directories (version control metadata, editor state) and the
    ignored directories are never descended into.

    Args:
        root_dir: Scan root
        extension: Source file extension
        ignored_dirs: Directory names to skip at any depth
        target_path: Optional file or directory (relative to root) to restrict the scan to

    Returns:
        Sorted absolute paths
    """
    root = Path(root_dir).resolve()
    start = root / target_path if target_path else root
    ignored = set(ignored_dirs)

    if start.is_file():
        return [start] if start.name.endswith(extension) else []

    if not start.is_dir():
        logger.warning("Scan path does not exist", path=str(start))
        return []

    files = []
    for dirpath, dirnames, filenames in os.walk(start):
        dirnames[:] = sorted(d for d in dirnames if not d.startswith(".") and d not in ignored)
        for filename in sorted(filenames):
            if filename.endswith(extension):
                files.append(Path(dirpath) / filename)

    return sorted(files)


def relative_posix(path: Path, root: Path) -> str:
    """Path relative to the root with forward slashes."""
    return path.relative_to(root).as_posix()
