"""
Source-tree eligibility rules and traversal.

Pure predicates decide whether a file or directory takes part in a run;
the walkers apply them over the configured source roots and over the
mirrored output tree.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, List

DEFAULT_EXTENSIONS = ["php", "yaml", "yml"]
DEFAULT_SKIP_DIRS = ["vendor/", "node_modules/", "tests/", "cache/"]

DOC_EXTENSION = ".md"


@dataclass(frozen=True)
class SourceFile:
    """One eligible file found under a source root."""

    path: Path          # absolute path
    rel_path: str       # forward-slash path relative to the root
    root: Path          # owning source root

    @property
    def root_name(self) -> str:
        return root_name(self.root)


def root_name(root: Path) -> str:
    """Base directory name of a source root ('app/' -> 'app')."""
    return Path(str(root).rstrip("/\\")).name


def normalize_extensions(extensions: Iterable[str]) -> List[str]:
    """Lowercase extensions and drop any leading dot."""
    return [ext.lower().lstrip(".") for ext in extensions if ext.strip()]


def should_process_file(file_path, allowed_extensions: Iterable[str]) -> bool:
    """A file is eligible when it is not hidden and its extension is allowed."""
    name = os.path.basename(str(file_path))
    if name.startswith("."):
        return False

    ext = os.path.splitext(name)[1].lower().lstrip(".")
    return ext in normalize_extensions(allowed_extensions)


def should_process_directory(rel_dir: str, skip_dirs: Iterable[str]) -> bool:
    """Check a directory path (relative to its source root) against the skip list.

    A directory is excluded when its path equals a skip entry, is nested
    under one, or when any single segment of it matches one.
    """
    rel_dir = rel_dir.replace("\\", "/")
    if rel_dir in ("", "."):
        return True

    dir_path = rel_dir.rstrip("/") + "/"
    parts = [p for p in dir_path.strip("/").split("/") if p]

    for skip in skip_dirs:
        skip = skip.replace("\\", "/").rstrip("/") + "/"
        if skip == "/":
            continue
        if dir_path.startswith(skip):
            return False
        if any(part + "/" == skip for part in parts):
            return False

    return True


def walk_source_files(
    root: Path,
    allowed_extensions: Iterable[str],
    skip_dirs: Iterable[str],
) -> Iterator[SourceFile]:
    """Yield every eligible file under ``root`` in depth-first filesystem order.

    Dot-directories are pruned outright; skipped directories are pruned
    before descending, so nothing beneath them is visited.
    """
    root = Path(root).resolve()
    allowed = normalize_extensions(allowed_extensions)
    skip_dirs = list(skip_dirs)

    for dirpath, dirs, files in os.walk(root):
        rel_dir = os.path.relpath(dirpath, root)
        kept = []
        for d in dirs:
            if d.startswith("."):
                continue
            child = d if rel_dir == "." else f"{rel_dir}/{d}"
            if should_process_directory(child, skip_dirs):
                kept.append(d)
        dirs[:] = kept

        for fname in files:
            if not should_process_file(fname, allowed):
                continue
            fpath = Path(dirpath) / fname
            if not fpath.is_file():
                continue
            rel = fname if rel_dir == "." else f"{rel_dir}/{fname}"
            yield SourceFile(path=fpath, rel_path=rel.replace(os.sep, "/"), root=root)


def walk_output_documents(output_dir: Path) -> Iterator[Path]:
    """Yield every generated document under the output tree.

    Hidden files and directories (the cache file, editor folders) are skipped.
    """
    output_dir = Path(output_dir)
    if not output_dir.is_dir():
        return

    for dirpath, dirs, files in os.walk(output_dir):
        dirs[:] = [d for d in dirs if not d.startswith(".")]
        for fname in files:
            if fname.startswith(".") or not fname.endswith(DOC_EXTENSION):
                continue
            yield Path(dirpath) / fname


def output_path_for(output_dir: Path, root: Path, rel_path: str) -> Path:
    """Map a source file to its document: ``<output>/<root name>/<rel dir>/<stem>.md``."""
    rel = Path(rel_path)
    return Path(output_dir) / root_name(root) / rel.parent / f"{rel.stem}{DOC_EXTENSION}"
