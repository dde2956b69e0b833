"""
Root index of the output tree.

The index is rebuilt from a fresh scan on every refresh and overwritten
wholesale, so after any completed refresh it matches what is on disk.
"""

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List

from codedoc.path_policy import walk_output_documents

logger = logging.getLogger(__name__)

INDEX_FILENAME = "index.md"
INDEX_HEADER = (
    "# Documentation Index\n\n"
    "This index is automatically generated and lists all documentation files:\n\n"
)

_HEADING_RE = re.compile(r"^#\s+(.+)$", re.MULTILINE)


def document_title(path: Path) -> str:
    """First ``# `` heading of a document, or its bare filename."""
    try:
        content = path.read_text(encoding="utf-8", errors="replace")
    except OSError:
        return path.name
    match = _HEADING_RE.search(content)
    return match.group(1).strip() if match else path.stem


@dataclass
class IndexEntry:
    name: str
    title: str
    rel_path: str


@dataclass
class IndexTree:
    dirs: Dict[str, "IndexTree"] = field(default_factory=dict)
    files: List[IndexEntry] = field(default_factory=list)

    def add(self, parts: List[str], entry: IndexEntry) -> None:
        if len(parts) == 1:
            self.files.append(entry)
            return
        self.dirs.setdefault(parts[0], IndexTree()).add(parts[1:], entry)

    def render(self, level: int = 0) -> str:
        indent = "  " * level
        lines = []
        for name in sorted(self.dirs):
            lines.append(f"{indent}* **{name}/**\n")
            lines.append(self.dirs[name].render(level + 1))
        for entry in sorted(self.files, key=lambda e: e.name):
            lines.append(f"{indent}* [{entry.title}]({entry.rel_path})\n")
        return "".join(lines)


class IndexBuilder:
    """Write ``<output>/index.md`` listing every generated document."""

    def __init__(self, output_dir: Path):
        self.output_dir = Path(output_dir)

    @property
    def index_path(self) -> Path:
        return self.output_dir / INDEX_FILENAME

    def build_tree(self) -> IndexTree:
        tree = IndexTree()
        for doc in walk_output_documents(self.output_dir):
            rel_path = doc.relative_to(self.output_dir).as_posix()
            if rel_path == INDEX_FILENAME:
                continue
            tree.add(rel_path.split("/"), IndexEntry(doc.name, document_title(doc), rel_path))
        return tree

    def render(self) -> str:
        return INDEX_HEADER + self.build_tree().render()

    def refresh(self) -> Path:
        """Rescan the output tree and overwrite the index."""
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self.index_path.write_text(self.render(), encoding="utf-8")
        print(f"[Index] Index updated: {self.index_path}")
        return self.index_path
