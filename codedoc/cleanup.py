"""Remove documents whose source files are gone."""

import logging
import os
from pathlib import Path
from typing import Iterable, List, Optional, Set

from codedoc.cache import CacheRecord
from codedoc.path_policy import output_path_for

logger = logging.getLogger(__name__)


class OrphanReaper:
    """Reconcile the cache against the files seen during a run.

    Every cached source path that was not encountered loses its cache entry,
    and its document is deleted when it exists. The fingerprint is never
    touched.

    Args:
        output_dir: Root of the output tree.
        source_roots: Resolved source roots; used to map a cached path back
                      to its document.
        enabled: False when caching is disabled; ``reap`` then does nothing.
    """

    def __init__(self, output_dir: Path, source_roots: Iterable[Path], enabled: bool = True):
        self.output_dir = Path(output_dir)
        self.source_roots = [Path(r) for r in source_roots]
        self.enabled = enabled

    def document_for(self, source_path: str) -> Optional[Path]:
        for root in self.source_roots:
            prefix = str(root).rstrip(os.sep) + os.sep
            if source_path.startswith(prefix):
                rel_path = source_path[len(prefix):].replace(os.sep, "/")
                return output_path_for(self.output_dir, root, rel_path)
        return None

    def reap(self, record: CacheRecord, encountered: Set[str], loaded_keys: Iterable[str] = ()) -> List[str]:
        """Drop orphans from ``record`` and the output tree.

        Args:
            record: Cache record to prune in place.
            encountered: Source paths seen during this run.
            loaded_keys: Paths present when the cache was loaded; they are
                         candidates even if a fingerprint reset cleared them.

        Returns:
            The orphaned source paths.
        """
        if not self.enabled:
            return []

        print("[Cleanup] Cleaning up documentation for deleted source files...")

        candidates = list(dict.fromkeys([*loaded_keys, *record.file_hashes]))
        orphans = [path for path in candidates if path not in encountered]

        for source_path in orphans:
            doc_path = self.document_for(source_path)
            if doc_path is None:
                logger.info("No source root matches %s, dropping its cache entry", source_path)
            elif doc_path.exists():
                print(f"[Cleanup] Deleting orphan documentation: {doc_path}")
                try:
                    doc_path.unlink()
                except OSError as exc:
                    logger.error("Could not delete %s: %s", doc_path, exc)
                    print(f"[Cleanup] Warning: could not delete {doc_path}: {exc}")
            record.file_hashes.pop(source_path, None)

        return orphans
