"""Seed the cache from source files that already have documents.

Useful after upgrading, or after copying an output tree generated
elsewhere: every eligible source whose document exists is recorded with
its current content hash, so the next run skips it instead of treating
the whole tree as new.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Optional

from codedoc.cache import CacheRecord, CacheStore
from codedoc.fingerprint import config_fingerprint, file_hash
from codedoc.path_policy import output_path_for, walk_source_files
from codedoc.writer import is_error_document


class CacheBuildError(Exception):
    """The seeded cache could not be written."""


@dataclass
class CacheBuildResult:
    found: int
    added: int
    cache_path: Path
    fingerprint: str


def build_cache(
    source_dirs: Iterable[str],
    output_dir: Path,
    cache_path: Path,
    model: str,
    api_provider: str,
    prompt_template: Optional[Path],
    extensions: Iterable[str],
    skip_dirs: Iterable[str],
) -> CacheBuildResult:
    """Write a fresh cache for the documents already present under ``output_dir``.

    Raises:
        CacheBuildError: the cache file could not be saved.
    """
    fingerprint = config_fingerprint(api_provider, model, prompt_template)
    print(f"[Cache] Calculated configuration hash: {fingerprint}")

    record = CacheRecord(config_fingerprint=fingerprint)
    found = 0
    extensions = list(extensions)
    skip_dirs = list(skip_dirs)

    print("[Cache] Scanning source files and checking for existing documentation...")
    for source_dir in source_dirs:
        root = Path(source_dir)
        if not root.is_dir():
            print(f"[Cache] Warning: Source directory not found: {source_dir}")
            continue

        for source in walk_source_files(root, extensions, skip_dirs):
            found += 1
            doc_path = output_path_for(output_dir, source.root, source.rel_path)
            if not doc_path.exists() or is_error_document(doc_path):
                continue
            digest = file_hash(source.path)
            if digest is not None:
                record.file_hashes[str(source.path)] = digest

    added = len(record.file_hashes)
    print(f"[Cache] Scan complete. Found {found} source files, added {added} entries to cache.")

    if not CacheStore(cache_path).save(record):
        raise CacheBuildError(f"Could not write cache file: {cache_path}")

    print(f"[Cache] Cache file built successfully at: {cache_path}")
    return CacheBuildResult(found=found, added=added, cache_path=Path(cache_path), fingerprint=fingerprint)


def build_cache_from_settings(settings) -> CacheBuildResult:
    return build_cache(
        source_dirs=settings.source_dirs,
        output_dir=settings.output_dir,
        cache_path=settings.resolved_cache_path,
        model=settings.model,
        api_provider=settings.api_provider,
        prompt_template=settings.prompt_template,
        extensions=settings.extensions,
        skip_dirs=settings.skip_dirs,
    )
