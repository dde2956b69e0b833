"""
Documentation run orchestration.

``DocGenerator.generate`` walks every source root, hands each eligible
file to the ``DocumentWriter``, reaps orphaned documents, persists the
cache and rebuilds the root index. Progress is reported as tagged
``print`` lines; diagnostics go through ``logging``.

Typical use::

    settings = load_settings()
    generator = DocGenerator.from_settings(settings)
    summary = generator.generate()
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional

from codedoc.backends import ContentProducer, build_backend
from codedoc.cache import DEFAULT_CACHE_FILENAME, CacheStore, ChangeDetector
from codedoc.cleanup import OrphanReaper
from codedoc.context import AppContext
from codedoc.fingerprint import config_fingerprint
from codedoc.index import IndexBuilder
from codedoc.path_policy import DEFAULT_EXTENSIONS, DEFAULT_SKIP_DIRS, walk_source_files
from codedoc.prompts import DEFAULT_TEMPLATE, PromptBuilder
from codedoc.writer import DocumentWriter, Outcome

logger = logging.getLogger(__name__)


@dataclass
class RunSummary:
    written: int = 0
    skipped: int = 0
    errors: int = 0
    orphans_removed: int = 0
    missing_roots: List[str] = field(default_factory=list)

    def record(self, outcome: Outcome) -> None:
        if outcome is Outcome.WRITTEN:
            self.written += 1
        elif outcome is Outcome.ERROR_WRITTEN:
            self.errors += 1
        else:
            self.skipped += 1

    def print(self) -> None:
        print("\n[Summary] ─────────────────────────────")
        print(f"  Written:          {self.written}")
        print(f"  Skipped:          {self.skipped}")
        print(f"  Errors:           {self.errors}")
        print(f"  Orphans removed:  {self.orphans_removed}")
        if self.missing_roots:
            print(f"  Missing roots:    {', '.join(self.missing_roots)}")


class DocGenerator:
    """Incremental documentation generator over one or more source roots.

    Args:
        source_dirs: Source roots to walk, in order.
        output_dir: Root of the output tree.
        producer: Object with ``produce(path, content, context) -> ProduceResult``.
        model: Model identifier; part of the configuration fingerprint.
        api_provider: Backend identifier; part of the configuration fingerprint.
        prompt_template: Template path; part of the configuration fingerprint.
        extensions: Allowed file extensions.
        skip_dirs: Directories excluded from the walk.
        max_tokens: Truncation budget for file content.
        use_cache: When False, nothing is read from or written to the cache file.
        cache_path: Cache file, defaults to ``<output>/.codedoc_cache.json``.
        force_rebuild: Ignore stored hashes for this run and refresh them.
        rate_limit_delay: Seconds to sleep after each written document.
        publishers: Optional remote publishers for written documents.
    """

    def __init__(
        self,
        source_dirs: Iterable[str],
        output_dir: Path,
        producer,
        model: str,
        api_provider: str,
        prompt_template: Optional[Path] = None,
        extensions: Iterable[str] = DEFAULT_EXTENSIONS,
        skip_dirs: Iterable[str] = DEFAULT_SKIP_DIRS,
        max_tokens: int = 10000,
        use_cache: bool = True,
        cache_path: Optional[Path] = None,
        force_rebuild: bool = False,
        rate_limit_delay: float = 0.5,
        publishers: Iterable = (),
    ):
        self.source_dirs = [str(d) for d in source_dirs]
        self.output_dir = Path(output_dir)
        self.producer = producer
        self.model = model
        self.api_provider = api_provider
        self.prompt_template = Path(prompt_template) if prompt_template else DEFAULT_TEMPLATE
        self.extensions = list(extensions)
        self.skip_dirs = list(skip_dirs)
        self.max_tokens = max_tokens
        self.use_cache = use_cache
        self.cache_store = CacheStore(
            cache_path or self.output_dir / DEFAULT_CACHE_FILENAME, enabled=use_cache
        )
        self.force_rebuild = force_rebuild
        self.rate_limit_delay = rate_limit_delay
        self.publishers = list(publishers)

    @classmethod
    def from_settings(
        cls,
        settings,
        producer=None,
        force_rebuild: bool = False,
        publishers: Iterable = (),
    ) -> "DocGenerator":
        """Build a generator, and its producer unless one is given.

        Raises:
            ValueError: the selected backend is unknown or misconfigured.
        """
        if producer is None:
            producer = ContentProducer(
                build_backend(settings), PromptBuilder(settings.prompt_template)
            )
        return cls(
            source_dirs=settings.source_dirs,
            output_dir=settings.output_dir,
            producer=producer,
            model=settings.model,
            api_provider=settings.api_provider,
            prompt_template=settings.prompt_template,
            extensions=settings.extensions,
            skip_dirs=settings.skip_dirs,
            max_tokens=settings.max_tokens,
            use_cache=settings.use_cache,
            cache_path=settings.resolved_cache_path,
            force_rebuild=force_rebuild,
            rate_limit_delay=settings.rate_limit_delay,
            publishers=publishers,
        )

    def fingerprint(self) -> str:
        return config_fingerprint(self.api_provider, self.model, self.prompt_template)

    def generate(self) -> RunSummary:
        """Run one incremental pass over every source root.

        Returns:
            Counts of written, skipped and failed files, and reaped orphans.
        """
        self.output_dir.mkdir(parents=True, exist_ok=True)
        summary = RunSummary()

        record = self.cache_store.load()
        loaded_keys = list(record.file_hashes)
        fingerprint = self.fingerprint()
        force_rebuild = self.force_rebuild

        if self.use_cache and not force_rebuild:
            if record.config_fingerprint != fingerprint:
                print("[Cache] Configuration changed or cache invalidated. Forcing full documentation rebuild.")
                record.reset(fingerprint)
                force_rebuild = True
            else:
                print(f"[Cache] Using existing cache file: {self.cache_store.cache_path}")

        if self.use_cache and force_rebuild:
            record.config_fingerprint = fingerprint
            print("[Cache] Cache will be rebuilt.")

        roots = [Path(d).resolve() for d in self.source_dirs]
        index = IndexBuilder(self.output_dir)
        writer = DocumentWriter(
            output_dir=self.output_dir,
            producer=self.producer,
            detector=ChangeDetector(record, fingerprint, self.use_cache, force_rebuild),
            app_context=AppContext(source_roots=[r for r in roots if r.is_dir()]),
            max_tokens=self.max_tokens,
            rate_limit_delay=self.rate_limit_delay,
            on_written=lambda _path: index.refresh(),
            publishers=self.publishers,
        )

        encountered: set = set()
        try:
            for source_dir, root in zip(self.source_dirs, roots):
                if not root.is_dir():
                    print(f"[Scan] Directory not found: {source_dir}")
                    summary.missing_roots.append(source_dir)
                    continue

                print(f"[Scan] Processing directory: {source_dir}")
                for source in walk_source_files(root, self.extensions, self.skip_dirs):
                    result = writer.process(source, encountered)
                    summary.record(result.outcome)

            reaper = OrphanReaper(self.output_dir, roots, enabled=self.use_cache)
            summary.orphans_removed = len(reaper.reap(record, encountered, loaded_keys))
        finally:
            if self.use_cache:
                self.cache_store.save(record)

        index.refresh()
        print("[Index] Documentation index finalized.")
        print(
            "\n[Done] Documentation generation complete! "
            f"Files are available in the '{self.output_dir}' directory."
        )
        summary.print()
        return summary
