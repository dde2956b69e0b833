"""
Per-file document writing.

``DocumentWriter.process`` takes one source file from "found" to one of
three terminal outcomes: skipped, written, or error-written. Every file it
sees is recorded in the run's encountered set, whatever the outcome, so
orphan cleanup never reaps a document whose source still exists.
"""

import logging
import re
import time
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable, Iterable, Optional, Set

from codedoc.cache import ChangeDetector, Decision
from codedoc.context import AppContext, extract_context
from codedoc.fingerprint import file_hash
from codedoc.path_policy import SourceFile, output_path_for
from codedoc.prompts import truncate_content

logger = logging.getLogger(__name__)

ERROR_HEADING = "# Documentation Generation Error"

_THINK_RE = re.compile(r"<think>.*?</think>", re.DOTALL)


class Outcome(Enum):
    SKIPPED = "skipped"
    WRITTEN = "written"
    ERROR_WRITTEN = "error-written"


@dataclass(frozen=True)
class WriteResult:
    outcome: Outcome
    output_path: Path
    decision: Decision


def strip_reasoning(text: str) -> str:
    """Remove ``<think>...</think>`` blocks, including multi-line ones."""
    return _THINK_RE.sub("", text)


def error_body(error: str) -> str:
    return (
        f"{ERROR_HEADING}\n\n"
        f"There was an error generating documentation for this file: {error}"
    )


def render_document(source: SourceFile, body: str) -> str:
    return (
        f"# Documentation: {source.path.name}\n\n"
        f"Original file: `{source.root_name}/{source.rel_path}`\n\n"
        f"{body}"
    )


def read_source(path: Path) -> str:
    """File text, or an inline placeholder when the file cannot be read."""
    try:
        return path.read_text(encoding="utf-8", errors="replace")
    except OSError as exc:
        logger.warning("Could not read %s: %s", path, exc)
        return f"Error reading file: {exc}"


def document_body(text: str) -> str:
    """Text after the title and "Original file" lines of a rendered document."""
    if not text.startswith("# Documentation: "):
        return text
    parts = text.split("\n\n", 2)
    return parts[2] if len(parts) == 3 else ""


def is_error_document(path: Path) -> bool:
    try:
        with open(path, encoding="utf-8", errors="replace") as fh:
            return document_body(fh.read()).startswith(ERROR_HEADING)
    except OSError:
        return False


class DocumentWriter:
    """Decide, generate and write the document for one source file at a time.

    Args:
        output_dir: Root of the output tree.
        producer: Object with ``produce(path, content, context) -> ProduceResult``.
        detector: Skip/process decision table, holding the cache record.
        app_context: Run-wide accumulator passed to context extraction.
        max_tokens: Content longer than ``max_tokens * 4`` characters is cut.
        rate_limit_delay: Seconds to sleep after each written document.
        on_written: Called with the output path after every write.
        publishers: Objects with ``publish(title, content) -> bool``.
    """

    def __init__(
        self,
        output_dir: Path,
        producer,
        detector: ChangeDetector,
        app_context: Optional[AppContext] = None,
        max_tokens: int = 10000,
        rate_limit_delay: float = 0.5,
        on_written: Optional[Callable[[Path], None]] = None,
        publishers: Iterable = (),
    ):
        self.output_dir = Path(output_dir)
        self.producer = producer
        self.detector = detector
        self.app_context = app_context if app_context is not None else AppContext()
        self.max_tokens = max_tokens
        self.rate_limit_delay = rate_limit_delay
        self.on_written = on_written
        self.publishers = list(publishers)

    @property
    def record(self):
        return self.detector.record

    def process(self, source: SourceFile, encountered: Set[str]) -> WriteResult:
        key = str(source.path)
        encountered.add(key)

        output_path = output_path_for(self.output_dir, source.root, source.rel_path)
        current_hash = file_hash(source.path)
        decision = self.detector.decide(key, current_hash, output_path.exists())

        if decision is Decision.SKIP_UNCHANGED:
            print(f"[Skip] Skipping unchanged file: {source.path}")
            return WriteResult(Outcome.SKIPPED, output_path, decision)

        if decision is Decision.SKIP_EXISTING:
            print(f"[Skip] Documentation already exists: {output_path} - skipping")
            return WriteResult(Outcome.SKIPPED, output_path, decision)

        return self._generate(source, key, output_path, decision)

    def _generate(self, source: SourceFile, key: str, output_path: Path, decision: Decision) -> WriteResult:
        print(f"[Generate] Generating documentation for {source.path}...")
        logger.debug("%s: %s", source.path, decision.reason)

        content = read_source(source.path)
        context = extract_context(source.path, content, self.app_context)
        content = truncate_content(content, self.max_tokens)

        try:
            result = self.producer.produce(source.path, content, context)
            error = result.error
            body = strip_reasoning(result.text) if error is None else error_body(error)
        except Exception as exc:
            logger.error("Producer failed for %s: %s", source.path, exc)
            error = str(exc)
            body = error_body(error)

        document = render_document(source, body)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(document, encoding="utf-8")
        print(f"[Write] Documentation created: {output_path}")

        if error is None and self.detector.use_cache:
            new_hash = file_hash(source.path)
            if new_hash is not None:
                self.record.file_hashes[key] = new_hash

        if error is None:
            self._publish(f"Documentation: {source.path.name}", document)

        if self.on_written is not None:
            self.on_written(output_path)

        if self.rate_limit_delay > 0:
            time.sleep(self.rate_limit_delay)

        outcome = Outcome.WRITTEN if error is None else Outcome.ERROR_WRITTEN
        return WriteResult(outcome, output_path, decision)

    def _publish(self, title: str, document: str) -> None:
        for publisher in self.publishers:
            if not publisher.publish(title, document):
                print(f"[Publish] Warning: {publisher.name} publishing failed for {title}")
