"""
Persistent hash cache and the skip/process decision.

The cache is a single JSON object: one reserved key holds the configuration
fingerprint, every other key is an absolute source path mapped to the SHA-1
of that file's bytes at its last successful processing.

Loading never fails: a missing, unreadable or malformed cache file degrades
to an empty record. Saving failures are logged and reported, never raised.
"""

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Dict, Optional

logger = logging.getLogger(__name__)

CONFIG_HASH_KEY = "_config_hash"
DEFAULT_CACHE_FILENAME = ".codedoc_cache.json"


@dataclass
class CacheRecord:
    """In-memory form of the cache file."""

    config_fingerprint: Optional[str] = None
    file_hashes: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict) -> "CacheRecord":
        fingerprint = data.get(CONFIG_HASH_KEY)
        hashes = {
            key: value
            for key, value in data.items()
            if key != CONFIG_HASH_KEY and isinstance(value, str)
        }
        return cls(
            config_fingerprint=fingerprint if isinstance(fingerprint, str) else None,
            file_hashes=hashes,
        )

    def to_dict(self) -> dict:
        data: dict = {}
        if self.config_fingerprint is not None:
            data[CONFIG_HASH_KEY] = self.config_fingerprint
        data.update(self.file_hashes)
        return data

    def reset(self, fingerprint: str) -> None:
        """Drop every file hash and adopt a new fingerprint."""
        self.file_hashes.clear()
        self.config_fingerprint = fingerprint


class CacheStore:
    """Load and save the cache file.

    Args:
        cache_path: Location of the JSON cache file.
        enabled: When False, ``load`` returns an empty record and ``save``
                 writes nothing.
    """

    def __init__(self, cache_path: Path, enabled: bool = True):
        self.cache_path = Path(cache_path)
        self.enabled = enabled

    def load(self) -> CacheRecord:
        if not self.enabled or not self.cache_path.exists():
            return CacheRecord()

        try:
            data = json.loads(self.cache_path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as exc:
            logger.warning("Could not read cache file %s: %s", self.cache_path, exc)
            print(f"[Cache] Warning: Could not read or decode cache file: {self.cache_path} - {exc}")
            return CacheRecord()

        if not isinstance(data, dict):
            logger.warning("Cache file %s does not hold a JSON object, ignoring it", self.cache_path)
            return CacheRecord()

        return CacheRecord.from_dict(data)

    def save(self, record: CacheRecord) -> bool:
        """Write the record as pretty JSON. Returns False on failure."""
        if not self.enabled:
            return False

        try:
            self.cache_path.parent.mkdir(parents=True, exist_ok=True)
            self.cache_path.write_text(
                json.dumps(record.to_dict(), indent=4), encoding="utf-8"
            )
        except (OSError, TypeError, ValueError) as exc:
            logger.error("Could not save cache file %s: %s", self.cache_path, exc)
            print(f"[Cache] Warning: Could not save cache file: {self.cache_path} - {exc}")
            return False
        return True


class Decision(Enum):
    """Outcome of the per-file check, with the reason shown to operators."""

    PROCESS_UNCACHED = (True, "Caching disabled")
    PROCESS_FORCED = (True, "Cache bypassed, regenerating")
    PROCESS_CONFIG_CHANGED = (True, "Configuration changed since the cached run")
    PROCESS_NEW = (True, "No cached hash for this file")
    PROCESS_CHANGED = (True, "File content changed since last run")
    SKIP_UNCHANGED = (False, "Skipping unchanged file")
    SKIP_EXISTING = (False, "Documentation already exists")

    @property
    def process(self) -> bool:
        return self.value[0]

    @property
    def reason(self) -> str:
        return self.value[1]


class ChangeDetector:
    """
    Decide, per source file, whether to invoke the producer.

    Rules (checked in order):
    1. Cache enabled, not forced, fingerprint matches, stored hash equals
       the current one → SKIP (unchanged)
    2. Output document already exists → SKIP (never overwrite)
    3. Cache disabled → PROCESS
    4. Force-rebuild flag set → PROCESS, stored hash gets refreshed
    5. Fingerprint differs from the stored one → PROCESS
    6. No stored hash, or a different one → PROCESS
    """

    def __init__(
        self,
        record: CacheRecord,
        fingerprint: Optional[str],
        use_cache: bool = True,
        force_rebuild: bool = False,
    ):
        self.record = record
        self.fingerprint = fingerprint
        self.use_cache = use_cache
        self.force_rebuild = force_rebuild

    @property
    def fingerprint_matches(self) -> bool:
        return self.fingerprint is not None and self.record.config_fingerprint == self.fingerprint

    def decide(self, source_path: str, current_hash: Optional[str], output_exists: bool) -> Decision:
        if (
            self.use_cache
            and not self.force_rebuild
            and self.fingerprint_matches
            and current_hash is not None
            and self.record.file_hashes.get(source_path) == current_hash
        ):
            return Decision.SKIP_UNCHANGED

        if output_exists:
            return Decision.SKIP_EXISTING

        if not self.use_cache:
            return Decision.PROCESS_UNCACHED
        if self.force_rebuild:
            return Decision.PROCESS_FORCED
        if not self.fingerprint_matches:
            return Decision.PROCESS_CONFIG_CHANGED
        if source_path in self.record.file_hashes:
            return Decision.PROCESS_CHANGED
        return Decision.PROCESS_NEW
