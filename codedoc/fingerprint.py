"""Content and configuration digests used by the cache."""

import hashlib
import json
import os
from typing import Optional

TEMPLATE_NOT_FOUND = "template_not_found"

_CHUNK_SIZE = 65536


def file_hash(file_path) -> Optional[str]:
    """SHA-1 of a file's bytes, or None when it cannot be read."""
    digest = hashlib.sha1()
    try:
        with open(file_path, "rb") as fh:
            for chunk in iter(lambda: fh.read(_CHUNK_SIZE), b""):
                digest.update(chunk)
    except OSError:
        return None
    return digest.hexdigest()


def normalize_template_path(template_path) -> str:
    """Resolve a template path when it exists; keep it verbatim otherwise."""
    path = str(template_path)
    if os.path.exists(path):
        return os.path.realpath(path)
    return path


def config_fingerprint(provider: str, model: str, template_path) -> str:
    """
    Digest of the configuration that shapes generated output.

    Covers the backend identifier, the model identifier, the normalized
    template path and the template's own content hash. An unreadable
    template contributes a fixed sentinel, so fingerprinting never fails.

    Args:
        provider: Backend identifier (``openai``, ``ollama`` ...)
        model: Model identifier
        template_path: Prompt template path

    Returns:
        Hex digest string
    """
    template_hash = file_hash(template_path) if template_path else None

    config_data = {
        "model": model,
        "apiProvider": provider,
        "promptTemplatePath": normalize_template_path(template_path) if template_path else "",
        "promptTemplateContent": template_hash or TEMPLATE_NOT_FOUND,
    }
    canonical = json.dumps(config_data, sort_keys=True, separators=(",", ":"))
    return hashlib.sha1(canonical.encode("utf-8")).hexdigest()
