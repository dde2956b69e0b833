"""Incremental, cache-aware documentation generator for source trees."""

from .generator import DocGenerator, RunSummary
from .config import Settings, load_settings

__all__ = ["DocGenerator", "RunSummary", "Settings", "load_settings"]
