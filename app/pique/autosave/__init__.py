"""Debounced whole-project auto-save."""

from pique.autosave.config import AutoSaveConfig
from pique.autosave.pipeline import AutoSavePipeline, canonical_json

__all__ = ["AutoSaveConfig", "AutoSavePipeline", "canonical_json"]
