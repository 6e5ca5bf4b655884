"""
Capture components: inferred completions from editor signals and chat turns
from transcript files.
"""

from .editor import (
    ContentChange,
    Disposable,
    EditorEnvironment,
    LocalEditorHost,
    Position,
    SelectionChangeEvent,
    TextChangeEvent,
    TextDocument,
)
from .suggestion_monitor import HeuristicSettings, SuggestionHeuristicMonitor, is_likely_ai
from .transcript_ingestor import TranscriptIngestor
from .workspace import resolve_chat_sessions_dir

__all__ = [
    "ContentChange",
    "Disposable",
    "EditorEnvironment",
    "LocalEditorHost",
    "Position",
    "SelectionChangeEvent",
    "TextChangeEvent",
    "TextDocument",
    "HeuristicSettings",
    "SuggestionHeuristicMonitor",
    "is_likely_ai",
    "TranscriptIngestor",
    "resolve_chat_sessions_dir",
]
