"""
Editor signal surface consumed by the completion monitor.

The monitor never talks to a concrete editor; it subscribes to an
``EditorEnvironment``. ``LocalEditorHost`` is an in-process implementation
that replays recorded signals and drives the monitor in tests.
"""

import inspect
import logging
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Any, Callable, List, Optional, Protocol, Sequence, Set

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Position:
    line: int
    character: int = 0


@dataclass
class TextDocument:
    """Snapshot of an open document."""

    uri: str
    language_id: str
    text: str = ""
    is_untitled: bool = False

    def lines(self) -> List[str]:
        return self.text.split("\n")

    def get_text(self, start: Position, end: Position) -> str:
        """Text between two positions, end exclusive."""
        lines = self.lines()
        if not lines or start.line >= len(lines):
            return ""
        end_line = min(end.line, len(lines) - 1)
        if start.line == end_line:
            return lines[start.line][start.character:end.character]
        parts = [lines[start.line][start.character:]]
        parts.extend(lines[start.line + 1:end_line])
        parts.append(lines[end_line][:end.character])
        return "\n".join(parts)


@dataclass(frozen=True)
class ContentChange:
    """One contiguous replacement within a document edit."""

    start: Position
    text: str


@dataclass
class TextChangeEvent:
    document: TextDocument
    content_changes: Sequence[ContentChange] = field(default_factory=list)


@dataclass
class SelectionChangeEvent:
    document: TextDocument
    active: Position


class Disposable:
    """Handle that detaches a subscription when disposed."""

    def __init__(self, callback: Callable[[], None]):
        self._callback: Optional[Callable[[], None]] = callback

    def dispose(self) -> None:
        if self._callback is None:
            return
        callback, self._callback = self._callback, None
        callback()


class EditorEnvironment(Protocol):
    def has_extension(self, extension_id: str) -> bool: ...

    def show_warning(self, message: str) -> None: ...

    def relative_path(self, uri: str) -> str: ...

    def on_text_change(self, handler: Callable[[TextChangeEvent], Any]) -> Disposable: ...

    def on_selection_change(self, handler: Callable[[SelectionChangeEvent], Any]) -> Disposable: ...

    def on_active_editor_change(self, handler: Callable[[Optional[TextDocument]], Any]) -> Disposable: ...


class LocalEditorHost:
    """
    In-process editor environment.

    ``fire_*`` methods deliver a signal to every current subscriber and await
    coroutine handlers, so callers observe the monitor's side effects once the
    call returns.
    """

    def __init__(self, extensions: Sequence[str] = (), workspace_root: Optional[str] = None):
        self.extensions: Set[str] = set(extensions)
        self.workspace_root = workspace_root
        self.warnings: List[str] = []
        self._text_handlers: List[Callable] = []
        self._selection_handlers: List[Callable] = []
        self._editor_handlers: List[Callable] = []

    def has_extension(self, extension_id: str) -> bool:
        return extension_id in self.extensions

    def show_warning(self, message: str) -> None:
        self.warnings.append(message)
        logger.warning(message)

    def relative_path(self, uri: str) -> str:
        path = uri[len("file://"):] if uri.startswith("file://") else uri
        if self.workspace_root:
            try:
                return str(PurePosixPath(path).relative_to(self.workspace_root))
            except ValueError:
                pass
        return path

    def _register(self, handlers: List[Callable], handler: Callable) -> Disposable:
        handlers.append(handler)

        def remove() -> None:
            if handler in handlers:
                handlers.remove(handler)

        return Disposable(remove)

    def on_text_change(self, handler):
        return self._register(self._text_handlers, handler)

    def on_selection_change(self, handler):
        return self._register(self._selection_handlers, handler)

    def on_active_editor_change(self, handler):
        return self._register(self._editor_handlers, handler)

    @property
    def subscriber_count(self) -> int:
        return len(self._text_handlers) + len(self._selection_handlers) + len(self._editor_handlers)

    async def _fire(self, handlers: List[Callable], event: Any) -> None:
        for handler in list(handlers):
            result = handler(event)
            if inspect.isawaitable(result):
                await result

    async def fire_text_change(self, event: TextChangeEvent) -> None:
        await self._fire(self._text_handlers, event)

    async def fire_selection_change(self, event: SelectionChangeEvent) -> None:
        await self._fire(self._selection_handlers, event)

    async def fire_active_editor_change(self, document: Optional[TextDocument]) -> None:
        await self._fire(self._editor_handlers, document)
