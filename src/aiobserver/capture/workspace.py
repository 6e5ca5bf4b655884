"""
Locate the assistant's chat transcript directory for the open workspace.

The editor keeps one ``workspaceStorage/<hash>`` directory per workspace with
a ``workspace.json`` descriptor naming the folder(s) it belongs to; chat
sessions live in ``chatSessions`` beside it.
"""

import json
import logging
import os
import sys
from pathlib import Path
from typing import Any, Iterable, List, Mapping, Optional, Union
from urllib.parse import unquote, urlparse

logger = logging.getLogger(__name__)


def collect_workspace_uris(descriptor: Mapping[str, Any]) -> List[str]:
    """Folder URIs named by a workspace.json descriptor."""
    uris: List[str] = []

    def maybe_add(value: Any) -> None:
        if isinstance(value, str) and value:
            uris.append(value)

    maybe_add(descriptor.get("folder"))
    maybe_add(descriptor.get("folderUri"))

    folders = descriptor.get("folders")
    if isinstance(folders, list):
        for item in folders:
            if isinstance(item, str):
                maybe_add(item)
            elif isinstance(item, Mapping):
                maybe_add(item.get("uri"))
                maybe_add(item.get("folderUri"))

    return uris


def uri_to_path(value: str) -> str:
    """Filesystem path of a ``file://`` URI; other values pass through."""
    parsed = urlparse(value)
    if parsed.scheme != "file":
        return value
    path = unquote(parsed.path)
    # file:///c%3A/work -> c:/work
    if len(path) >= 3 and path[0] == "/" and path[2] == ":":
        path = path[1:]
    return path


def same_path(a: Union[str, Path], b: Union[str, Path]) -> bool:
    left = os.path.normpath(os.path.abspath(str(a)))
    right = os.path.normpath(os.path.abspath(str(b)))
    if sys.platform == "win32":
        return left.lower() == right.lower()
    return left == right


def resolve_chat_sessions_dir(
    global_storage_path: Union[str, Path],
    workspace_roots: Iterable[Union[str, Path]],
) -> Optional[Path]:
    """
    Find (and create if needed) the chatSessions directory for a workspace.

    Args:
        global_storage_path: The editor's per-extension global storage directory
        workspace_roots: Folders open in the editor

    Returns:
        Path to chatSessions, or None if no workspace storage matches
    """
    roots = [str(root) for root in workspace_roots if str(root)]
    if not roots:
        return None

    storage_root = Path(global_storage_path).resolve().parent.parent / "workspaceStorage"
    if not storage_root.is_dir():
        logger.debug("No workspaceStorage directory at %s", storage_root)
        return None

    try:
        candidates = sorted(entry for entry in storage_root.iterdir() if entry.is_dir())
    except OSError as e:
        logger.error("Failed to list %s: %s", storage_root, e)
        return None

    for candidate in candidates:
        try:
            descriptor = json.loads((candidate / "workspace.json").read_text(encoding="utf-8"))
        except (OSError, ValueError):
            continue
        if not isinstance(descriptor, Mapping):
            continue

        paths = [uri_to_path(uri) for uri in collect_workspace_uris(descriptor)]
        if not any(same_path(root, path) for path in paths for root in roots):
            continue

        chat_dir = candidate / "chatSessions"
        try:
            chat_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.error("Could not create %s: %s", chat_dir, e)
            return None
        return chat_dir

    return None
