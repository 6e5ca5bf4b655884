"""
Unit tests for chat transcript directory discovery.
"""

import json

from aiobserver.capture.workspace import collect_workspace_uris, resolve_chat_sessions_dir, uri_to_path


def _layout(tmp_path):
    """<user>/globalStorage/<extension> plus <user>/workspaceStorage."""
    user = tmp_path / "User"
    global_storage = user / "globalStorage" / "ai-observer"
    global_storage.mkdir(parents=True)
    workspace_storage = user / "workspaceStorage"
    workspace_storage.mkdir()
    return global_storage, workspace_storage


class TestCollectWorkspaceUris:
    """Test descriptor parsing."""

    def test_all_shapes(self):
        descriptor = {
            "folder": "file:///a",
            "folderUri": "file:///b",
            "folders": ["file:///c", {"uri": "file:///d"}, {"folderUri": "file:///e"}, 7, {"path": "x"}],
        }
        assert collect_workspace_uris(descriptor) == [
            "file:///a", "file:///b", "file:///c", "file:///d", "file:///e",
        ]

    def test_uri_to_path(self):
        assert uri_to_path("file:///home/me/my%20project") == "/home/me/my project"
        assert uri_to_path("file:///c%3A/work") == "c:/work"
        assert uri_to_path("vscode-remote://ssh/x") == "vscode-remote://ssh/x"


class TestResolveChatSessionsDir:
    """Test resolve_chat_sessions_dir."""

    def test_finds_matching_workspace(self, tmp_path):
        global_storage, workspace_storage = _layout(tmp_path)
        project = tmp_path / "project"
        project.mkdir()

        other = workspace_storage / "aaa"
        other.mkdir()
        (other / "workspace.json").write_text(json.dumps({"folder": "file:///somewhere/else"}))
        broken = workspace_storage / "bbb"
        broken.mkdir()
        (broken / "workspace.json").write_text("{oops")
        match = workspace_storage / "ccc"
        match.mkdir()
        (match / "workspace.json").write_text(json.dumps({"folder": project.as_uri()}))

        chat_dir = resolve_chat_sessions_dir(global_storage, [project])

        assert chat_dir == (match / "chatSessions").resolve()
        assert chat_dir.is_dir()

    def test_no_match(self, tmp_path):
        global_storage, workspace_storage = _layout(tmp_path)
        (workspace_storage / "aaa").mkdir()
        assert resolve_chat_sessions_dir(global_storage, [tmp_path / "project"]) is None

    def test_no_workspace_roots(self, tmp_path):
        global_storage, _ = _layout(tmp_path)
        assert resolve_chat_sessions_dir(global_storage, []) is None

    def test_missing_workspace_storage(self, tmp_path):
        global_storage = tmp_path / "User" / "globalStorage" / "ext"
        global_storage.mkdir(parents=True)
        assert resolve_chat_sessions_dir(global_storage, [tmp_path]) is None
