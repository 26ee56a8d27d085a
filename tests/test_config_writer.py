"""
Test Claude Code configuration editing and the Claude CLI client.
"""

import json
import os

import pytest

from proxmox_mcp_installer.claude import claude_client
from proxmox_mcp_installer.claude.claude_client import ClaudeClient
from proxmox_mcp_installer.claude.config_writer import ConfigStore, RegistryEditor
from proxmox_mcp_installer.core.exceptions import ConfigError
from proxmox_mcp_installer.core.models import ServerEntry
from proxmox_mcp_installer.utils.process import CommandResult

from conftest import FakeRunner

PROXMOX_ENTRY = ServerEntry(
    command="node",
    args=["/opt/mcp/index.js"],
    env={"PROXMOX_HOST": "10.0.0.5", "PROXMOX_TOKEN_VALUE": "secret"},
)
SSH_ENTRY = ServerEntry(command="npx", args=["-y", "ssh-mcp", "--", "--host=10.0.0.5"])


@pytest.fixture
def claude_json(home):
    return home / ".claude.json"


@pytest.fixture
def registry(claude_json):
    return RegistryEditor(ConfigStore(claude_json))


def _backups(path):
    return sorted(path.parent.glob(f"{path.name}.backup.*"))


class TestConfigStore:
    """Test loading and saving the JSON document."""

    def test_load_missing_file(self, claude_json):
        """Test a missing file loads as an empty document."""
        assert ConfigStore(claude_json).load() == {}

    def test_load_invalid_json(self, claude_json):
        """Test invalid JSON is reported, not overwritten."""
        claude_json.write_text("{not json")

        with pytest.raises(ConfigError) as exc_info:
            ConfigStore(claude_json).load()

        assert exc_info.value.error_code == "INVALID_JSON"
        assert claude_json.read_text() == "{not json"

    def test_load_non_object(self, claude_json):
        """Test a JSON array is rejected."""
        claude_json.write_text("[]")

        with pytest.raises(ConfigError) as exc_info:
            ConfigStore(claude_json).load()

        assert exc_info.value.error_code == "NOT_AN_OBJECT"

    def test_save_is_formatted_and_leaves_no_temp_files(self, claude_json):
        """Test saved output and that only the target file remains."""
        ConfigStore(claude_json).save({"a": 1})

        assert claude_json.read_text() == '{\n  "a": 1\n}\n'
        assert [p.name for p in claude_json.parent.iterdir()] == [claude_json.name]

    def test_save_keeps_permissions(self, claude_json):
        """Test the file mode survives the replace."""
        claude_json.write_text("{}")
        os.chmod(claude_json, 0o600)

        ConfigStore(claude_json).save({"b": 2})

        assert claude_json.stat().st_mode & 0o777 == 0o600

    def test_backup(self, claude_json):
        """Test the backup is a copy with a timestamp suffix."""
        assert ConfigStore(claude_json).backup() is None

        claude_json.write_text('{"x": 1}')
        backup = ConfigStore(claude_json).backup()

        assert backup.read_text() == '{"x": 1}'
        assert backup.name.startswith(".claude.json.backup.")


class TestRegistryEditor:
    """Test merging server entries into the document."""

    def test_register_into_missing_file(self, registry, claude_json):
        """Test the file is created without a backup."""
        registry.register("proxmox", PROXMOX_ENTRY)

        data = json.loads(claude_json.read_text())
        assert data == {"mcpServers": {"proxmox": PROXMOX_ENTRY.to_claude_config()}}
        assert registry.last_backup is None

    def test_register_preserves_other_content(self, registry, claude_json, write_json):
        """Test unrelated keys and servers survive and a backup is written."""
        original = {
            "numStartups": 12,
            "projects": {"/src": {"allowedTools": []}},
            "mcpServers": {"other": {"command": "x", "args": []}},
        }
        write_json(claude_json, original)

        registry.register("proxmox", PROXMOX_ENTRY)
        first_backup = registry.last_backup
        registry.register("ssh-server", SSH_ENTRY)

        data = json.loads(claude_json.read_text())
        assert data["numStartups"] == 12
        assert data["projects"] == original["projects"]
        assert data["mcpServers"]["other"] == {"command": "x", "args": []}
        assert data["mcpServers"]["proxmox"]["env"]["PROXMOX_HOST"] == "10.0.0.5"
        assert data["mcpServers"]["ssh-server"] == {"command": "npx", "args": ["-y", "ssh-mcp", "--", "--host=10.0.0.5"]}
        assert list(data) == ["numStartups", "projects", "mcpServers"]

        assert first_backup is not None
        assert first_backup.parent == claude_json.parent

    def test_register_many_backs_up_original_once(self, registry, claude_json, write_json):
        """Test both servers land in one write whose backup is the untouched document."""
        original = {"mcpServers": {"other": {"command": "x"}}}
        write_json(claude_json, original)

        registry.register_many({"proxmox": PROXMOX_ENTRY, "ssh-server": SSH_ENTRY})

        backups = _backups(claude_json)
        assert backups == [registry.last_backup]
        assert json.loads(backups[0].read_text()) == original
        assert set(registry.servers()) == {"other", "proxmox", "ssh-server"}

    def test_consecutive_registrations_keep_original_backup(self, registry, claude_json, write_json):
        """Test a second registration in the same second does not overwrite the first backup."""
        original = {"mcpServers": {"other": {"command": "x"}}}
        write_json(claude_json, original)

        registry.register("proxmox", PROXMOX_ENTRY)
        registry.register("ssh-server", SSH_ENTRY)

        contents = [json.loads(backup.read_text()) for backup in _backups(claude_json)]
        assert len(contents) == 2
        assert original in contents

    def test_register_replaces_existing_entry(self, registry, claude_json, write_json):
        """Test registering twice keeps one up-to-date entry."""
        write_json(claude_json, {"mcpServers": {"proxmox": {"command": "old", "args": []}}})

        registry.register("proxmox", PROXMOX_ENTRY)

        assert registry.servers()["proxmox"]["command"] == "node"

    def test_register_invalid_json(self, registry, claude_json):
        """Test a corrupt document is left as it was."""
        claude_json.write_text("{oops")

        with pytest.raises(ConfigError):
            registry.register("proxmox", PROXMOX_ENTRY)

        assert claude_json.read_text() == "{oops"
        assert _backups(claude_json) == []

    def test_contains(self, registry):
        """Test checking for several names at once."""
        registry.register("proxmox", PROXMOX_ENTRY)

        assert registry.contains("proxmox")
        assert not registry.contains("proxmox", "ssh-server")

    def test_unregister(self, registry, claude_json, write_json):
        """Test only the named servers are removed."""
        write_json(claude_json, {
            "theme": "dark",
            "mcpServers": {"proxmox": {}, "ssh-server": {}, "other": {"command": "x"}},
        })

        removed = registry.unregister("proxmox", "ssh-server")

        assert removed == ["proxmox", "ssh-server"]
        data = json.loads(claude_json.read_text())
        assert data == {"theme": "dark", "mcpServers": {"other": {"command": "x"}}}

    def test_register_then_unregister_round_trip(self, registry, claude_json, write_json):
        """Test adding and removing a server restores the original document."""
        original = {
            "numStartups": 3,
            "mcpServers": {"other": {"command": "x"}},
            "projects": {"/src": {"history": [1, 2, 3]}},
        }
        write_json(claude_json, original)

        registry.register("proxmox", PROXMOX_ENTRY)
        assert json.loads(claude_json.read_text())["mcpServers"]["other"] == {"command": "x"}

        registry.unregister("proxmox")
        assert json.loads(claude_json.read_text()) == original

    def test_unregister_nothing_matches(self, registry, claude_json, write_json):
        """Test the file is not rewritten when no name matches."""
        write_json(claude_json, {"mcpServers": {"other": {}}})
        before = claude_json.read_text()

        assert registry.unregister("proxmox") == []
        assert claude_json.read_text() == before
        assert _backups(claude_json) == []

    def test_unregister_missing_file(self, registry, claude_json):
        """Test removal from an absent file is a no-op."""
        assert registry.unregister("proxmox") == []
        assert not claude_json.exists()


class TestClaudeClient:
    """Test registration through the Claude CLI."""

    def test_unavailable(self, monkeypatch):
        """Test nothing runs when the CLI is missing."""
        monkeypatch.setattr(claude_client, "COMMON_PATHS", [])
        runner = FakeRunner()
        client = ClaudeClient(runner)

        assert client.is_available() is False
        assert client.add_server("proxmox", PROXMOX_ENTRY) is False
        assert runner.calls == []

    def test_add_command(self):
        """Test env vars become -e flags before the server command."""
        client = ClaudeClient(FakeRunner(available=["claude"]))

        assert client.add_command("proxmox", PROXMOX_ENTRY) == [
            "/usr/bin/claude", "mcp", "add", "proxmox",
            "-e", "PROXMOX_HOST=10.0.0.5",
            "-e", "PROXMOX_TOKEN_VALUE=secret",
            "--", "node", "/opt/mcp/index.js",
        ]

    def test_add_failure_is_not_raised(self):
        """Test a failing CLI call only returns False."""
        runner = FakeRunner(available=["claude"])
        runner.on("/usr/bin/claude", result=CommandResult(1, "", "already exists"))

        assert ClaudeClient(runner).add_server("ssh-server", SSH_ENTRY) is False

    def test_remove_server(self):
        """Test removal through the CLI."""
        runner = FakeRunner(available=["claude"])

        assert ClaudeClient(runner).remove_server("proxmox") is True
        assert runner.commands() == [["/usr/bin/claude", "mcp", "remove", "proxmox"]]
