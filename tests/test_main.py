"""Tests for main CLI module."""

import io
import json
import sys
from unittest.mock import patch

import pytest

from aiblame import settings
from aiblame.config import NotesConfig
from aiblame.main import create_config, create_parser, main
from aiblame.store import NotesStore
from aiblame.vcs import GitRepository

from conftest import make_record, portions


@pytest.fixture(autouse=True)
def clean_settings(monkeypatch):
    monkeypatch.delenv("AIBLAME_NOTES_REF", raising=False)
    settings.get_notes_config.cache_clear()
    yield
    settings.get_notes_config.cache_clear()


@pytest.fixture
def cli_store(git_repo):
    config = NotesConfig(repo_path=str(git_repo))
    return NotesStore(GitRepository(config), config)


class TestParser:
    """Test argument parsing."""

    def test_requires_command(self):
        parser = create_parser()

        with pytest.raises(SystemExit):
            parser.parse_args([])

    def test_copy_notes_args(self):
        args = create_parser().parse_args(["copy-notes", "abc123", "def456"])

        assert args.command == "copy-notes"
        assert args.source == "abc123"
        assert args.target == "def456"
        assert args.dry_run is False

    def test_copy_notes_dry_run(self):
        args = create_parser().parse_args(["copy-notes", "abc123", "def456", "--dry-run"])

        assert args.dry_run is True

    def test_global_options(self):
        args = create_parser().parse_args([
            "--repo", "/tmp/repo",
            "--notes-ref", "refs/notes/other",
            "--json",
            "sync-rewrite", "--file", "map.txt", "--lenient",
        ])

        assert args.repo == "/tmp/repo"
        assert args.notes_ref == "refs/notes/other"
        assert args.json is True
        assert args.file == "map.txt"
        assert args.lenient is True

    def test_post_rewrite_kind_optional(self):
        assert create_parser().parse_args(["post-rewrite"]).kind is None
        assert create_parser().parse_args(["post-rewrite", "rebase"]).kind == "rebase"

    def test_create_config(self):
        args = create_parser().parse_args(["--repo", "/tmp/repo", "show", "HEAD"])

        config = create_config(args)

        assert config.repo_path == "/tmp/repo"
        assert config.notes_ref == "refs/notes/ai-blame"


class TestCopyNotesCommand:
    """Test the copy-notes command end to end."""

    def test_no_attribution(self, git_repo, git_helper, capsys):
        head = git_helper.get_current_sha()
        target = git_helper.commit_file("a.txt", "a\n")

        exit_code = main(["--repo", str(git_repo), "copy-notes", head, target])

        assert exit_code == 0
        assert "has no attribution" in capsys.readouterr().out

    def test_copy(self, git_repo, git_helper, cli_store, capsys):
        source = git_helper.get_current_sha()
        target = git_helper.commit_file("a.txt", "a\n")
        cli_store.write(source, make_record(("A", None, 1.0)))

        exit_code = main(["--repo", str(git_repo), "copy-notes", source, target])

        assert exit_code == 0
        assert f"Copied attribution: {source[:8]} -> {target[:8]}" in capsys.readouterr().out
        assert portions(cli_store.read(target)) == [("A", None, 1.0)]

    def test_dry_run(self, git_repo, git_helper, cli_store, capsys):
        source = git_helper.get_current_sha()
        target = git_helper.commit_file("a.txt", "a\n")
        cli_store.write(source, make_record(("A", None, 1.0)))

        exit_code = main(["--repo", str(git_repo), "copy-notes", source, target, "--dry-run"])

        out = capsys.readouterr().out
        assert exit_code == 0
        assert "Would copy attribution" in out
        assert "100.00%  A" in out
        assert cli_store.read(target) is None

    def test_invalid_commit(self, git_repo, capsys):
        exit_code = main(["--repo", str(git_repo), "copy-notes", "nope", "HEAD"])

        assert exit_code == 1
        assert "Commit not found: nope" in capsys.readouterr().err

    def test_invalid_commit_json(self, git_repo, capsys):
        exit_code = main(["--repo", str(git_repo), "--json", "copy-notes", "nope", "HEAD"])

        output = json.loads(capsys.readouterr().out)
        assert exit_code == 1
        assert output["ok"] is False
        assert output["error"]["code"] == "COMMIT_NOT_FOUND"

    def test_not_a_repository(self, temp_dir, capsys):
        plain = temp_dir / "plain"
        plain.mkdir()

        exit_code = main(["--repo", str(plain), "copy-notes", "a", "b"])

        assert exit_code == 1
        assert "Not in a git repository" in capsys.readouterr().err


class TestRewriteCommands:
    """Test sync-rewrite and post-rewrite commands."""

    def test_sync_rewrite_from_file(self, git_repo, git_helper, cli_store, temp_dir, capsys):
        old = git_helper.get_current_sha()
        new = git_helper.commit_file("a.txt", "a\n")
        cli_store.write(old, make_record(("A", None, 1.0)))
        mapping = temp_dir / "mapping.txt"
        mapping.write_text(f"{old} {new}\n")

        exit_code = main(["--repo", str(git_repo), "sync-rewrite", "--file", str(mapping)])

        assert exit_code == 0
        assert "1 succeeded, 0 failed" in capsys.readouterr().out
        assert cli_store.exists(new)

    def test_sync_rewrite_strict_by_default(self, git_repo, temp_dir, capsys):
        mapping = temp_dir / "mapping.txt"
        mapping.write_text("not a mapping line\n")

        exit_code = main(["--repo", str(git_repo), "--json", "sync-rewrite", "--file", str(mapping)])

        output = json.loads(capsys.readouterr().out)
        assert exit_code == 1
        assert output["error"]["code"] == "REWRITE_PARSE_ERROR"

    def test_sync_rewrite_lenient(self, git_repo, temp_dir, capsys):
        mapping = temp_dir / "mapping.txt"
        mapping.write_text("not a mapping line\n")

        exit_code = main(["--repo", str(git_repo), "sync-rewrite", "--file", str(mapping), "--lenient"])

        out = capsys.readouterr().out
        assert exit_code == 0
        assert "warning: line 1" in out

    def test_post_rewrite_reads_stdin_leniently(self, git_repo, git_helper, cli_store, capsys):
        old = git_helper.get_current_sha()
        new = git_helper.commit_file("a.txt", "a\n")
        cli_store.write(old, make_record(("A", None, 1.0)))
        stdin = io.StringIO(f"garbage\n{old} {new}\n")

        with patch.object(sys, "stdin", stdin):
            exit_code = main(["--repo", str(git_repo), "--json", "post-rewrite", "amend"])

        output = json.loads(capsys.readouterr().out)
        assert exit_code == 0
        assert output["ok"] is True
        assert output["data"]["succeeded"] == 1
        assert len(output["data"]["warnings"]) == 1
        assert cli_store.exists(new)

    def test_post_rewrite_partial_failure_exit_code(self, git_repo, git_helper, cli_store, capsys):
        old = git_helper.get_current_sha()
        cli_store.write(old, make_record(("A", None, 1.0)))
        stdin = io.StringIO(f"{old} {'deadbeef' * 5}\n")

        with patch.object(sys, "stdin", stdin):
            exit_code = main(["--repo", str(git_repo), "post-rewrite", "rebase"])

        out = capsys.readouterr().out
        assert exit_code == 1
        assert "0 succeeded, 1 failed" in out


class TestShowCommand:
    """Test the show command."""

    def test_show(self, git_repo, git_helper, cli_store, capsys):
        head = git_helper.get_current_sha()
        cli_store.write(head, make_record(("claude", "claude-code", 0.5)))

        exit_code = main(["--repo", str(git_repo), "--json", "show", "HEAD"])

        output = json.loads(capsys.readouterr().out)
        assert exit_code == 0
        assert output["data"]["commit"] == head
        assert output["data"]["record"]["entries"][0]["tool"] == "claude-code"

    def test_show_without_attribution(self, git_repo, capsys):
        exit_code = main(["--repo", str(git_repo), "show", "HEAD"])

        assert exit_code == 0
        assert "has no attribution" in capsys.readouterr().out
