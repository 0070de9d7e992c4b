"""
Tests for eggpool/cli.py — argument parsing and command output.

Store and reference factories are patched so commands run against the
in-memory store and the stubbed reference client.
"""
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from eggpool import cli
from utils.errors import TransportError
from eggpool.store import InMemoryDocumentStore


@pytest.fixture
def patched(monkeypatch, memory_store, stub_reference):
    monkeypatch.setattr(cli, "build_store", lambda config=None: memory_store)
    monkeypatch.setattr(cli, "build_reference", lambda config=None: stub_reference)
    return memory_store, stub_reference


class TestParser:
    def test_submit_args(self):
        args = cli.build_parser().parse_args([
            "submit", "--submitter", "Ash", "--pokemon", "pikachu",
            "--move", "Thunderbolt", "--move", "Quick Attack",
        ])
        assert args.command == "submit"
        assert args.move == ["Thunderbolt", "Quick Attack"]
        assert args.nickname == ""

    def test_reference_kind_choices(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args(["reference", "berries"])

    def test_command_required(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args([])

    def test_global_flags(self):
        args = cli.build_parser().parse_args(["--log-format", "json", "-v", "gallery"])
        assert args.log_format == "json"
        assert args.verbose
        assert args.top == 0


class TestCommands:
    def test_gallery(self, patched, capsys):
        assert cli.main(["gallery"]) == 0
        out = capsys.readouterr().out
        assert out.startswith("2 eggs submitted")
        assert out.index("Onix") < out.index("Staryu")
        assert 'Onix "Rocky" from Brock' in out
        assert "Moves: Tackle, Bind" in out

    def test_gallery_top(self, patched, capsys):
        assert cli.main(["gallery", "--top", "1"]) == 0
        assert "Staryu" not in capsys.readouterr().out

    def test_gallery_empty(self, monkeypatch, capsys):
        monkeypatch.setattr(cli, "build_store",
                            lambda config=None: InMemoryDocumentStore())
        assert cli.main(["gallery"]) == 0
        assert capsys.readouterr().out.strip() == "No eggs yet."

    def test_gallery_failure(self, monkeypatch, capsys):
        class Down(InMemoryDocumentStore):
            async def read(self):
                raise TransportError("GitHub API error: 503", status=503)

        monkeypatch.setattr(cli, "build_store", lambda config=None: Down())
        assert cli.main(["gallery"]) == 1
        assert "Failed to load eggs: GitHub API error: 503" in capsys.readouterr().err

    def test_submit(self, patched, capsys):
        store, _ = patched
        code = cli.main(["submit", "--submitter", "Ash", "--pokemon", "pikachu",
                         "--nickname", "Sparky", "--move", "Thunderbolt"])
        assert code == 0
        captured = capsys.readouterr()
        assert 'Pikachu (nicknamed "Sparky") from Ash' in captured.out
        assert "Submitting…" in captured.err
        assert store.records[-1].moves == ("Thunderbolt",)

    def test_submit_unknown_pokemon(self, patched, capsys):
        store, _ = patched
        code = cli.main(["submit", "--submitter", "Ash", "--pokemon", "missingno"])
        assert code == 1
        err = capsys.readouterr().err
        assert "✗ Pokemon not found" in err
        assert "wait for it to be confirmed" in err
        assert store.writes == 0

    def test_lookup(self, patched, capsys):
        assert cli.main(["lookup", "pikachu"]) == 0
        assert "✓ Pikachu (#25)" in capsys.readouterr().out

    def test_lookup_not_found(self, patched, capsys):
        assert cli.main(["lookup", "missingno"]) == 1
        assert "Pokemon not found" in capsys.readouterr().err

    def test_reference(self, patched, capsys):
        assert cli.main(["reference", "moves", "-q", "wi"]) == 0
        assert capsys.readouterr().out.split("\n")[:-1] == ["Whirlwind", "Will O Wisp"]

    def test_unconfigured_store_exit_code(self, monkeypatch, capsys):
        monkeypatch.delenv("EGGPOOL_GITHUB_OWNER", raising=False)
        monkeypatch.delenv("EGGPOOL_GITHUB_REPO", raising=False)
        assert cli.main(["gallery"]) == 2
        assert "EGGPOOL_GITHUB_OWNER" in capsys.readouterr().err
