"""
Unit tests for src/cli/

Coverage plan
─────────────
arg parsing   → 4 tests  (types / dump subcommands, defaults)
types command → 2 tests  (empty store, populated store)
dump command  → 2 tests  (insertion order, sorted descending)
main()        → 3 tests  (no subcommand, success, unavailable store)
─────────────────────────────────────────────────────────────────
Total         = 11 tests
"""

import json
from dataclasses import dataclass

import pytest

from src.engine.models import PersistableModel


@dataclass
class Server(PersistableModel):
    __primary_key__ = "host"
    host: str
    region: str


# ─────────────────────────────────────────────────────────────────────────────
# Helpers
# ─────────────────────────────────────────────────────────────────────────────

def _parse(args: list[str]):
    """Call the CLI argument parser and return the parsed namespace."""
    from src.cli.main import build_parser
    parser = build_parser()
    return parser.parse_args(args)


@pytest.fixture
def db_path(tmp_path):
    return str(tmp_path / "cli_test.db")


@pytest.fixture
def store(db_path):
    """Persistent StoreFacade seeded with three servers."""
    from src.store.config import StoreConfig
    from src.store.facade import StoreFacade
    with StoreFacade(StoreConfig(db_path=db_path)) as facade:
        facade.save_batch([
            Server(host="b.example", region="eu"),
            Server(host="a.example", region="us"),
            Server(host="c.example", region="ap"),
        ])
        yield facade


# ─────────────────────────────────────────────────────────────────────────────
# 1. Argument parsing
# ─────────────────────────────────────────────────────────────────────────────

class TestArgParsing:

    def test_types_subcommand(self):
        ns = _parse(["types"])
        assert ns.subcommand == "types"
        assert ns.db is None

    def test_dump_requires_type(self):
        with pytest.raises(SystemExit):
            _parse(["dump"])

    def test_dump_parses_sort_flags(self):
        ns = _parse(["--db", "x.db", "dump", "--type", "Server", "--sort", "host", "--desc"])
        assert ns.db == "x.db"
        assert ns.type_name == "Server"
        assert ns.sort == "host"
        assert ns.desc is True

    def test_dump_defaults_to_insertion_order(self):
        ns = _parse(["dump", "--type", "Server"])
        assert ns.sort is None
        assert ns.desc is False


# ─────────────────────────────────────────────────────────────────────────────
# 2. Commands
# ─────────────────────────────────────────────────────────────────────────────

class TestCmdTypes:

    def test_empty_store(self, tmp_path, capsys):
        from src.cli.main import cmd_types
        from src.store.config import StoreConfig
        from src.store.facade import StoreFacade
        with StoreFacade(StoreConfig(db_path=str(tmp_path / "empty.db"))) as s:
            cmd_types(s)
        assert "0 stored types" in capsys.readouterr().out

    def test_lists_counts(self, store, capsys):
        from src.cli.main import cmd_types
        cmd_types(store)
        out = capsys.readouterr().out
        assert "Server" in out
        assert "3" in out


class TestCmdDump:

    def test_dump_prints_json_lines_in_insertion_order(self, store, capsys):
        from src.cli.main import cmd_dump
        assert cmd_dump(store, "Server") == 3
        lines = capsys.readouterr().out.strip().splitlines()
        assert [json.loads(ln)["host"] for ln in lines] == ["b.example", "a.example", "c.example"]

    def test_dump_sorted_descending(self, store, capsys):
        from src.cli.main import cmd_dump
        cmd_dump(store, "Server", sort="host", descending=True)
        lines = capsys.readouterr().out.strip().splitlines()
        assert [json.loads(ln)["host"] for ln in lines] == ["c.example", "b.example", "a.example"]


# ─────────────────────────────────────────────────────────────────────────────
# 3. main()
# ─────────────────────────────────────────────────────────────────────────────

class TestMain:

    def test_no_subcommand_prints_help(self, capsys):
        from src.cli.main import main
        assert main([]) == 0
        assert "dualstore" in capsys.readouterr().out

    def test_dump_returns_zero(self, store, db_path, capsys):
        from src.cli.main import main
        assert main(["--db", db_path, "dump", "--type", "Server"]) == 0
        assert "a.example" in capsys.readouterr().out

    def test_unavailable_store_returns_one(self, tmp_path, capsys):
        from src.cli.main import main
        blocker = tmp_path / "blocker"
        blocker.write_text("x", encoding="utf-8")
        assert main(["--db", str(blocker / "s.db"), "types"]) == 1
        assert "Error" in capsys.readouterr().err
