"""
Unit tests for the command-line entrypoint.
"""

import io
import json
import logging

import pytest
import structlog

from storehouse import cli
from storehouse.services.storage_service import StorageService
from storehouse.structured_logging import enhanced_logging_config
from storehouse.structured_logging.logging_file_setup import close_file_logging
from storehouse.tests.fixtures.storage_fixtures import item


@pytest.fixture(autouse=True)
def restore_logging():
    root = logging.getLogger()
    level = root.level
    yield
    close_file_logging()
    root.setLevel(level)
    enhanced_logging_config._logging_state.initialized = False
    structlog.reset_defaults()


@pytest.fixture
def layout_file(tmp_path):
    layout = {
        "chests": {
            "chest_a": {"size": 4, "slots": {"1": item("minecraft:dirt", 40)}},
            "chest_b": {"size": 4, "slots": {"2": item("minecraft:diamond", 3)}},
        },
        "inventories": {
            "turtle_1": {"size": 16, "slots": {}},
            "turtle_2": {"size": 16, "slots": {}},
        },
    }
    path = tmp_path / "network.json"
    path.write_text(json.dumps(layout), encoding="utf-8")
    return path


def test_parse_arguments_collects_commands():
    args = cli.parse_arguments(["network.json", "-c", "list", "-c", "sort", "--actor", "turtle_2"])

    assert args.layout == "network.json"
    assert args.commands == ["list", "sort"]
    assert args.actor == "turtle_2"
    assert args.save is False


def test_main_runs_commands(layout_file, capsys):
    exit_code = cli.main([str(layout_file), "-c", "list", "-c", "withdraw 1 10"])

    out = capsys.readouterr().out.splitlines()
    assert exit_code == 0
    assert out[0] == "Refreshed 2 chests, 2 item types."
    assert out[1:3] == ["1. Dirt x40", "2. Diamond x3"]
    assert out[3] == "Withdrew 10 Dirt."


def test_main_saves_layout(layout_file):
    assert cli.main([str(layout_file), "-c", "withdraw 2 3", "--save"]) == 0

    saved = json.loads(layout_file.read_text(encoding="utf-8"))
    assert saved["chests"]["chest_b"]["slots"] == {}
    assert saved["inventories"]["turtle_1"]["slots"]["1"]["count"] == 3
    assert saved["inventories"]["turtle_2"]["slots"] == {}


def test_main_rejects_unknown_actor(layout_file, capsys):
    assert cli.main([str(layout_file), "--actor", "turtle_9", "-c", "list"]) == 1
    assert "actor's inventory" in capsys.readouterr().err


def test_main_reports_unreadable_layout(tmp_path):
    missing = tmp_path / "missing.json"
    assert cli.main([str(missing)]) == 1


def test_main_reports_invalid_layout(tmp_path, capsys):
    path = tmp_path / "network.json"
    path.write_text(json.dumps({"chests": {"chest_a": {"size": 1, "slots": {"5": item("minecraft:dirt", 1)}}}}))

    assert cli.main([str(path)]) == 1
    assert "outside 1..1" in capsys.readouterr().err


def test_run_commands_stops_at_quit(network, actor):
    service = StorageService(candidates=network.candidates, local_inventory=actor)
    output = io.StringIO()

    cli.run_commands(service, ["sort", "", "quit", "sort"], output)

    assert output.getvalue() == "Sorted by lexical.\n"


@pytest.mark.parametrize("content", ["[]", '"chests"', "3"])
def test_main_rejects_layout_that_is_not_an_object(tmp_path, capsys, content):
    path = tmp_path / "network.json"
    path.write_text(content, encoding="utf-8")

    assert cli.main([str(path)]) == 1
    assert "must contain a JSON object" in capsys.readouterr().err
