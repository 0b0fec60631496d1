"""Command-line entrypoint for operating a storage network described in a layout file."""

import argparse
import json
import sys
from collections.abc import Sequence
from pathlib import Path
from typing import TextIO

from .backends.memory import MemoryInventory, MemoryNetwork
from .commands.storage_commands import process_command
from .config import get_config
from .exceptions import ConfigurationError, StorehouseError
from .services.storage_service import StorageService
from .services.transfer_routing import TransferRouter
from .structured_logging.enhanced_logging_config import get_logger, setup_logging

logger = get_logger(__name__)

QUIT_COMMANDS = frozenset({"quit", "exit"})


def parse_arguments(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Operate an aggregated storage network.")
    parser.add_argument("layout", help="JSON file describing chests and actor inventories.")
    parser.add_argument("--actor", dest="actor", default=None, help="Name of the inventory operated by this actor.")
    parser.add_argument(
        "-c",
        "--command",
        dest="commands",
        action="append",
        default=[],
        help="Command to run; may be repeated. Reads commands from stdin when omitted.",
    )
    parser.add_argument("--save", action="store_true", help="Write the network state back to the layout file.")
    return parser.parse_args(argv)


def _select_actor(network: MemoryNetwork, layout: dict, requested: str | None) -> MemoryInventory:
    names = list(layout.get("inventories", {}))
    name = requested or (names[0] if names else None)
    if name is None or name not in names:
        raise ConfigurationError(
            f"Actor inventory {name!r} is not defined in the layout",
            config_key="actor",
            user_friendly="The layout must define the actor's inventory under 'inventories'.",
        )
    return network.get(name)


def run_commands(service: StorageService, lines: Sequence[str] | TextIO, output: TextIO) -> None:
    for raw in lines:
        line = raw.strip()
        if not line:
            continue
        if line.lower() in QUIT_COMMANDS:
            break
        output.write(f"{process_command(service, line)['result']}\n")


def main(argv: Sequence[str] | None = None) -> int:
    args = parse_arguments(argv)
    config = get_config()
    setup_logging(config.logging)

    layout_path = Path(args.layout)
    try:
        layout = json.loads(layout_path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        logger.error("layout could not be loaded", layout=str(layout_path), error=str(exc))
        return 1
    if not isinstance(layout, dict):
        logger.error("layout is invalid", layout=str(layout_path), error="top level must be a JSON object")
        sys.stderr.write("The layout file must contain a JSON object.\n")
        return 1

    try:
        network = MemoryNetwork.from_layout(layout)
        actor = _select_actor(network, layout, args.actor)
    except StorehouseError as exc:
        sys.stderr.write(f"{exc.user_friendly}\n")
        return 1
    except ValueError as exc:
        logger.error("layout is invalid", layout=str(layout_path), error=str(exc))
        sys.stderr.write(f"{exc}\n")
        return 1

    service = StorageService.from_config(config, network.candidates, actor)
    other_actors = frozenset(name for name in layout.get("inventories", {}) if name != actor.name)
    service.router = TransferRouter(
        actor_pattern=service.router.actor_pattern,
        excluded=service.router.excluded | other_actors,
    )
    sys.stdout.write(f"{process_command(service, 'refresh')['result']}\n")
    run_commands(service, args.commands or sys.stdin, sys.stdout)

    if args.save:
        layout_path.write_text(json.dumps(network.to_layout(), indent=2), encoding="utf-8")
        logger.info("layout saved", layout=str(layout_path))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
