"""Storage command handlers.

Each handler takes the storage service and the command arguments and returns
a dict whose "result" entry is the text shown to the operator. Errors that
abort an operation are reported here rather than propagated to the caller.
"""

from __future__ import annotations

import shlex
from collections.abc import Callable
from typing import Any

from ..exceptions import StorehouseError
from ..services.display_projection import backend_status, format_quantity, paginate
from ..services.storage_service import StorageService
from ..structured_logging.enhanced_logging_config import get_logger, log_exception_once

logger = get_logger(__name__)

CommandHandler = Callable[[StorageService, list[str]], dict[str, Any]]


def _parse_count(raw: str) -> int | None:
    try:
        value = int(raw)
    except ValueError:
        return None
    return value if value >= 0 else None


def handle_refresh_command(service: StorageService, _args: list[str]) -> dict[str, Any]:
    stack_count = service.refresh()
    return {
        "result": f"Refreshed {backend_status(len(service.backends))}, {stack_count} item types.",
        "stacks": stack_count,
    }


def handle_list_command(service: StorageService, args: list[str]) -> dict[str, Any]:
    rows = service.display_stacks
    if not rows:
        return {"result": "No items match." if service.search else "Storage is empty.", "rows": []}

    page_number = _parse_count(args[0]) if args else 1
    if not page_number:
        return {"result": "Usage: list [page]"}
    page = paginate(rows, (page_number - 1) * service.page_size + 1, service.page_size)

    width = len(str(len(rows)))
    lines = [
        f"{number:>{width}}. {stack.display_name} x{format_quantity(stack.quantity)}"
        for number, stack in enumerate(page.rows, start=page.offset + 1)
    ]
    if page.total_pages > 1:
        lines.append(f"Page {page.number} of {page.total_pages}")
    return {"result": "\n".join(lines), "rows": [str(stack) for stack in page.rows]}


def handle_withdraw_command(service: StorageService, args: list[str]) -> dict[str, Any]:
    if not args or len(args) > 2:
        return {"result": "Usage: withdraw <row> [quantity]"}

    row = _parse_count(args[0])
    if row is None or not 1 <= row <= len(service.display_stacks):
        return {"result": f"There is no row {args[0]} in the current list."}

    quantity = None
    if len(args) == 2:
        quantity = _parse_count(args[1])
        if quantity is None:
            return {"result": "Quantity must be zero or a positive number."}

    stack = service.display_stacks[row - 1]
    withdrawn = service.withdraw(stack, quantity)
    requested = stack.max_stack if quantity is None else quantity
    if withdrawn < requested:
        message = f"Withdrew {withdrawn} of {requested} {stack.display_name}; storage could not supply the rest."
    else:
        message = f"Withdrew {withdrawn} {stack.display_name}."
    return {"result": message, "withdrawn": withdrawn}


def handle_deposit_command(service: StorageService, _args: list[str]) -> dict[str, Any]:
    outcome = service.deposit_all()
    if outcome.offered == 0:
        return {"result": "Nothing to deposit.", "deposited": 0}
    message = f"Deposited {outcome.deposited} items."
    if outcome.left_behind:
        message += f" {outcome.left_behind} did not fit and stayed in your inventory."
    return {"result": message, "deposited": outcome.deposited}


def handle_search_command(service: StorageService, args: list[str]) -> dict[str, Any]:
    text = " ".join(args)
    rows = service.set_search(text)
    if not text:
        return {"result": f"Search cleared, {len(rows)} item types shown."}
    return {"result": f"{len(rows)} item types match '{text}'."}


def handle_sort_command(service: StorageService, args: list[str]) -> dict[str, Any]:
    if args:
        service.set_sort_mode(args[0])
    else:
        service.toggle_sort_mode()
    return {"result": f"Sorted by {service.sort_mode.value}."}


COMMANDS: dict[str, CommandHandler] = {
    "refresh": handle_refresh_command,
    "list": handle_list_command,
    "withdraw": handle_withdraw_command,
    "deposit": handle_deposit_command,
    "search": handle_search_command,
    "sort": handle_sort_command,
}


def process_command(service: StorageService, line: str) -> dict[str, Any]:
    """
    Parse and run one command line.

    Returns:
        Handler result; errors raised by the service are turned into an
        operator-facing "result" message
    """
    try:
        parts = shlex.split(line)
    except ValueError:
        return {"result": "Could not parse that command."}
    if not parts:
        return {"result": ""}

    name, args = parts[0].lower(), parts[1:]
    handler = COMMANDS.get(name)
    if handler is None:
        return {"result": f"Unknown command '{name}'. Commands: {', '.join(COMMANDS)}"}

    try:
        return handler(service, args)
    except StorehouseError as exc:
        log_exception_once(logger, "error", "Command failed", exc=exc, command=name)
        return {"result": exc.user_friendly, "error": exc.to_dict()}
