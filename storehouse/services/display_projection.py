"""
Display projection of the item index.

Pure functions from index state to presentation data: filtering by search
text, ordering by sort mode, paging and number formatting. Nothing here
mutates stack records.
"""

from __future__ import annotations

import math
import re
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from enum import Enum

from ..exceptions import ValidationError
from ..models.stack import StackRecord


class SortMode(Enum):
    """Orderings offered by the display."""

    QUANTITY = "amount"
    NAME = "lexical"

    @classmethod
    def parse(cls, value: SortMode | str) -> SortMode:
        if isinstance(value, SortMode):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ValidationError(
                f"Unknown sort mode {value!r}",
                field="sort_mode",
                value=value,
                user_friendly="Sort mode must be 'amount' or 'lexical'.",
            ) from None

    def toggled(self) -> SortMode:
        return SortMode.NAME if self is SortMode.QUANTITY else SortMode.QUANTITY


@dataclass(frozen=True)
class Page:
    """One screen of projected stacks."""

    rows: list[StackRecord]
    selected: int
    number: int
    total_pages: int
    offset: int


def _matcher(search: str) -> Callable[[str], bool]:
    if not search:
        return lambda _name: True
    try:
        pattern = re.compile(search, re.IGNORECASE)
    except re.error:
        needle = search.casefold()
        return lambda name: needle in name.casefold()
    return lambda name: pattern.search(name) is not None


def project(
    stacks: Iterable[StackRecord],
    search: str = "",
    sort_mode: SortMode | str = SortMode.QUANTITY,
) -> list[StackRecord]:
    """
    Filter and order stack records for display.

    Search text is applied case-insensitively as a regular expression to the
    display name; text that is not a valid expression is matched literally.
    """
    mode = SortMode.parse(sort_mode)
    matches = _matcher(search)
    visible = [stack for stack in stacks if matches(stack.display_name)]

    if mode is SortMode.QUANTITY:
        visible.sort(key=lambda stack: (-stack.quantity, stack.display_name))
    else:
        visible.sort(key=lambda stack: (stack.display_name, -stack.quantity))
    return visible


def paginate(rows: Sequence[StackRecord], selected: int, page_size: int) -> Page:
    """Clamp the selection into range and return the page that contains it."""
    if page_size < 1:
        raise ValueError("page_size must be at least 1")

    selected = max(1, min(selected, len(rows)))
    total_pages = math.ceil(len(rows) / page_size)
    page_index = (selected - 1) // page_size
    offset = page_index * page_size
    return Page(
        rows=list(rows[offset : offset + page_size]),
        selected=selected,
        number=page_index + 1,
        total_pages=total_pages,
        offset=offset,
    )


def format_quantity(quantity: int) -> str:
    """Render large quantities in thousands, for example 1500 as 1.5k."""
    if quantity >= 1000:
        return f"{quantity / 1000:.1f}k"
    return str(quantity)


def backend_status(count: int) -> str:
    return "1 chest" if count == 1 else f"{count} chests"
