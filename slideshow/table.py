"""Build a slide from tab separated text.

The first line of the input describes the layout: one ``x:align`` pair
per column, e.g. ``10:left\t50:right``.  Every following line is a table
row whose fields are placed at the column positions, one row per line
spacing from the top of the slide downwards, each row underlined by a
thin rule.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from decimal import Decimal
from typing import Iterable, List, Sequence, TextIO, Union

from .errors import MalformedHeaderError

__all__ = ["LayoutColumn", "TableLayout", "make_table", "MAX_COLUMNS"]

MAX_COLUMNS = 10

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class LayoutColumn:
    """Horizontal position and alignment token of one table column."""

    x: float = 0.0
    align: str = ""


@dataclass(frozen=True, slots=True)
class TableLayout:
    """Layout constants of a generated table."""

    top: float = 90.0
    line_spacing: float = 8.0
    text_size: float = 3.0
    tightness: float = 3.5
    show_rule: bool = True
    rule_size: float = 0.05
    rule_overhang: float = 5.0


def _number(value: float) -> str:
    """Format ``value`` like ``%g`` with the fewest digits that round-trip.

    Plain decimals are used for exponents from -4 to 5 (``82``, ``12.5``,
    ``0.0001``), scientific notation otherwise (``1e+06``, ``1.5e-05``).
    """

    value = float(value)
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    if value == 0:
        return "-0" if math.copysign(1.0, value) < 0 else "0"
    number = Decimal(repr(value)).normalize()
    sign, digits, exponent = number.as_tuple()
    point = len(digits) + exponent - 1
    if -4 <= point < 6:
        return format(number, "f")
    mantissa = str(digits[0])
    if len(digits) > 1:
        mantissa += "." + "".join(str(digit) for digit in digits[1:])
    return f"{'-' if sign else ''}{mantissa}e{'-' if point < 0 else '+'}{abs(point):02d}"


def _split(line: Union[str, bytes]) -> List[str]:
    if isinstance(line, bytes):
        line = line.decode("utf-8", errors="replace")
    if line.endswith("\n"):
        line = line[:-1]
    if line.endswith("\r"):
        line = line[:-1]
    return line.split("\t")


def _field_count(fields: Sequence[str]) -> int:
    count = len(fields)
    if count > MAX_COLUMNS or count < 1:
        return MAX_COLUMNS
    return count


def _parse_header(fields: Sequence[str], count: int) -> List[LayoutColumn]:
    columns = [LayoutColumn() for _ in range(MAX_COLUMNS)]
    for index in range(count):
        parts = fields[index].split(":")
        if len(parts) != 2:
            raise MalformedHeaderError(fields[index], index)
        position, align = parts
        try:
            x = float(position)
        except ValueError:
            LOGGER.warning("Column %d has a non-numeric position %r, using 0", index, position)
            x = 0.0
        columns[index] = LayoutColumn(x=x, align=align)
    return columns


def make_table(
    sink: TextIO,
    source: Iterable[Union[str, bytes]],
    layout: TableLayout | None = None,
) -> int:
    """Write a ``<deck>`` with one slide holding the table read from ``source``.

    The input is consumed line by line and every element is written to
    ``sink`` as soon as its row is read.

    Returns the number of data rows written.

    Raises
    ------
    MalformedHeaderError
        A header field is not an ``x:align`` pair.  Only the opening
        ``<deck><slide>`` has been written to ``sink`` at that point; the
        closing tokens are never written.
    """

    layout = layout or TableLayout()
    y = layout.top
    columns: List[LayoutColumn] = []
    rows = 0

    sink.write("<deck><slide>\n")
    for number, line in enumerate(source):
        fields = _split(line)
        count = _field_count(fields)
        if number == 0:
            columns = _parse_header(fields, count)
        else:
            for index in range(count):
                column = columns[index]
                content = fields[index] if index < len(fields) else ""
                sink.write(
                    f'<text xp="{_number(column.x)}" yp="{_number(y)}" sp="{_number(layout.text_size)}" '
                    f'align="{column.align}">{content}</text>\n'
                )
            if layout.show_rule:
                rule_y = y - (layout.line_spacing / layout.tightness)
                sink.write(
                    f'<line xp1="{_number(columns[0].x)}" yp1="{rule_y:.2f}" '
                    f'xp2="{_number(columns[count - 1].x + layout.rule_overhang)}" yp2="{rule_y:.2f}" '
                    f'sp="{_number(layout.rule_size)}"/>\n'
                )
            rows += 1
        y -= layout.line_spacing
    sink.write("</slide></deck>\n")
    return rows
