"""Output formatting utilities for CLI."""

from decimal import Decimal
from typing import List, Optional, Sequence

import click


def format_success(message: str) -> str:
    """Format a success message with green color."""
    return click.style(f"✓ {message}", fg="green", bold=True)


def format_error(message: str) -> str:
    """Format an error message with red color."""
    return click.style(f"✗ {message}", fg="red", bold=True)


def format_warning(message: str) -> str:
    """Format a warning message with yellow color."""
    return click.style(f"⚠ {message}", fg="yellow", bold=True)


def format_info(message: str) -> str:
    """Format an info message with blue color."""
    return click.style(f"ℹ {message}", fg="blue")


def format_money(value: Optional[Decimal]) -> str:
    """Format an amount with two decimals and thousands separators.

    Example:
        >>> format_money(Decimal("1234.5"))
        '1,234.50'
    """
    if value is None:
        return "-"
    return f"{value:,.2f}"


def format_table(
    headers: List[str],
    rows: List[List[str]],
    max_width: int = 60,
    right_align: Sequence[int] = (),
) -> str:
    """Format data as a table.

    Args:
        headers: List of column headers
        rows: List of data rows (each row is a list of cell values)
        max_width: Maximum width for each column
        right_align: Indexes of columns to right-align (amounts, hours)

    Returns:
        Formatted table as a string
    """
    if not headers:
        return ""

    col_widths = [len(h) for h in headers]
    for row in rows:
        for i, cell in enumerate(row[: len(col_widths)]):
            col_widths[i] = max(col_widths[i], len(str(cell)))
    col_widths = [min(w, max_width) for w in col_widths]

    def render(cells: List[str]) -> str:
        formatted = []
        for i, cell in enumerate(cells[: len(col_widths)]):
            text = str(cell)[: col_widths[i]]
            if i in right_align:
                formatted.append(f" {text:>{col_widths[i]}} ")
            else:
                formatted.append(f" {text:<{col_widths[i]}} ")
        return "|" + "|".join(formatted) + "|"

    separator = "+" + "+".join("-" * (w + 2) for w in col_widths) + "+"

    lines = [separator, render(headers), separator]
    if rows:
        lines.extend(render(row) for row in rows)
        lines.append(separator)

    return "\n".join(lines)
