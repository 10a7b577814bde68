"""Number formatting and table rendering for Penny answers."""
from dataclasses import dataclass, replace
from typing import List, Optional, Sequence, Tuple, Union

from ewa_admin.data.snapshot import name_key
from ewa_admin.penny.schemas import Table, TableData

Cell = Union[str, int, float, None]

MISSING = "not reported"


def currency(amount: Optional[float]) -> str:
    """$1,234.56; missing amounts are labelled, not zeroed."""
    if amount is None:
        return MISSING
    return f"${amount:,.2f}"


def percent(rate: Optional[float]) -> str:
    """A 0-1 fraction as a percentage with one decimal."""
    if rate is None:
        return MISSING
    return f"{rate * 100:.1f}%"


def count(value: Optional[int]) -> str:
    if value is None:
        return MISSING
    return f"{value:,}"


def plural(n: int, word: str, plural_word: Optional[str] = None) -> str:
    return f"{n:,} {word if n == 1 else (plural_word or word + 's')}"


def format_cell(value: Cell, is_amount: bool = False) -> str:
    if value is None:
        return MISSING if is_amount else ""
    if is_amount:
        return currency(float(value))
    if isinstance(value, float):
        return f"{value:,.2f}"
    if isinstance(value, int) and not isinstance(value, bool):
        return f"{value:,}"
    return str(value)


@dataclass(frozen=True)
class ListView:
    """
    An itemized list shown to the admin, kept in conversation context.

    Rows hold raw values (amounts as floats) so export and filtering never
    re-parse formatted text. Totals are always computed over the rows in
    view, i.e. after the company filter. An amount that was never reported
    stays None in its row and is left out of the total rather than counted
    as zero; when no row in view has an amount the total itself is missing.

    ``filtered_title`` is the title used once a company filter applies,
    for lists whose title carries a row count that no longer holds.
    """
    title: str
    headers: Tuple[str, ...]
    rows: Tuple[Tuple[Cell, ...], ...]
    amount_column: Optional[int] = None
    company_column: Optional[int] = None
    name_column: Optional[int] = None
    total_label: Optional[str] = None
    company_filter: Optional[str] = None
    filtered_title: Optional[str] = None

    def visible_rows(self) -> List[Tuple[Cell, ...]]:
        if self.company_filter is None or self.company_column is None:
            return list(self.rows)
        key = name_key(self.company_filter)
        return [r for r in self.rows if name_key(str(r[self.company_column] or "")) == key]

    @property
    def has_amounts(self) -> bool:
        return self.amount_column is not None

    def missing_amounts(self) -> int:
        """Rows in view whose amount was not reported."""
        if self.amount_column is None:
            return 0
        return sum(1 for r in self.visible_rows() if r[self.amount_column] is None)

    def total(self) -> Optional[float]:
        if self.amount_column is None:
            return None
        rows = self.visible_rows()
        amounts = [float(r[self.amount_column]) for r in rows if r[self.amount_column] is not None]
        if rows and not amounts:
            return None
        return sum(amounts)

    def total_line(self) -> Optional[str]:
        """'Total X: **$n**' for the rows in view, noting rows with no amount."""
        if not self.has_amounts:
            return None
        label = self.total_label or "Total"
        total = self.total()
        if total is None:
            return f"{label}: {MISSING}"
        line = f"{label}: **{currency(total)}**"
        missing = self.missing_amounts()
        if missing:
            line += f" ({plural(missing, 'row')} {MISSING})"
        return line

    def companies(self) -> List[str]:
        if self.company_column is None:
            return []
        seen = {}
        for row in self.rows:
            value = row[self.company_column]
            if value:
                seen.setdefault(name_key(str(value)), str(value))
        return list(seen.values())

    def with_filter(self, company: Optional[str]) -> "ListView":
        return replace(self, company_filter=company)

    @property
    def display_title(self) -> str:
        if self.company_filter:
            return f"{self.filtered_title or self.title} at {self.company_filter}"
        return self.title


def render_table(view: ListView, limit: Optional[int] = None) -> Table:
    """Format a list view as a Table, optionally capping the displayed rows."""
    rows = view.visible_rows()
    shown = rows if limit is None else rows[:limit]
    formatted = [
        [format_cell(value, is_amount=(i == view.amount_column)) for i, value in enumerate(row)]
        for row in shown
    ]
    names = None
    if view.name_column is not None:
        names = [str(row[view.name_column]) for row in shown]
    return Table(
        title=view.display_title,
        data=TableData(headers=list(view.headers), rows=formatted, employee_names=names),
        amount_column_index=view.amount_column,
        total_label=view.total_label,
        total_amount=currency(view.total()) if view.has_amounts else None,
        row_count=len(rows),
    )


def render_capped(view: ListView, limit: int) -> Tuple[Table, Optional[Table]]:
    """The capped table plus, when rows were cut, the full table for expansion."""
    table = render_table(view, limit)
    if table.row_count > limit:
        return table, render_table(view)
    return table, None


def bullet_list(lines: Sequence[str]) -> str:
    return "\n".join(f"• {line}" for line in lines)


def numbered_list(lines: Sequence[str]) -> str:
    return "\n".join(f"{i}. {line}" for i, line in enumerate(lines, start=1))
