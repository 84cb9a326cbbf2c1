from __future__ import annotations

import datetime as dt
from collections import defaultdict
from dataclasses import asdict, dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Union

from ledgerboard.core.errors import ValidationError
from ledgerboard.models.base import money_sum
from ledgerboard.models.category import Category
from ledgerboard.models.transaction import Transaction
from ledgerboard.services.categories import CategoryRegistry, resolve_category
from ledgerboard.services.ledger import TransactionLedger, utcnow

TIME_RANGES = ("thisWeek", "thisMonth", "last3Months", "thisYear")
DEFAULT_RANGE = "thisMonth"

Moment = Union[dt.date, dt.datetime]


@dataclass
class CategoryTotal:
    """One slice of the category breakdown chart."""

    category: str
    amount: float
    color: str
    transaction_count: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class DailySeries:
    """Per-day expense totals with ``dates`` and ``amounts`` kept parallel."""

    dates: List[dt.date] = field(default_factory=list)
    amounts: List[float] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.dates

    def total(self) -> float:
        return money_sum(self.amounts)

    def to_dict(self) -> Dict[str, Any]:
        return {"dates": [d.isoformat() for d in self.dates], "amounts": list(self.amounts)}


@dataclass
class MonthlySummary:
    month: str
    income: float
    expenses: float
    savings: float

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def _as_date(moment: Moment) -> dt.date:
    return moment.date() if isinstance(moment, dt.datetime) else moment


def range_start(range_name: str, now: Moment) -> dt.date:
    today = _as_date(now)
    if range_name == "thisWeek":
        return today - dt.timedelta(days=7)
    if range_name == "thisMonth":
        return today.replace(day=1)
    if range_name == "last3Months":
        year, month = today.year, today.month - 3
        if month < 1:
            year, month = year - 1, month + 12
        return dt.date(year, month, 1)
    if range_name == "thisYear":
        return dt.date(today.year, 1, 1)
    raise ValidationError(
        f"Unknown time range {range_name!r}; expected one of {', '.join(TIME_RANGES)}",
        field="range",
    )


def filter_by_range(transactions: Iterable[Transaction], range_name: str, now: Moment) -> List[Transaction]:
    """Expense transactions dated between the range start and ``now``, inclusive."""
    start, end = range_start(range_name, now), _as_date(now)
    return [t for t in transactions if t.type == "expense" and start <= t.date <= end]


def category_breakdown(transactions: Iterable[Transaction], categories: Iterable[Category]) -> List[CategoryTotal]:
    """Sum per category, largest first. Equal sums keep first-seen order."""
    categories = list(categories)
    grouped: Dict[str, List[float]] = defaultdict(list)
    for transaction in transactions:
        grouped[transaction.category].append(transaction.amount)

    breakdown = [
        CategoryTotal(
            category=name,
            amount=money_sum(amounts),
            color=resolve_category(categories, name, "expense").color,
            transaction_count=len(amounts),
        )
        for name, amounts in grouped.items()
    ]
    # sorted() is stable, so ties stay in insertion order
    return sorted(breakdown, key=lambda item: item.amount, reverse=True)


def breakdown_total(breakdown: Iterable[CategoryTotal]) -> float:
    return money_sum(item.amount for item in breakdown)


def daily_series(transactions: Iterable[Transaction]) -> DailySeries:
    grouped: Dict[dt.date, List[float]] = defaultdict(list)
    for transaction in transactions:
        grouped[transaction.date].append(transaction.amount)
    dates = sorted(grouped)
    return DailySeries(dates=dates, amounts=[money_sum(grouped[d]) for d in dates])


def monthly_summary(transactions: Iterable[Transaction], now: Moment) -> MonthlySummary:
    """Income, expenses and net savings for the calendar month containing ``now``."""
    today = _as_date(now)
    grouped: Dict[str, List[float]] = defaultdict(list)
    for transaction in transactions:
        if (transaction.date.year, transaction.date.month) == (today.year, today.month):
            grouped[transaction.type].append(transaction.amount)
    income, expenses = money_sum(grouped["income"]), money_sum(grouped["expense"])
    return MonthlySummary(
        month=today.strftime("%Y-%m"),
        income=income,
        expenses=expenses,
        savings=money_sum([income, -expenses]),
    )


class AnalyticsEngine:
    """
    Read-only view over the ledger and category registry that produces
    chart-ready datasets. Nothing here mutates state or publishes events.
    """

    def __init__(
        self,
        ledger: TransactionLedger,
        categories: CategoryRegistry,
        clock: Callable[[], dt.datetime] = utcnow,
    ) -> None:
        self._ledger = ledger
        self._categories = categories
        self._clock = clock

    async def chart_data(self, range_name: str = DEFAULT_RANGE, now: Optional[Moment] = None) -> Dict[str, Any]:
        now = now if now is not None else self._clock()
        start = range_start(range_name, now)
        transactions = filter_by_range(await self._ledger.list(), range_name, now)
        breakdown = category_breakdown(transactions, await self._categories.list())
        return {
            "range": range_name,
            "start": start.isoformat(),
            "end": _as_date(now).isoformat(),
            "breakdown": [item.to_dict() for item in breakdown],
            "total": breakdown_total(breakdown),
            "daily": daily_series(transactions).to_dict(),
        }

    async def summary(self, now: Optional[Moment] = None) -> Dict[str, Any]:
        now = now if now is not None else self._clock()
        return monthly_summary(await self._ledger.list(), now).to_dict()
