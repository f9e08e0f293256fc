"""
Ledger Normalizer — turn raw ledger rows into canonical Transactions.

Raw rows come from CSV exports, bank files and database tables that disagree
on field names ("section" vs "type" vs "direction"), direction labels
("in", "income", "入金") and amount formatting ("000012,345", "¥1,200").
Everything is resolved here so downstream stages only ever see
:class:`~cashwatch.models.financial.Transaction`.

Unknown direction or source labels raise :class:`ValidationError`; nothing is
silently filed as an expense.
"""

from __future__ import annotations

import logging
import math
import numbers
import re
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, Literal

from cashwatch.analyzers.periods import as_date
from cashwatch.errors import ValidationError
from cashwatch.models.financial import Direction, Transaction, TransactionSource

logger = logging.getLogger("cashwatch.analyzers.normalizer")

OnError = Literal["raise", "skip"]

DEFAULT_OPENING_CATEGORIES: tuple[str, ...] = ("初期値", "opening balance", "initial value")

_FIELD_ALIASES: dict[str, tuple[str, ...]] = {
    "id": ("id", "transaction_id", "txn_id"),
    "date": ("date", "transaction_date", "txn_date", "posted_date", "posting_date"),
    "direction": ("direction", "section", "type", "kind"),
    "amount": ("amount", "value"),
    "account_id": ("account_id", "cash_account_id", "accountId", "cashAccountId", "account"),
    "category_id": ("category_id", "cash_category_id", "categoryId"),
    "category_name": ("category", "category_name", "categoryName"),
    "source": ("source", "source_type", "sourceType"),
    "description": ("description", "summary", "memo", "note"),
}

_DIRECTIONS: dict[str, Direction] = {
    "in": Direction.IN,
    "income": Direction.IN,
    "inflow": Direction.IN,
    "deposit": Direction.IN,
    "credit": Direction.IN,
    "入金": Direction.IN,
    "収入": Direction.IN,
    "out": Direction.OUT,
    "expense": Direction.OUT,
    "outflow": Direction.OUT,
    "withdrawal": Direction.OUT,
    "debit": Direction.OUT,
    "出金": Direction.OUT,
    "支出": Direction.OUT,
}

_SOURCES: dict[str, TransactionSource] = {
    "manual": TransactionSource.MANUAL,
    "imported": TransactionSource.IMPORTED,
    "import": TransactionSource.IMPORTED,
    "csv": TransactionSource.IMPORTED,
    "bank": TransactionSource.IMPORTED,
    "zengin": TransactionSource.IMPORTED,
    "rakuten": TransactionSource.IMPORTED,
    "mail": TransactionSource.IMPORTED,
    "opening": TransactionSource.OPENING,
    "initial": TransactionSource.OPENING,
}

# Currency marks, grouping commas and whitespace (incl. full-width) stripped before parsing.
_AMOUNT_NOISE = re.compile(r"[,\s¥$円＄￥，]")
_COMPACT_DATE = re.compile(r"^\d{8}$")


@dataclass
class NormalizationReport:
    """Outcome of normalizing a batch of raw rows."""

    transactions: list[Transaction] = field(default_factory=list)
    rejected: list[tuple[int, ValidationError]] = field(default_factory=list)

    @property
    def flagged(self) -> list[Transaction]:
        return [t for t in self.transactions if t.amount_flagged]


def normalize(
    raw: Mapping[str, Any] | Transaction,
    *,
    index: int | None = None,
    opening_categories: Iterable[str] = DEFAULT_OPENING_CATEGORIES,
) -> Transaction:
    """Convert one raw ledger row into a canonical Transaction.

    Args:
        raw: Row with any of the supported field-name spellings.
        index: Position of the row in its batch, reported in errors.
        opening_categories: Category names that mark an opening-balance entry.

    Raises:
        ValidationError: Missing/invalid date, unparseable amount, unmapped
            direction or source label.
    """
    if isinstance(raw, Transaction):
        return raw

    raw_date = _pick(raw, "date")
    if _is_blank(raw_date):
        raise ValidationError("date", "missing", index=index)
    txn_date = _parse_date(raw_date, index)

    amount, flagged = _parse_amount(_pick(raw, "amount"), index)

    raw_direction = _pick(raw, "direction")
    if _is_blank(raw_direction):
        direction = Direction.OUT if amount < 0 else Direction.IN
        amount = abs(amount)
    else:
        direction = _parse_direction(raw_direction, index)
        if amount < 0:
            raise ValidationError("amount", "negative amount with an explicit direction", index=index, value=amount)

    category_name = _clean_str(_pick(raw, "category_name"))
    source = _parse_source(_pick(raw, "source"), index)
    if category_name and category_name.strip().lower() in {c.lower() for c in opening_categories}:
        source = TransactionSource.OPENING

    if flagged:
        logger.warning("Record %s has no usable amount; counted as 0", index if index is not None else "?")

    return Transaction(
        id=_clean_id(_pick(raw, "id")),
        date=txn_date,
        direction=direction,
        amount=amount,
        account_id=_clean_id(_pick(raw, "account_id")),
        category_id=_clean_id(_pick(raw, "category_id")),
        category_name=category_name,
        source=source,
        description=_clean_str(_pick(raw, "description")) or "",
        amount_flagged=flagged,
    )


def normalize_all(
    records: Iterable[Mapping[str, Any] | Transaction],
    *,
    on_error: OnError = "raise",
    opening_categories: Iterable[str] = DEFAULT_OPENING_CATEGORIES,
) -> NormalizationReport:
    """Normalize a batch of rows.

    With ``on_error="raise"`` the first bad row aborts the batch (its index and
    field are on the exception). With ``on_error="skip"`` bad rows are logged
    and collected in :attr:`NormalizationReport.rejected`.
    """
    if on_error not in ("raise", "skip"):
        raise ValueError(f"on_error must be 'raise' or 'skip', got {on_error!r}")

    opening = tuple(opening_categories)
    report = NormalizationReport()
    for i, raw in enumerate(records):
        try:
            report.transactions.append(normalize(raw, index=i, opening_categories=opening))
        except ValidationError as e:
            if on_error == "raise":
                raise
            logger.warning("Skipping ledger record: %s", e)
            report.rejected.append((i, e))

    logger.debug(
        "Normalized %d records (%d rejected, %d flagged)",
        len(report.transactions),
        len(report.rejected),
        len(report.flagged),
    )
    return report


def peek(raw: Mapping[str, Any], name: str) -> Any:
    """Value of a canonical field (``"date"``, ``"account_id"``, ...) from a raw row, or None."""
    return _pick(raw, name)


def peek_date(raw: Mapping[str, Any]) -> date | None:
    """Parsed date of a raw row, or None when it has no valid date."""
    value = _pick(raw, "date")
    if value is None:
        return None
    try:
        return _parse_date(value, None)
    except ValidationError:
        return None


# ------------------------------------------------------------------ #
#  Field parsing                                                      #
# ------------------------------------------------------------------ #


def _pick(raw: Mapping[str, Any], name: str) -> Any:
    for alias in _FIELD_ALIASES[name]:
        if alias in raw:
            value = raw[alias]
            if not _is_blank(value):
                return value
    return None


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return isinstance(value, str) and not value.strip()


def _parse_date(value: Any, index: int | None) -> date:
    if isinstance(value, (date, datetime)):
        return as_date(value)
    if isinstance(value, str):
        text = value.strip()
        if _COMPACT_DATE.match(text):
            text = f"{text[:4]}-{text[4:6]}-{text[6:]}"
        text = text.replace("/", "-")
        if len(text) > 10:
            # Timestamps follow the same UTC rule as datetime values.
            try:
                return as_date(datetime.fromisoformat(text.replace("Z", "+00:00")))
            except ValueError:
                pass
        try:
            return date.fromisoformat(text[:10])
        except ValueError:
            pass
    raise ValidationError("date", "not a calendar date", index=index, value=value)


def _parse_amount(value: Any, index: int | None) -> tuple[Decimal, bool]:
    """Return (amount, flagged). Signed; the caller decides what a sign means."""
    if _is_blank(value):
        return Decimal("0"), True
    if isinstance(value, bool):
        raise ValidationError("amount", "boolean is not an amount", index=index, value=value)

    if isinstance(value, Decimal):
        amount = value
    elif isinstance(value, numbers.Integral):
        amount = Decimal(int(value))
    elif isinstance(value, numbers.Real):
        if not math.isfinite(float(value)):
            return Decimal("0"), True
        amount = Decimal(str(float(value)))
    elif isinstance(value, str):
        text = _AMOUNT_NOISE.sub("", value)
        if text.lower() in ("nan", "none", "null", "inf", "+inf", "-inf", "infinity"):
            return Decimal("0"), True
        try:
            amount = Decimal(text)
        except InvalidOperation:
            raise ValidationError("amount", "unparseable amount", index=index, value=value) from None
    else:
        raise ValidationError("amount", f"unsupported type {type(value).__name__}", index=index, value=value)

    if not amount.is_finite():
        return Decimal("0"), True
    return amount, False


def _parse_direction(value: Any, index: int | None) -> Direction:
    key = str(value).strip().lower()
    try:
        return _DIRECTIONS[key]
    except KeyError:
        raise ValidationError("direction", f"unmapped direction {value!r}", index=index, value=value) from None


def _parse_source(value: Any, index: int | None) -> TransactionSource:
    if _is_blank(value):
        return TransactionSource.MANUAL
    key = str(value).strip().lower()
    try:
        return _SOURCES[key]
    except KeyError:
        raise ValidationError("source", f"unmapped source {value!r}", index=index, value=value) from None


def _clean_id(value: Any) -> str | None:
    if _is_blank(value):
        return None
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def _clean_str(value: Any) -> str | None:
    if _is_blank(value):
        return None
    return str(value).strip()
