"""
Zengin Connector — Japanese bank statement files in the Zengin layout.

Zengin exports (Rakuten Bank and most Japanese banks) are headerless CSV:
record type ``1`` is the file header, type ``2`` rows are the movements.
Observed detail columns:

- ``[2]`` transaction date / ``[3]`` value date, ``YYMMDD`` in the Reiwa era
- ``[4]`` deposit/withdrawal code (``1`` = deposit, ``2`` = withdrawal)
- ``[6]`` amount, zero padded
- ``[14]`` / ``[15]`` remitter name or memo

Files are usually Shift_JIS encoded.
"""

from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Any

import pandas as pd

from cashwatch.connectors.csv_connector import CSVConnector

logger = logging.getLogger("cashwatch.connectors.zengin")

_MAX_COLUMNS = 32
_YYMMDD = re.compile(r"^\d{6}$")
_KUBUN: dict[str, str] = {"1": "in", "2": "out"}


def parse_zengin_date(value: str) -> str | None:
    """``YYMMDD`` to ISO ``YYYY-MM-DD``.

    ``YY`` is read as a Reiwa year (Reiwa 1 = 2019) when that lands in
    2019..2099, otherwise as ``2000 + YY``. Returns None for anything that is
    not a plausible six-digit date.
    """
    s = (value or "").strip()
    if not _YYMMDD.match(s):
        return None
    yy, mm, dd = int(s[:2]), int(s[2:4]), int(s[4:6])
    if not yy or not 1 <= mm <= 12 or not 1 <= dd <= 31:
        return None
    reiwa_year = 2018 + yy
    year = reiwa_year if 2019 <= reiwa_year <= 2099 else 2000 + yy
    return f"{year}-{mm:02d}-{dd:02d}"


class ZenginConnector(CSVConnector):
    """Read a Zengin-format bank statement.

    Inherits account handling and range filtering from CSVConnector; every row
    is attributed to the configured ``account_id``.

    Usage::

        connector = ZenginConnector(file_path="rakuten.csv", account_id="1", current_balance=820_000)
        rows = await connector.fetch_transactions("1")
    """

    name = "zengin"
    description = "Read Zengin-format Japanese bank statements"

    def __init__(
        self,
        credentials: dict[str, Any] | None = None,
        file_path: str | None = None,
        **options: Any,
    ) -> None:
        options.setdefault("encoding", "shift_jis")
        super().__init__(credentials, file_path=file_path, **options)

    def _read_records(self, path: Path) -> list[dict[str, Any]]:
        df = pd.read_csv(
            path,
            encoding=self.encoding,
            delimiter=self.delimiter,
            header=None,
            names=list(range(_MAX_COLUMNS)),
            dtype=str,
            keep_default_na=False,
            engine="python",
        ).fillna("")

        records: list[dict[str, Any]] = []
        for _, row in df.iterrows():
            cells = [str(c).strip() for c in row.tolist()]
            if cells[0] != "2":
                continue

            raw_date = cells[2] or cells[3]
            kubun = cells[4]
            amount = cells[6]
            summary = cells[14] or cells[15]
            if not amount and not summary and not raw_date:
                continue

            records.append(
                {
                    # Unparseable dates and unknown codes are passed through so
                    # the normalizer rejects them with context.
                    "date": parse_zengin_date(raw_date) or raw_date,
                    "direction": _KUBUN.get(kubun, kubun),
                    "amount": amount,
                    "description": summary,
                    "source": "zengin",
                }
            )

        logger.debug("Parsed %d Zengin detail records from %s", len(records), path.name)
        return records
