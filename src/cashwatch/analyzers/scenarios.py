"""
Scenario store — named what-if parameter sets.

A scenario fixes the monthly income/expense to assume and a horizon. It is
turned into a :class:`~cashwatch.models.financial.WhatIf` against the current
rolling average with :meth:`Scenario.to_what_if`.

Usage::

    book = ScenarioBook.load("scenarios.yaml")
    book.add(Scenario(name="Hire one", assumed_income=900_000, assumed_expense=1_050_000))
    book.save()
"""

from __future__ import annotations

import logging
from pathlib import Path

import yaml

from cashwatch.errors import CashWatchError, NotFoundError
from cashwatch.models.financial import Scenario

logger = logging.getLogger("cashwatch.analyzers.scenarios")


class ScenarioBook:
    """In-memory scenario collection, optionally backed by a YAML file."""

    def __init__(self, path: str | Path | None = None) -> None:
        self.path = Path(path) if path else None
        self._scenarios: dict[str, Scenario] = {}

    def __len__(self) -> int:
        return len(self._scenarios)

    def __contains__(self, name: object) -> bool:
        return name in self._scenarios

    def add(self, scenario: Scenario, *, replace: bool = False) -> Scenario:
        if scenario.name in self._scenarios and not replace:
            raise CashWatchError(f"Scenario already exists: {scenario.name}")
        self._scenarios[scenario.name] = scenario
        logger.info("Stored scenario: %s", scenario.name)
        return scenario

    def get(self, name: str) -> Scenario:
        try:
            return self._scenarios[name]
        except KeyError:
            raise NotFoundError("scenario", name) from None

    def scenarios(self) -> list[Scenario]:
        return sorted(self._scenarios.values(), key=lambda s: s.name)

    def remove(self, name: str) -> None:
        if self._scenarios.pop(name, None) is None:
            raise NotFoundError("scenario", name)
        logger.info("Removed scenario: %s", name)

    # ------------------------------------------------------------------ #
    #  Persistence                                                        #
    # ------------------------------------------------------------------ #

    @classmethod
    def load(cls, path: str | Path) -> ScenarioBook:
        """Read scenarios from ``path``; a missing file gives an empty book."""
        book = cls(path)
        file = Path(path)
        if not file.exists():
            return book
        with open(file, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        for entry in data.get("scenarios", []):
            book.add(Scenario.model_validate(entry), replace=True)
        logger.debug("Loaded %d scenarios from %s", len(book), file)
        return book

    def save(self, path: str | Path | None = None) -> Path:
        target = Path(path) if path else self.path
        if target is None:
            raise CashWatchError("No path to save scenarios to")
        payload = {
            "scenarios": [
                {
                    "name": s.name,
                    "assumed_income": int(s.assumed_income),
                    "assumed_expense": int(s.assumed_expense),
                    "horizon_months": s.horizon_months,
                }
                for s in self.scenarios()
            ]
        }
        target.parent.mkdir(parents=True, exist_ok=True)
        with open(target, "w", encoding="utf-8") as f:
            yaml.safe_dump(payload, f, allow_unicode=True, sort_keys=False)
        return target
