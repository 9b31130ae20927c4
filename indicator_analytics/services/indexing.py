from __future__ import annotations

import re
import unicodedata
from dataclasses import dataclass, field
from typing import Iterable

from indicator_analytics.services.records import HistoryRecord, TargetRecord, sort_chronological
from indicator_analytics.utils.calendar import QUARTER_LABELS, quarter_of


YearMonthIndex = dict[int, dict[int, float]]

_SCENARIO_FILLER = re.compile(r"\b(META|OBJETIVO|ESCENARIO|ANUAL)\b")
_WHITESPACE = re.compile(r"\s+")


def _strip_accents(text: str) -> str:
    decomposed = unicodedata.normalize("NFD", text)
    return "".join(char for char in decomposed if not unicodedata.combining(char))


def normalize_text(value: object, *, lowercase: bool = False) -> str:
    text = _strip_accents("" if value is None else str(value)).strip()
    return text.lower() if lowercase else text.upper()


def normalize_scenario_key(value: object) -> str:
    """Return the comparable key for a scenario label.

    ``"Meta Escenario Bajo"``, ``"bajo"`` and ``"BAJO "`` all map to ``"BAJO"``.
    """
    text = normalize_text(value)
    if not text:
        return ""
    return _WHITESPACE.sub(" ", _SCENARIO_FILLER.sub("", text)).strip()


def build_year_month_index(history: Iterable[HistoryRecord]) -> YearMonthIndex:
    # Later records for the same period overwrite earlier ones.
    index: YearMonthIndex = {}
    for row in history:
        if row.value is None:
            continue
        index.setdefault(row.year, {})[row.month] = row.value
    return index


@dataclass(frozen=True)
class TimelineEntry:
    year: int
    month: int
    value: float


@dataclass(frozen=True)
class Timeline:
    entries: tuple[TimelineEntry, ...] = ()
    positions: dict[tuple[int, int], int] = field(default_factory=dict)

    def previous(self, year: int, month: int, *, years_back: int = 1) -> TimelineEntry | None:
        position = self.positions.get((year - years_back, month))
        if position is None:
            return None
        return self.entries[position]

    @property
    def values(self) -> list[float]:
        return [entry.value for entry in self.entries]


def build_timeline(history: Iterable[HistoryRecord]) -> Timeline:
    entries = tuple(
        TimelineEntry(year=row.year, month=row.month, value=row.value)
        for row in sort_chronological(history)
        if row.value is not None
    )
    positions: dict[tuple[int, int], int] = {}
    for position, entry in enumerate(entries):
        positions[(entry.year, entry.month)] = position
    return Timeline(entries=entries, positions=positions)


def fill_monthly_targets(explicit: dict[int, float], leading: float | None = None) -> dict[int, float]:
    """Forward-fill explicit monthly targets across January..December.

    Each explicit value is carried forward until the next explicit month.
    Months before the first explicit value take ``leading`` (the annual
    target) when given, else that first value.
    """
    known = {month: value for month, value in explicit.items() if 1 <= month <= 12}
    if not known:
        return {month: leading for month in range(1, 13)} if leading is not None else {}
    first_value = leading if leading is not None else known[min(known)]
    filled: dict[int, float] = {}
    last_known: float | None = None
    for month in range(1, 13):
        if month in known:
            last_known = known[month]
        filled[month] = first_value if last_known is None else last_known
    return filled


class ScenarioTargetIndex:
    """Targets keyed by normalized scenario, then by ``(year, month)``.

    Annual targets (no month) are stored under month ``0``. They cover the
    whole year when it has no monthly targets, and the months before the
    first monthly target otherwise.
    """

    def __init__(self, targets: Iterable[TargetRecord]) -> None:
        self.raw: dict[str, dict[tuple[int, int], float]] = {}
        for target in targets:
            key = normalize_scenario_key(target.scenario)
            if not key or target.value is None:
                continue
            month = target.month if target.month is not None else 0
            self.raw.setdefault(key, {})[(target.year, month)] = target.value
        self._filled: dict[tuple[str, int], dict[int, float]] = {}

    def __contains__(self, scenario: object) -> bool:
        return normalize_scenario_key(scenario) in self.raw

    def __len__(self) -> int:
        return len(self.raw)

    def monthly_values(self, scenario: str, year: int) -> dict[int, float]:
        key = normalize_scenario_key(scenario)
        cache_key = (key, year)
        if cache_key not in self._filled:
            explicit = {
                month: value
                for (target_year, month), value in self.raw.get(key, {}).items()
                if target_year == year and 1 <= month <= 12
            }
            self._filled[cache_key] = fill_monthly_targets(explicit, self.annual_value(key, year))
        return self._filled[cache_key]

    def annual_value(self, scenario: str, year: int) -> float | None:
        return self.raw.get(normalize_scenario_key(scenario), {}).get((year, 0))

    def resolve(self, scenario: str | None, year: int, month: int) -> float | None:
        if not scenario:
            return None
        return self.monthly_values(scenario, year).get(month)


def build_quarter_scenario_map(targets: Iterable[TargetRecord], year: int) -> dict[str, list[float | None]]:
    """Quarter values per scenario for ``year``.

    Within a quarter the quarter-end month wins; otherwise the first month
    seen is kept.
    """
    scenario_map: dict[str, list[float | None]] = {}
    for target in targets:
        if target.year != year or target.month is None or target.value is None:
            continue
        if not 1 <= target.month <= 12:
            continue
        scenario = normalize_scenario_key(target.scenario)
        if not scenario:
            continue
        values = scenario_map.setdefault(scenario, [None] * len(QUARTER_LABELS))
        position = quarter_of(target.month) - 1
        if values[position] is None or target.month % 3 == 0:
            values[position] = target.value
    return scenario_map
