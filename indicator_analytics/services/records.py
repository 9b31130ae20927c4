from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Sequence

from indicator_analytics.utils.numeric import to_flag, to_int, to_number


TARGET_SCENARIO_PRIORITY = ("MEDIO", "ALTO", "BAJO")


@dataclass(frozen=True)
class HistoryRecord:
    year: int
    month: int
    value: float | None
    is_meta: bool = False
    scenario: str | None = None


@dataclass(frozen=True)
class TargetRecord:
    year: int
    month: int | None
    scenario: str
    value: float | None


def _field(raw: Any, *names: str) -> Any:
    if isinstance(raw, Mapping):
        for name in names:
            if name in raw:
                return raw[name]
        return None
    for name in names:
        if hasattr(raw, name):
            return getattr(raw, name)
    return None


def _require_sequence(records: Any, label: str) -> Sequence[Any]:
    if records is None:
        return ()
    if not isinstance(records, (list, tuple)):
        raise TypeError(f"{label} must be a list of records, got {type(records).__name__}.")
    return records


def coerce_history(records: Any) -> list[HistoryRecord]:
    """Convert raw history rows (``anio``/``mes``/``valor`` or English keys).

    Rows without a usable year or with a non-integral month are skipped; a
    missing month becomes ``0`` (annual). Values stay ``None`` when they do
    not parse, so the record still marks the period as loaded.
    """
    rows: list[HistoryRecord] = []
    for raw in _require_sequence(records, "history"):
        if raw is None:
            continue
        if isinstance(raw, HistoryRecord):
            rows.append(raw)
            continue
        year = to_int(_field(raw, "anio", "year"))
        if year is None:
            continue
        raw_month = _field(raw, "mes", "month")
        month = 0 if raw_month is None else to_int(raw_month)
        if month is None:
            continue
        scenario = _field(raw, "escenario", "scenario")
        rows.append(
            HistoryRecord(
                year=year,
                month=month,
                value=to_number(_field(raw, "valor", "value")),
                is_meta=to_flag(_field(raw, "es_meta", "is_meta")),
                scenario=str(scenario) if scenario is not None else None,
            )
        )
    return rows


def coerce_targets(records: Any) -> list[TargetRecord]:
    rows: list[TargetRecord] = []
    for raw in _require_sequence(records, "targets"):
        if raw is None:
            continue
        if isinstance(raw, TargetRecord):
            rows.append(raw)
            continue
        year = to_int(_field(raw, "anio", "year"))
        if year is None:
            continue
        scenario = _field(raw, "escenario", "scenario")
        rows.append(
            TargetRecord(
                year=year,
                month=to_int(_field(raw, "mes", "month")),
                scenario="" if scenario is None else str(scenario),
                value=to_number(_field(raw, "valor", "value")),
            )
        )
    return rows


def sort_chronological(records: Iterable[HistoryRecord]) -> list[HistoryRecord]:
    return sorted(records, key=lambda row: (row.year, row.month or 0))


def history_from_targets(targets: list[TargetRecord]) -> list[HistoryRecord]:
    """Build a meta-only history from the highest-priority scenario present."""
    if not targets:
        return []
    scenario = next(
        (
            candidate
            for candidate in TARGET_SCENARIO_PRIORITY
            if any(target.scenario.strip().upper() == candidate for target in targets)
        ),
        None,
    )
    if scenario is None:
        return []
    rows = [
        HistoryRecord(
            year=target.year,
            month=target.month,
            value=target.value,
            is_meta=True,
            scenario=scenario,
        )
        for target in targets
        if target.scenario.strip().upper() == scenario
        and target.month is not None
        and target.value is not None
    ]
    return sort_chronological(rows)
