import pytest

from indicator_analytics.services.periods import (
    build_row,
    compute_annual_rows,
    compute_monthly_rows,
    compute_quarter_rows,
    complete_quarters,
)


def test_build_row_measures_against_reference_before_comparison() -> None:
    row = build_row(period="Junio 2024", current_value=120.0, comparison_value=100.0, reference_value=110.0)
    assert row.diff == pytest.approx(10.0)
    assert row.pct == pytest.approx(10.0 / 110.0)

    plain = build_row(period="Junio 2024", current_value=120.0, comparison_value=100.0)
    assert plain.diff == pytest.approx(20.0)
    assert plain.pct == pytest.approx(0.2)

    no_basis = build_row(period="Junio 2024", current_value=120.0, comparison_value=0.0)
    assert no_basis.diff == pytest.approx(120.0)
    assert no_basis.pct is None


def test_complete_quarters_counts_closed_quarters_only() -> None:
    assert complete_quarters(7) == 2
    assert complete_quarters(2) == 0
    assert complete_quarters(12) == 4


def test_quarter_rows_stop_at_last_complete_quarter() -> None:
    current = {month: 10.0 for month in range(1, 8)}
    rows = compute_quarter_rows(
        current_year=2024,
        previous_year=2023,
        latest_month=7,
        current_months=current,
        previous_months={1: 5.0, 2: 5.0, 3: 5.0},
    )
    assert [row.period for row in rows] == ["Trimestre 1 2024", "Trimestre 2 2024"]
    assert rows[0].current_value == 30.0
    assert rows[0].comparison_value == 15.0
    assert rows[0].pct == pytest.approx(1.0)
    assert rows[1].comparison_value is None
    assert rows[1].diff is None


def test_quarter_rows_skip_quarters_with_missing_month_but_keep_zeros() -> None:
    rows = compute_quarter_rows(
        current_year=2024,
        previous_year=2023,
        latest_month=6,
        current_months={1: 1.0, 3: 1.0, 4: 0.0, 5: 0.0, 6: 0.0},
        previous_months={},
    )
    assert len(rows) == 1
    assert rows[0].period == "Trimestre 2 2024"
    assert rows[0].current_value == 0.0


def test_monthly_rows_drop_months_without_current_value() -> None:
    rows = compute_monthly_rows(
        current_year=2024,
        previous_year=None,
        latest_month=3,
        current_months={1: 4.0, 3: 6.0},
    )
    assert [row.label for row in rows] == ["Ene", "Mar"]
    assert all(row.comparison_value is None for row in rows)


def test_annual_rows_accumulate_through_latest_month() -> None:
    rows = compute_annual_rows(
        current_year=2024,
        previous_year=2023,
        latest_month=3,
        current_months={1: 1.0, 2: 2.0, 3: 3.0},
        previous_months={1: 1.0, 2: 1.0, 3: 1.0, 4: 100.0},
    )
    assert len(rows) == 1
    assert rows[0].period == "Año 2024"
    assert rows[0].current_value == 6.0
    assert rows[0].comparison_value == 3.0
    assert rows[0].pct == pytest.approx(1.0)
