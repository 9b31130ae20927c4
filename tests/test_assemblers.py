from indicator_analytics.services.assemblers import (
    build_chart_data,
    build_chart_series,
    build_forecast_points,
    build_table_rows,
    overlay_forecast,
)
from indicator_analytics.services.periods import ComparisonRow, build_row
from indicator_analytics.services.totals import compute_totals


def _rows() -> list[ComparisonRow]:
    return [
        build_row(period="Enero 2024", label="Ene", current_value=10.0, comparison_value=9.0),
        build_row(period="Febrero 2024", label="Feb", current_value=12.0, comparison_value=11.0),
    ]


def _forecast_rows() -> list[ComparisonRow]:
    return [ComparisonRow(period="Marzo 2024", label="Mar '24 · T", current_value=13.0, is_forecast=True)]


def test_chart_data_preserves_row_order_and_is_repeatable() -> None:
    rows = _rows()
    points = build_chart_data(rows)
    assert [point.period for point in points] == ["Ene", "Feb"]
    assert [point.full_period for point in points] == ["Enero 2024", "Febrero 2024"]
    assert build_chart_data(rows) == points


def test_overlay_anchors_trend_on_last_observed_point() -> None:
    chart = build_chart_data(_rows())
    overlay = overlay_forecast(chart, build_forecast_points(_forecast_rows()))
    assert len(overlay) == 3
    assert overlay[0].trend is None
    assert overlay[1].trend == 12.0
    assert overlay[2].trend == 13.0
    assert overlay[2].is_forecast is True
    assert chart[1].trend is None


def test_overlay_without_forecast_returns_chart_unchanged() -> None:
    chart = build_chart_data(_rows())
    assert overlay_forecast(chart, []) == chart


def test_chart_series_only_lists_columns_with_values() -> None:
    series = build_chart_series(
        _rows(), current_name="2024", comparison_name="2023", reference_name="Meta Escenario Medio"
    )
    assert [item.key for item in series] == ["current", "comparison"]
    assert series[0].color == "#2563eb"

    no_comparison = build_chart_series(
        [build_row(period="Enero 2024", current_value=1.0)], current_name="2024", comparison_name="2023"
    )
    assert [item.key for item in no_comparison] == ["current"]


def test_table_rows_place_total_between_observed_and_forecast() -> None:
    rows = _rows()
    table = build_table_rows(rows, compute_totals(rows), _forecast_rows())
    assert [row.kind for row in table] == ["observed", "observed", "total", "forecast"]
    assert table[2].current_value == 22.0
    assert table[3].period == "Marzo 2024"
