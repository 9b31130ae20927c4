import pytest

from indicator_analytics.services.analytics import (
    AnalyticsOptions,
    IndicatorDataset,
    aggregate,
    compute_analytics,
)
from indicator_analytics.services.indicators import IndicatorProfile, is_fauna_impact_rate


def _two_year_history() -> list[dict]:
    history = [{"anio": 2023, "mes": month, "valor": 10} for month in range(1, 13)]
    history += [{"anio": 2024, "mes": month, "valor": 12} for month in range(1, 8)]
    return history


def _bajo_targets() -> list[dict]:
    return [
        {"anio": 2024, "mes": 1, "escenario": "BAJO", "valor": 10},
        {"anio": 2024, "mes": 7, "escenario": "BAJO", "valor": 20},
    ]


def test_monthly_comparison_against_prior_year() -> None:
    history = [
        {"anio": 2023, "mes": 6, "valor": 100},
        {"anio": 2024, "mes": 6, "valor": 120},
    ]
    result = aggregate("monthly", history)
    assert result is not None
    assert result.current_year == 2024
    assert result.latest_month == 6
    assert len(result.rows) == 1
    row = result.rows[0]
    assert row.period == "Junio 2024"
    assert row.comparison_value == 100.0
    assert row.diff == pytest.approx(20.0)
    assert row.pct == pytest.approx(0.2)
    assert result.comparison_label == "2023"
    assert result.forecast is None
    assert result.summary is not None
    assert result.summary.title == "Variación mensual 2024"


def test_unparsable_values_produce_no_rows() -> None:
    assert aggregate("monthly", [{"anio": 2024, "mes": 1, "valor": "abc"}]) is None


def test_non_list_input_raises_type_error() -> None:
    with pytest.raises(TypeError):
        aggregate("monthly", "not-a-list")
    with pytest.raises(TypeError):
        aggregate("monthly", [], {"anio": 2024})


def test_unknown_type_and_empty_history_return_none() -> None:
    assert aggregate("weekly", _two_year_history()) is None
    assert aggregate("monthly", []) is None


def test_quarterly_and_annual_comparisons() -> None:
    dataset = IndicatorDataset(_two_year_history())

    quarterly = compute_analytics("quarterly", dataset)
    assert quarterly is not None
    assert [row.period for row in quarterly.rows] == ["Trimestre 1 2024", "Trimestre 2 2024"]
    assert quarterly.rows[0].current_value == 36.0
    assert quarterly.rows[0].comparison_value == 30.0
    assert quarterly.rows[0].pct == pytest.approx(0.2)
    assert quarterly.totals is not None
    assert quarterly.totals.current_value == 72.0
    assert quarterly.forecast is None

    annual = compute_analytics("annual", dataset)
    assert annual is not None
    assert annual.rows[0].current_value == 84.0
    assert annual.rows[0].comparison_value == 70.0
    assert annual.summary is not None
    assert annual.summary.comparison_label == "Año 2023"


def test_monthly_comparison_with_reference_scenario_and_forecast() -> None:
    targets = [{"anio": 2024, "mes": 1, "escenario": "Medio", "valor": 11}]
    result = aggregate("monthly", _two_year_history(), targets, AnalyticsOptions(diff_scenario="MEDIO"))
    assert result is not None
    assert len(result.rows) == 7
    row = result.rows[-1]
    assert row.reference_value == 11.0
    assert row.comparison_value == 10.0
    assert row.diff == pytest.approx(1.0)
    assert row.pct == pytest.approx(1.0 / 11.0)
    assert result.reference_label == "Meta Escenario Medio"
    assert [item.key for item in result.chart_series] == ["current", "comparison", "reference"]

    assert result.forecast is not None
    assert len(result.forecast.rows) == 6
    assert result.forecast.rows[0].period == "Agosto 2024"
    assert [row.kind for row in result.table_rows].count("forecast") == 6
    assert len(result.chart_overlay) == 7 + 6


def test_scenario_comparison_uses_filled_targets() -> None:
    history = [{"anio": 2024, "mes": month, "valor": 15} for month in range(1, 9)]
    result = aggregate("scenario", history, _bajo_targets(), AnalyticsOptions(scenario="BAJO"))
    assert result is not None
    assert result.comparison_label == "Meta Escenario Bajo"
    assert result.rows[0].comparison_value == 10.0
    assert result.rows[0].pct == pytest.approx(0.5)
    assert result.rows[-1].comparison_value == 20.0
    assert result.rows[-1].pct == pytest.approx(-0.25)
    assert result.totals is not None
    assert result.totals.comparison_value == 100.0
    assert result.totals.pct == pytest.approx(1.2)
    assert [item.name for item in result.chart_series] == ["Real", "Meta Escenario Bajo"]


def test_fauna_impact_rate_compares_against_low_scenario() -> None:
    options = AnalyticsOptions(indicator=IndicatorProfile(code="SMS-01"))
    result = aggregate("monthly", _two_year_history(), _bajo_targets(), options)
    assert result is not None
    assert result.scenario == "BAJO"
    assert result.totals_strategy == "average"
    assert all(row.comparison_value is None for row in result.rows)
    assert result.rows[0].reference_value == 10.0
    assert result.totals is not None
    assert result.totals.current_value == pytest.approx(12.0)

    scenario = aggregate("scenario", _two_year_history(), _bajo_targets(), AnalyticsOptions(
        scenario="ALTO", indicator=IndicatorProfile(code="sms-01")
    ))
    assert scenario is not None
    assert scenario.scenario == "BAJO"


def test_fauna_detection_by_name() -> None:
    assert is_fauna_impact_rate(IndicatorProfile(name="Tasa de impactos con fauna"))
    assert not is_fauna_impact_rate(IndicatorProfile(name="Impactos con fauna"))
    assert not is_fauna_impact_rate(None)


def test_meta_only_indicator_returns_quarter_table() -> None:
    history = [
        {"anio": 2024, "mes": 3, "valor": 5, "es_meta": True},
        {"anio": 2024, "mes": 6, "valor": 8, "es_meta": True},
    ]
    targets = [
        {"anio": 2024, "mes": 3, "escenario": "MEDIO", "valor": 5},
        {"anio": 2024, "mes": 6, "escenario": "MEDIO", "valor": 8},
        {"anio": 2024, "mes": 3, "escenario": "ALTO", "valor": 4},
        {"anio": 2024, "mes": 6, "escenario": "ALTO", "valor": 9},
        {"anio": 2024, "mes": 3, "escenario": "BAJO", "valor": 2},
    ]
    result = aggregate("scenario", history, targets, AnalyticsOptions(scenario="MEDIO"))
    assert result is not None
    assert result.meta_only is True
    assert result.scenario_columns == ["MEDIO", "ALTO", "BAJO"]
    assert len(result.scenario_rows) == 2
    assert result.scenario_rows[1].values == {"MEDIO": 8.0, "ALTO": 9.0, "BAJO": None}
    assert result.summary is not None
    assert result.summary.title == "Meta Programada vs Meta Alcanzada (Trimestre 2 2024)"
    assert result.summary.diff == pytest.approx(1.0)
    assert result.summary.pct == pytest.approx(1.0 / 8.0)


def test_history_falls_back_to_targets_when_requested() -> None:
    targets = [
        {"anio": 2024, "mes": 3, "escenario": "ALTO", "valor": 4},
        {"anio": 2024, "mes": 3, "escenario": "MEDIO", "valor": 5},
    ]
    dataset = IndicatorDataset([], targets, fallback_to_targets=True)
    assert dataset.meta_only is True
    assert [(row.scenario, row.value) for row in dataset.history] == [("MEDIO", 5.0)]
    assert IndicatorDataset([], targets).history == []


def test_explicit_current_year_uses_its_last_month() -> None:
    result = aggregate("monthly", _two_year_history(), options=AnalyticsOptions(current_year=2023))
    assert result is not None
    assert result.current_year == 2023
    assert result.latest_month == 12
    assert len(result.rows) == 12
    assert all(row.comparison_value is None for row in result.rows)


def test_dataset_indices_are_reused_across_comparisons() -> None:
    dataset = IndicatorDataset(_two_year_history())
    timeline = dataset.timeline
    assert compute_analytics("monthly", dataset) is not None
    assert compute_analytics("annual", dataset) is not None
    assert dataset.timeline is timeline


def test_out_of_range_values_are_treated_as_missing() -> None:
    history = [
        {"anio": 2024, "mes": 1, "valor": 10**400},
        {"anio": 2024, "mes": 2, "valor": 5},
    ]
    result = aggregate("monthly", history)
    assert result is not None
    assert [row.period for row in result.rows] == ["Febrero 2024"]


def test_textual_false_meta_flag_keeps_observed_series() -> None:
    history = [
        {"anio": 2024, "mes": 1, "valor": 7, "es_meta": "false"},
        {"anio": 2024, "mes": 2, "valor": 8, "es_meta": "0"},
    ]
    targets = [{"anio": 2024, "mes": 1, "escenario": "MEDIO", "valor": 6}]
    result = aggregate("scenario", history, targets, AnalyticsOptions(scenario="MEDIO"))
    assert result is not None
    assert result.meta_only is False
    assert [row.current_value for row in result.rows] == [7.0, 8.0]
