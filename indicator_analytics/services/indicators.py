from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Mapping

from indicator_analytics.services.indexing import normalize_scenario_key, normalize_text


TotalsStrategy = Literal["sum", "average"]

FAUNA_IMPACT_CODE = "SMS-01"
FAUNA_REFERENCE_SCENARIO = "BAJO"

SCENARIO_TITLES = {
    "BAJO": "Escenario Bajo",
    "MEDIO": "Escenario Medio",
    "ALTO": "Escenario Alto",
}
META_SCENARIO_DISPLAY_ORDER = ("MEDIO", "ALTO", "BAJO")
DEFAULT_META_LABELS = {"MEDIO": "Meta Programada", "ALTO": "Meta Alcanzada"}


@dataclass(frozen=True)
class IndicatorProfile:
    code: str | None = None
    name: str | None = None
    description: str | None = None
    scenario_labels: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_raw(cls, raw: Any) -> "IndicatorProfile | None":
        if raw is None:
            return None
        if isinstance(raw, IndicatorProfile):
            return raw
        if not isinstance(raw, Mapping):
            raise TypeError(f"indicator must be a mapping, got {type(raw).__name__}.")
        labels = raw.get("scenario_labels") or {}
        return cls(
            code=raw.get("clave", raw.get("code")),
            name=raw.get("nombre", raw.get("name")),
            description=raw.get("descripcion", raw.get("description")),
            scenario_labels={normalize_scenario_key(key): str(value) for key, value in labels.items()},
        )


@dataclass(frozen=True)
class IndicatorRules:
    """Behavioral overrides applied to one indicator's comparisons."""

    reference_scenario: str | None = None
    scenario_override: str | None = None
    totals_strategy: TotalsStrategy | None = None
    compare_prior_year: bool = True


DEFAULT_RULES = IndicatorRules()
FAUNA_IMPACT_RULES = IndicatorRules(
    reference_scenario=FAUNA_REFERENCE_SCENARIO,
    scenario_override=FAUNA_REFERENCE_SCENARIO,
    totals_strategy="average",
    compare_prior_year=False,
)


def is_fauna_impact_rate(profile: IndicatorProfile | None) -> bool:
    if profile is None:
        return False
    if profile.code is not None and str(profile.code).strip().upper() == FAUNA_IMPACT_CODE:
        return True
    haystacks = [
        normalize_text(text, lowercase=True)
        for text in (profile.name, profile.description)
        if text
    ]
    return any("impact" in text and "fauna" in text and "tasa" in text for text in haystacks)


def rules_for(profile: IndicatorProfile | None) -> IndicatorRules:
    if is_fauna_impact_rate(profile):
        return FAUNA_IMPACT_RULES
    return DEFAULT_RULES


def format_scenario_label(scenario: str | None) -> str:
    if not scenario:
        return "Meta"
    key = normalize_scenario_key(scenario) or scenario.strip().upper()
    title = SCENARIO_TITLES.get(key)
    if title is not None:
        return f"Meta {title}"
    return f"Meta Escenario {scenario}"


def meta_scenario_label(profile: IndicatorProfile | None, scenario: str) -> str:
    key = normalize_scenario_key(scenario)
    if profile is not None and key in profile.scenario_labels:
        return profile.scenario_labels[key]
    return DEFAULT_META_LABELS.get(key) or SCENARIO_TITLES.get(key) or scenario


def order_meta_columns(scenarios: list[str]) -> list[str]:
    prioritized = [code for code in META_SCENARIO_DISPLAY_ORDER if code in scenarios]
    return prioritized + [code for code in scenarios if code not in prioritized]
