from __future__ import annotations


MONTH_NAMES = (
    "Enero",
    "Febrero",
    "Marzo",
    "Abril",
    "Mayo",
    "Junio",
    "Julio",
    "Agosto",
    "Septiembre",
    "Octubre",
    "Noviembre",
    "Diciembre",
)
MONTH_SHORT_LABELS = ("Ene", "Feb", "Mar", "Abr", "May", "Jun", "Jul", "Ago", "Sep", "Oct", "Nov", "Dic")
QUARTER_LABELS = ("Trimestre 1", "Trimestre 2", "Trimestre 3", "Trimestre 4")


def month_name(month: int) -> str:
    if 1 <= month <= 12:
        return MONTH_NAMES[month - 1]
    return ""


def month_short_label(month: int) -> str:
    if 1 <= month <= 12:
        return MONTH_SHORT_LABELS[month - 1]
    return str(month)


def format_month(year: int | None, month: int | None = 1) -> str:
    if not year:
        return "—"
    return f"{month_name(month or 1)} {year}".strip()


def quarter_label(quarter: int) -> str:
    if 1 <= quarter <= len(QUARTER_LABELS):
        return QUARTER_LABELS[quarter - 1]
    return f"Trimestre {quarter}"


def quarter_of(month: int) -> int:
    return (month - 1) // 3 + 1


def add_months(year: int, month: int, offset: int) -> tuple[int, int]:
    # month 0 (annual sentinel) anchors like January
    zero_based = year * 12 + (max(month, 1) - 1) + offset
    return zero_based // 12, zero_based % 12 + 1


def format_trend_label(year: int, month: int) -> str:
    return f"{month_short_label(month)} '{str(year)[-2:]} · T"
