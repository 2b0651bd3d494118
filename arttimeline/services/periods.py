from __future__ import annotations

from datetime import date

from arttimeline.app.domain.models import Period


def _catalog(current_year: int) -> dict[str, Period]:
    periods = (
        Period(
            id="ancient",
            title="Ancient World",
            date_range="3000 BCE — 500 CE",
            start_year=-3000,
            end_year=500,
            queries=("Egyptian", "Greek", "Ancient"),
        ),
        Period(
            id="medieval",
            title="Medieval Period",
            date_range="500 — 1400",
            start_year=500,
            end_year=1400,
            queries=("Medieval", "Byzantine", "illuminated"),
        ),
        Period(
            id="renaissance",
            title="Renaissance",
            date_range="1400 — 1600",
            start_year=1400,
            end_year=1600,
            queries=("Renaissance", "Italian", "15th century"),
        ),
        Period(
            id="baroque",
            title="Baroque & Enlightenment",
            date_range="1600 — 1800",
            start_year=1600,
            end_year=1800,
            queries=("Baroque", "17th century", "18th century"),
        ),
        Period(
            id="modern",
            title="Modern & Contemporary",
            date_range="1800 — Present",
            start_year=1800,
            end_year=current_year,
            queries=("Impressionism", "19th century", "Modern"),
        ),
    )
    return {period.id: period for period in periods}


def list_periods(today: date | None = None) -> list[Period]:
    """Periods in chronological order."""
    day = today or date.today()
    return list(_catalog(day.year).values())


def get_period(period_id: str, today: date | None = None) -> Period | None:
    day = today or date.today()
    return _catalog(day.year).get(period_id)
