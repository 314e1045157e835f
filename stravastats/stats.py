from datetime import date, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Iterable, List

from . import config
from .models import StatsSummary, WeekBucket, WeekSummary, WeeklyStatsResult, activity_date


def round2(value: float) -> float:
    """Redondeo a 2 decimales, mitades lejos del cero (1.005 -> 1.01, -1.005 -> -1.01)."""
    return float(Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def week_start(d: date, first_day: int = config.WEEK_FIRST_DAY) -> date:
    return d - timedelta(days=(d.weekday() - first_day) % 7)


def _week_one_start(year: int, first_day: int, min_days: int) -> date:
    jan1 = date(year, 1, 1)
    ws = week_start(jan1, first_day)
    days_in_year = 7 - (jan1 - ws).days
    return ws if days_in_year >= min_days else ws + timedelta(days=7)


def week_number(d: date, first_day: int = config.WEEK_FIRST_DAY, min_days: int = config.WEEK_MIN_DAYS) -> int:
    """
    Número de semana dentro del año "de semanas" (lunes + 4 días = ISO-8601;
    domingo + 1 día = calendario de EE. UU.).
    """
    for year in (d.year + 1, d.year, d.year - 1):
        start = _week_one_start(year, first_day, min_days)
        if d >= start:
            return (d - start).days // 7 + 1
    raise ValueError(f"Fecha fuera de rango: {d}")


def seed_buckets(today: date, number_of_weeks: int, first_day: int = config.WEEK_FIRST_DAY) -> Dict[date, WeekBucket]:
    """N semanas consecutivas terminando en la de hoy, a cero y en orden cronológico."""
    current = week_start(today, first_day)
    buckets: Dict[date, WeekBucket] = {}
    for i in range(number_of_weeks - 1, -1, -1):
        ws = current - timedelta(days=7 * i)
        buckets[ws] = WeekBucket(week_start=ws)
    return buckets


def build_weekly_stats(
    activities: Iterable[Dict[str, Any]],
    number_of_weeks: int,
    today: date,
    first_day: int = config.WEEK_FIRST_DAY,
    min_days: int = config.WEEK_MIN_DAYS,
) -> WeeklyStatsResult:
    """Reparte las actividades crudas de Strava en semanas y calcula el resumen."""
    if number_of_weeks < 1:
        raise ValueError("number_of_weeks debe ser >= 1")

    buckets = seed_buckets(today, number_of_weeks, first_day)
    for act in activities:
        bucket = buckets.get(week_start(activity_date(act), first_day))
        if bucket is None:
            # fuera de la ventana: no cuenta
            continue
        bucket.add(float(act["distance"]) / 1000.0)

    current = week_start(today, first_day)
    weeks: List[WeekSummary] = []
    total_km = 0.0
    total_n = 0
    for b in buckets.values():
        weeks.append(WeekSummary(
            week_start=b.week_start,
            week_end=b.week_end,
            week_number=week_number(b.week_start, first_day, min_days),
            year=b.week_start.year,
            distance_km=round2(b.total_distance_km),
            activity_count=b.activity_count,
            is_current_week=b.week_start == current,
        ))
        total_km += b.total_distance_km
        total_n += b.activity_count

    return WeeklyStatsResult(
        weeks=weeks,
        summary=StatsSummary(
            total_distance_km=round2(total_km),
            total_activities=total_n,
            # se divide por las semanas pedidas, aunque algunas estén vacías
            average_distance_per_week_km=round2(total_km / number_of_weeks),
            number_of_weeks=number_of_weeks,
        ),
    )
