"""
Créneaux et jours de disponibilité des vétérinaires (pur, sans réseau).
"""
from datetime import date, timedelta
from typing import Iterable, List, Optional

from storefront.config import DEFAULT_AVAILABLE_END, DEFAULT_AVAILABLE_START, SLOT_MINUTES

WEEKDAYS = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")

# module storefront.appointments.slots
def to_minutes(value: str) -> int:
    """
    Convertit "HH:MM" (24h) ou "HH:MM AM/PM" en minutes depuis minuit.
    Lève ValueError si le format est invalide.
    """
    text = (value or "").strip().upper()
    period = None
    if text.endswith("AM") or text.endswith("PM"):
        period = text[-2:]
        text = text[:-2].strip()
    hours_s, _, minutes_s = text.partition(":")
    hours, minutes = int(hours_s), int(minutes_s or 0)
    if period == "PM" and hours != 12:
        hours += 12
    elif period == "AM" and hours == 12:
        hours = 0
    if not (0 <= hours < 24 and 0 <= minutes < 60):
        raise ValueError(f"Heure invalide: {value}")
    return hours * 60 + minutes

def format_minutes(total: int) -> str:
    return f"{total // 60:02d}:{total % 60:02d}"

def generate_time_slots(
    start: str = DEFAULT_AVAILABLE_START,
    end: str = DEFAULT_AVAILABLE_END,
    step_minutes: int = SLOT_MINUTES,
) -> List[str]:
    """
    Enumère les créneaux sur l'intervalle semi-ouvert [start, end).
    - Les créneaux tombent sur des frontières fixes de step_minutes (un début à 09:10 donne 09:30 en premier).
    - 09:00-17:00 -> 09:00, 09:30, ..., 16:30. Intervalle vide ou inversé -> [].
    """
    start_m, end_m = to_minutes(start), to_minutes(end)
    first = -(-start_m // step_minutes) * step_minutes
    return [format_minutes(m) for m in range(first, end_m, step_minutes)]

def weekday_name(day: date) -> str:
    return WEEKDAYS[day.weekday()]

def is_date_available(day: date, available_days: Optional[Iterable[str]]) -> bool:
    """Jour autorisé si son nom anglais figure exactement dans available_days; ensemble vide = tous les jours."""
    days = list(available_days or [])
    if not days:
        return True
    return weekday_name(day) in days

def upcoming_dates(available_days: Optional[Iterable[str]], today: Optional[date] = None, horizon_days: int = 30) -> List[date]:
    """Dates sélectionnables à partir d'aujourd'hui (inclus) sur l'horizon donné."""
    start = today or date.today()
    days = list(available_days or [])
    return [start + timedelta(days=i) for i in range(horizon_days) if is_date_available(start + timedelta(days=i), days)]
