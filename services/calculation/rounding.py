import math
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, Optional


def round_half_up(value: float, digits: int = 2) -> float:
    """Arrondi commercial (0.125 -> 0.13). Les valeurs non finies sont renvoyées telles quelles."""
    if not math.isfinite(value):
        return value
    quantum = Decimal(1).scaleb(-digits)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def percent(part: int, whole: int) -> int:
    """round(100 * part / whole), 0 si l'effectif est vide"""
    if whole <= 0:
        return 0
    return int(round_half_up(100 * part / whole, 0))


def mean(values: Iterable[Optional[float]]) -> Optional[float]:
    """Moyenne arithmétique des valeurs non nulles, None si aucune."""
    present = [v for v in values if v is not None]
    if not present:
        return None
    return sum(present) / len(present)
