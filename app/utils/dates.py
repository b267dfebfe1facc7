"""
Marcenaria API - Date helpers
Todas as datas são gravadas como UTC sem timezone (naive)
"""
import re
from datetime import datetime, timezone
from typing import Optional, Tuple

from dateutil.relativedelta import relativedelta

from app.core.exceptions import ValidationError

MONTH_RE = re.compile(r"^\d{4}-(0[1-9]|1[0-2])$")
EPOCH = datetime(1970, 1, 1)


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Converte datetime com timezone para UTC naive"""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value else None


def month_key(value: datetime) -> str:
    """YYYY-MM (UTC) de uma data"""
    return f"{value.year:04d}-{value.month:02d}"


def parse_month(month: Optional[str], field: str = "month") -> Tuple[datetime, datetime]:
    """
    Converte YYYY-MM no intervalo [inicio do mês, inicio do mês seguinte) em UTC.
    Levanta ValidationError se o formato for inválido.
    """
    if not month or not MONTH_RE.match(month.strip()):
        raise ValidationError(f"{field} inválido (use YYYY-MM).")

    year, mon = (int(p) for p in month.strip().split("-"))
    start = datetime(year, mon, 1)
    return start, start + relativedelta(months=1)


def require_range(start: Optional[datetime], end: Optional[datetime]) -> Tuple[datetime, datetime]:
    """Valida intervalo semiaberto [from, to)"""
    if start is None or end is None:
        raise ValidationError("from e to são obrigatórios.")

    start, end = to_naive_utc(start), to_naive_utc(end)
    if start >= end:
        raise ValidationError("from deve ser menor que to.")
    return start, end
