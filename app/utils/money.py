"""
Marcenaria API - Money helpers
Valores monetários são sempre inteiros em centavos
"""
import math


def round_cents(value: float) -> int:
    """Arredonda meio para cima (ex: 2.5 -> 3)"""
    return int(math.floor(value + 0.5))


def format_brl(cents: int) -> str:
    """1234567 -> 'R$ 12.345,67'"""
    sign = "-" if cents < 0 else ""
    value = abs(int(cents)) / 100
    return f"{sign}R$ {value:,.2f}".replace(',', 'X').replace('.', ',').replace('X', '.')


def only_digits(value) -> str:
    return "".join(ch for ch in str(value or "") if ch.isdigit())
