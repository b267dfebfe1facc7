"""
Marcenaria API - Installment engine
Divisão de valores em parcelas e cálculo de vencimentos mensais.

Funções puras: não acessam banco, não leem relógio (a data "agora"
sempre chega por parâmetro).
"""
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Sequence

from dateutil.relativedelta import relativedelta

from app.core.exceptions import ValidationError
from app.models.finance import InstallmentStatus


@dataclass
class InstallmentPlan:
    """Uma parcela planejada, antes de virar linha no banco"""
    number: int
    due_date: datetime
    amount_cents: int
    status: str = InstallmentStatus.PENDENTE.value
    paid_at: Optional[datetime] = None
    method: Optional[str] = None
    is_custom: bool = False


def split_into_installments(total_cents: int, count: int) -> List[int]:
    """
    Divide total_cents em `count` parcelas inteiras.

    Todas recebem floor(total / count); a última absorve o resto, então
    a soma é sempre exatamente total_cents.

    >>> split_into_installments(1000, 3)
    [333, 333, 334]
    """
    if count < 1:
        raise ValueError("count deve ser >= 1")
    if total_cents < 0:
        raise ValueError("total_cents não pode ser negativo")

    base = total_cents // count
    remainder = total_cents - base * count
    parts = [base] * count
    parts[-1] += remainder
    return parts


def add_months(base: datetime, months: int) -> datetime:
    """
    Avança `months` meses de calendário.
    Dia inexistente no mês destino vira o último dia válido
    (31/01 + 1 mês = 29/02 em ano bissexto).
    """
    return base + relativedelta(months=months)


def build_monthly_plan(
    total_cents: int,
    count: int,
    first_due: datetime,
    method: Optional[str] = None,
    paid_now: bool = False,
    paid_at: Optional[datetime] = None,
) -> List[InstallmentPlan]:
    """Gera N parcelas mensais a partir de first_due (parcela 1 = first_due)"""
    amounts = split_into_installments(total_cents, count)
    plan = []
    for idx, amount in enumerate(amounts):
        settle = paid_now and idx == 0
        plan.append(InstallmentPlan(
            number=idx + 1,
            due_date=add_months(first_due, idx),
            amount_cents=amount,
            status=InstallmentStatus.PAGO.value if settle else InstallmentStatus.PENDENTE.value,
            paid_at=paid_at if settle else None,
            method=method,
        ))
    return plan


def build_custom_plan(
    installments: Sequence,
    total_cents: int,
    expected_count: int,
    method: Optional[str] = None,
) -> List[InstallmentPlan]:
    """
    Valida parcelas informadas pelo usuário.

    `installments` é uma sequência de objetos com due_date e amount_cents.
    Regras: quantidade == expected_count (mínimo 2), valores inteiros
    positivos e soma exatamente igual ao total. Retorna ordenado por
    vencimento e renumerado 1..N.
    """
    if len(installments) < 2:
        raise ValidationError("installments deve ter pelo menos 2 parcelas.")

    if len(installments) != expected_count:
        raise ValidationError(
            f"installments tem {len(installments)} parcelas, mas installmentsCount é {expected_count}."
        )

    for idx, inst in enumerate(installments):
        if inst.due_date is None:
            raise ValidationError(f"installments[{idx}].dueDate inválido.")
        if not isinstance(inst.amount_cents, int) or inst.amount_cents <= 0:
            raise ValidationError(f"installments[{idx}].amountCents deve ser inteiro > 0.")

    total = sum(inst.amount_cents for inst in installments)
    if total != total_cents:
        diff = total_cents - total
        raise ValidationError(
            f"Soma das parcelas ({total}) diferente do total ({total_cents}). Diferença: {diff}."
        )

    ordered = sorted(installments, key=lambda inst: inst.due_date)
    return [
        InstallmentPlan(
            number=idx + 1,
            due_date=inst.due_date,
            amount_cents=inst.amount_cents,
            method=getattr(inst, "method", None) or method,
            is_custom=True,
        )
        for idx, inst in enumerate(ordered)
    ]
