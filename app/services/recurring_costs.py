"""
Marcenaria API - Recurring costs
Materializa no mês pedido os custos recorrentes dos meses anteriores.

`plan_recurring_costs` é puro: recebe o histórico e o mês alvo e devolve
as linhas a inserir. `ensure_recurring_costs` só busca e grava.
"""
import logging
from datetime import datetime
from typing import Dict, Iterable, List

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from app.models import Cost
from app.utils.dates import parse_month

logger = logging.getLogger(__name__)


def _recency_key(cost):
    return (
        cost.year_month,
        cost.occurred_at or datetime.min,
        cost.created_at or datetime.min,
    )


def plan_recurring_costs(history: Iterable, target_month: str) -> List[Dict]:
    """
    Para cada recurringGroupId do histórico:
    - se o grupo já tem linha no mês alvo, nada a fazer;
    - o modelo é a linha mais recente com yearMonth <= alvo;
    - se o modelo não está marcado como recorrente, o grupo foi encerrado;
    - senão gera uma cópia datada no dia 1 do mês alvo.
    """
    month_start, _ = parse_month(target_month)

    groups: Dict[str, list] = {}
    for cost in history:
        if not cost.recurring_group_id or cost.year_month > target_month:
            continue
        groups.setdefault(cost.recurring_group_id, []).append(cost)

    rows = []
    for group_id, entries in groups.items():
        if any(c.year_month == target_month for c in entries):
            continue

        template = max(entries, key=_recency_key)
        if not template.is_recurring:
            continue

        rows.append({
            "salon_id": template.salon_id,
            "supplier_id": template.supplier_id,
            "type": template.type,
            "name": template.name,
            "description": template.description,
            "category": template.category,
            "amount_cents": template.amount_cents,
            "occurred_at": month_start,
            "year_month": target_month,
            "is_recurring": True,
            "recurring_group_id": group_id,
        })

    return rows


async def ensure_recurring_costs(db: AsyncSession, salon_id: str, target_month: str) -> int:
    """Garante uma linha por grupo recorrente no mês. Retorna quantas foram criadas."""
    parse_month(target_month)

    result = await db.execute(
        select(Cost).where(
            Cost.salon_id == salon_id,
            Cost.recurring_group_id.isnot(None),
            Cost.year_month <= target_month,
        )
    )
    rows = plan_recurring_costs(result.scalars().all(), target_month)
    if not rows:
        return 0

    db.add_all([Cost(**row) for row in rows])
    try:
        await db.commit()
    except IntegrityError:
        # outra requisição materializou o mesmo mês
        await db.rollback()
        logger.info(f"Custos recorrentes de {target_month} já materializados (salão {salon_id})")
        return 0

    logger.info(f"Custos recorrentes materializados: {len(rows)} em {target_month} (salão {salon_id})")
    return len(rows)
