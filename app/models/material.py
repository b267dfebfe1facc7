"""
Marcenaria API - Material / Inventory Models
"""
import enum
import uuid
from datetime import datetime
from sqlalchemy import Column, String, Integer, Float, Boolean, DateTime, Text, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship

from app.database import Base
from app.utils.dates import iso


class MaterialUnit(str, enum.Enum):
    UN = "UN"
    M = "M"
    M2 = "M2"
    M3 = "M3"
    L = "L"
    KG = "KG"
    CX = "CX"
    OUTRO = "OUTRO"


class MovementType(str, enum.Enum):
    IN = "IN"
    OUT = "OUT"
    ADJUST = "ADJUST"


class MovementSource(str, enum.Enum):
    MANUAL = "MANUAL"
    ORDER = "ORDER"
    PURCHASE = "PURCHASE"


class Material(Base):
    __tablename__ = "materials"
    __table_args__ = (
        UniqueConstraint("salon_id", "name", name="uq_materials_salon_name"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    salon_id = Column(String(36), ForeignKey("salons.id"), nullable=False, index=True)

    name = Column(String(255), nullable=False)
    unit = Column(String(10), nullable=False, default=MaterialUnit.UN.value)
    sku = Column(String(60))
    default_unit_cost_cents = Column(Integer, nullable=False, default=0)
    min_qty = Column(Float, nullable=False, default=0)
    notes = Column(Text)
    is_active = Column(Boolean, default=True, nullable=False)

    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    supplier_prices = relationship(
        "MaterialSupplierPrice",
        back_populates="material",
        cascade="all, delete-orphan",
        order_by="MaterialSupplierPrice.unit_cost_cents",
        lazy="selectin"
    )

    @property
    def best_price(self):
        """Fornecedor mais barato cadastrado (ou None)"""
        if not self.supplier_prices:
            return None
        return min(self.supplier_prices, key=lambda p: p.unit_cost_cents)

    def to_dict(self):
        best = self.best_price
        return {
            "id": self.id,
            "name": self.name,
            "unit": self.unit,
            "sku": self.sku,
            "defaultUnitCostCents": self.default_unit_cost_cents,
            "minQty": self.min_qty,
            "notes": self.notes,
            "isActive": self.is_active,
            "supplierPrices": [p.to_dict() for p in self.supplier_prices],
            "bestSupplierPrice": best.to_dict() if best else None,
            "createdAt": iso(self.created_at),
        }


class MaterialSupplierPrice(Base):
    __tablename__ = "material_supplier_prices"
    __table_args__ = (
        UniqueConstraint("material_id", "supplier_id", name="uq_material_supplier"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    material_id = Column(String(36), ForeignKey("materials.id", ondelete="CASCADE"), nullable=False, index=True)
    supplier_id = Column(String(36), ForeignKey("clients.id"), nullable=False)
    unit_cost_cents = Column(Integer, nullable=False)

    material = relationship("Material", back_populates="supplier_prices")
    supplier = relationship("Client", lazy="selectin")

    def to_dict(self):
        return {
            "supplierId": self.supplier_id,
            "supplier": self.supplier.to_summary() if self.supplier else None,
            "unitCostCents": self.unit_cost_cents,
        }


class MaterialMovement(Base):
    """Entrada (compra), saída (uso em pedido) ou ajuste de estoque"""
    __tablename__ = "material_movements"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    salon_id = Column(String(36), ForeignKey("salons.id"), nullable=False, index=True)
    material_id = Column(String(36), ForeignKey("materials.id"), nullable=False, index=True)

    type = Column(String(10), nullable=False)
    source = Column(String(20), nullable=False, default=MovementSource.MANUAL.value)
    qty = Column(Float, nullable=False)
    unit_cost_cents = Column(Integer)
    total_cost_cents = Column(Integer)
    supplier_id = Column(String(36), ForeignKey("clients.id"))
    nf_number = Column(String(60))
    order_id = Column(String(36), ForeignKey("orders.id"))
    payable_id = Column(String(36), ForeignKey("payables.id"))
    notes = Column(Text)
    occurred_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)

    created_at = Column(DateTime, default=datetime.utcnow)

    material = relationship("Material", lazy="selectin")
    supplier = relationship("Client", lazy="selectin")

    def to_dict(self):
        return {
            "id": self.id,
            "materialId": self.material_id,
            "material": {"id": self.material.id, "name": self.material.name, "unit": self.material.unit}
            if self.material else None,
            "type": self.type,
            "source": self.source,
            "qty": self.qty,
            "unitCostCents": self.unit_cost_cents,
            "totalCostCents": self.total_cost_cents,
            "supplierId": self.supplier_id,
            "supplier": self.supplier.to_summary() if self.supplier else None,
            "nfNumber": self.nf_number,
            "orderId": self.order_id,
            "payableId": self.payable_id,
            "notes": self.notes,
            "occurredAt": iso(self.occurred_at),
            "createdAt": iso(self.created_at),
        }
