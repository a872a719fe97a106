"""Sale recording on top of the stock engine.

Items are applied to stock one at a time. When an item is rejected the
items before it stay applied and no sale row is written; the caller gets
:class:`SaleItemFailed` listing what was applied.
"""

import logging
from dataclasses import asdict, dataclass
from datetime import datetime
from decimal import Decimal

from fastapi import status
from sqlalchemy.orm import Session

from app.models.inventory import MovementType, MovementUnit
from app.models.sales import Client, Sale, SaleItem
from app.models.user import User
from app.services.inventory import StockError, apply_movement

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SaleLine:
    group_name: str
    product_id: int
    unit: MovementUnit
    quantity: int
    unit_price: Decimal
    custom_price: bool = False

    @property
    def line_total(self) -> Decimal:
        return (self.unit_price * self.quantity).quantize(Decimal("0.01"))

    def as_dict(self) -> dict:
        data = asdict(self)
        data["unit"] = self.unit.value
        data["unit_price"] = str(self.unit_price)
        return data


class SaleItemFailed(Exception):
    code = "SALE_ITEM_FAILED"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, *, index: int, line: SaleLine, error: StockError, applied: list[SaleLine]) -> None:
        self.index = index
        self.line = line
        self.error = error
        self.applied = applied
        super().__init__(f"Sale item {index} failed: {error.message}")

    def as_detail(self) -> dict:
        return {
            "code": self.code,
            "message": str(self),
            "failed_item": {"index": self.index, **self.line.as_dict(), "error": self.error.as_detail()},
            "applied_items": [line.as_dict() for line in self.applied],
        }


def resolve_price(product, unit: MovementUnit, requested: Decimal | None) -> tuple[Decimal | None, bool]:
    """Catalog price for the unit, or the caller's price flagged as custom."""
    if requested is not None:
        return Decimal(requested), True
    catalog = product.sale_price if unit == MovementUnit.SEALED else product.portion_price
    return (Decimal(catalog) if catalog is not None else None), False


def record_sale(
    db: Session,
    *,
    club_id: int,
    seller: User,
    lines: list[SaleLine],
    client: Client | None = None,
) -> Sale:
    applied: list[SaleLine] = []
    for index, line in enumerate(lines):
        try:
            apply_movement(
                db,
                product_id=line.product_id,
                club_id=club_id,
                movement_type=MovementType.SALE,
                quantity=line.quantity,
                unit=line.unit,
                description=f"Sale ({line.group_name})",
                actor_id=seller.id,
            )
        except StockError as exc:
            logger.warning(
                "sale in club=%s stopped at item %s with %s item(s) already applied",
                club_id,
                index,
                len(applied),
            )
            raise SaleItemFailed(index=index, line=line, error=exc, applied=applied) from exc
        applied.append(line)

    now = datetime.utcnow()
    total = sum((line.line_total for line in applied), Decimal("0"))
    sale = Sale(
        club_id=club_id,
        employee_id=seller.id,
        client_id=client.id if client else None,
        total=total,
        created_at=now,
        items=[
            SaleItem(
                group_name=line.group_name,
                product_id=line.product_id,
                unit=line.unit,
                quantity=line.quantity,
                unit_price=line.unit_price,
                line_total=line.line_total,
                custom_price=line.custom_price,
            )
            for line in applied
        ],
    )
    db.add(sale)
    if client:
        client.total_spent = Decimal(client.total_spent or 0) + total
        client.visit_count = (client.visit_count or 0) + 1
        client.last_purchase_at = now
    db.commit()
    db.refresh(sale)
    logger.info("sale %s recorded in club=%s total=%s", sale.id, club_id, total)
    return sale
