from fastapi import status


class StockError(Exception):
    """Base class for inventory failures reported back to the caller."""

    code = "STOCK_ERROR"
    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)

    def as_detail(self) -> dict:
        return {"code": self.code, "message": self.message}


class InvalidQuantity(StockError):
    code = "INVALID_QUANTITY"
    status_code = 422

    def __init__(self, quantity) -> None:
        self.quantity = quantity
        super().__init__(f"Quantity must be greater than 0 (got {quantity})")


class MissingField(StockError):
    code = "MISSING_FIELD"
    status_code = 422

    def __init__(self, fields: list[str]) -> None:
        self.fields = fields
        super().__init__(f"Missing required movement fields: {', '.join(fields)}")


class InsufficientStock(StockError):
    code = "INSUFFICIENT_STOCK"
    status_code = status.HTTP_409_CONFLICT

    def __init__(self, *, product_id: int, club_id: int, unit: str, available: int, requested: int) -> None:
        self.product_id = product_id
        self.club_id = club_id
        self.unit = unit
        self.available = available
        self.requested = requested
        label = "units" if unit == "sealed" else "portions"
        super().__init__(f"Insufficient stock: requested {requested} {label}, {available} available")

    def as_detail(self) -> dict:
        detail = super().as_detail()
        detail.update(
            product_id=self.product_id,
            club_id=self.club_id,
            unit=self.unit,
            available=self.available,
            requested=self.requested,
        )
        return detail


class RecordNotFound(StockError):
    code = "RECORD_NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, product_id: int, club_id: int) -> None:
        super().__init__(f"No inventory record for product {product_id} in club {club_id}")


class ProductNotFound(StockError):
    code = "PRODUCT_NOT_FOUND"
    status_code = status.HTTP_404_NOT_FOUND

    def __init__(self, product_id: int) -> None:
        super().__init__(f"Product {product_id} not found")
