from app.models.inventory import Club, InventoryRecord, Movement, Product
from app.models.sales import Client, Expense, Sale, SaleItem
from app.models.user import User

__all__ = [
    "Client",
    "Club",
    "Expense",
    "InventoryRecord",
    "Movement",
    "Product",
    "Sale",
    "SaleItem",
    "User",
]
