from app.services.inventory.errors import (
    InsufficientStock,
    InvalidQuantity,
    MissingField,
    ProductNotFound,
    RecordNotFound,
    StockError,
)
from app.services.inventory.ledger import (
    LedgerLookup,
    RecordStatus,
    StockStatus,
    compute_status,
    get_or_create,
    get_record,
    record_status,
)
from app.services.inventory.movements import append, list_for
from app.services.inventory.engine import (
    EFFECTS,
    Balance,
    MovementOutcome,
    RebuildReport,
    apply_movement,
    rebuild_from_log,
)

__all__ = [
    "EFFECTS",
    "Balance",
    "InsufficientStock",
    "InvalidQuantity",
    "LedgerLookup",
    "MissingField",
    "MovementOutcome",
    "ProductNotFound",
    "RebuildReport",
    "RecordNotFound",
    "RecordStatus",
    "StockError",
    "StockStatus",
    "append",
    "apply_movement",
    "compute_status",
    "get_or_create",
    "get_record",
    "list_for",
    "rebuild_from_log",
    "record_status",
]
