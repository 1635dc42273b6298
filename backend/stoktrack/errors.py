# Overview: Typed failures raised by the stock services and translated by routes.

from __future__ import annotations


class StockError(Exception):
    """Base class for business-rule failures surfaced to callers."""

    status_code = 400
    kind = "stock_error"

    def to_dict(self) -> dict:
        return {"error": str(self), "kind": self.kind}


class InvalidInputError(StockError, ValueError):
    """Quantity out of range, date in the future, or a missing reference."""

    status_code = 400
    kind = "invalid_input"


class ForbiddenError(StockError):
    """Role or ownership mismatch. Never retried automatically."""

    status_code = 403
    kind = "forbidden"


class NotFoundError(StockError):
    """Ledger row absent or already soft-deleted."""

    status_code = 404
    kind = "not_found"


class InsufficientStockError(StockError):
    """
    Stock-out rejected because it exceeds available stock.

    Carries the available figure computed under the actor's scope so the
    caller can show it or retry with a smaller quantity.
    """

    status_code = 409
    kind = "insufficient_stock"

    def __init__(self, available: int, requested: int):
        self.available = available
        self.requested = requested
        super().__init__(
            f"insufficient stock: requested {requested}, available {available}"
        )

    def to_dict(self) -> dict:
        data = super().to_dict()
        data["available"] = self.available
        data["requested"] = self.requested
        return data
