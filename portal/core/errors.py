"""Domain errors raised by the pricing, ledger, order and catalog services.

Services never raise ``HTTPException``; ``portal.main`` maps these to responses.
"""
from decimal import Decimal


class PortalError(Exception):
    status_code = 400

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_detail(self) -> dict:
        return {"message": self.message}


class ValidationError(PortalError):
    status_code = 400

    def __init__(self, message: str, *, field: str | None = None):
        super().__init__(message)
        self.field = field

    def to_detail(self) -> dict:
        return {"message": self.message, "field": self.field}


class InsufficientBalance(PortalError):
    status_code = 402

    def __init__(self, *, required: Decimal, available: Decimal):
        super().__init__("Insufficient credit balance")
        self.required = Decimal(required)
        self.available = Decimal(available)

    @property
    def shortfall(self) -> Decimal:
        return self.required - self.available

    def to_detail(self) -> dict:
        return {
            "message": self.message,
            "required": str(self.required),
            "available": str(self.available),
            "shortfall": str(self.shortfall),
        }


class PermissionDenied(PortalError):
    status_code = 403

    def __init__(self, message: str = "Not authorized"):
        super().__init__(message)


class NotFound(PortalError):
    status_code = 404

    def __init__(self, entity: str, entity_id=None):
        super().__init__(f"{entity} not found")
        self.entity = entity
        self.entity_id = entity_id

    def to_detail(self) -> dict:
        return {"message": self.message, "entity": self.entity, "id": self.entity_id}


class InvalidStateTransition(PortalError):
    status_code = 409

    def __init__(self, *, current: str, requested: str):
        super().__init__(f"Cannot move order from '{current}' to '{requested}'")
        self.current = current
        self.requested = requested

    def to_detail(self) -> dict:
        return {
            "message": self.message,
            "current_status": self.current,
            "requested_status": self.requested,
        }
