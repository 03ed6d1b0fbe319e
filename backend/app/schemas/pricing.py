from pydantic import BaseModel


class PriceBreakdown(BaseModel):
    """Multi-component quote derived from a shipment draft."""

    base_price: float = 0.0
    service_charge: float = 0.0
    customs_clearance: float = 0.0
    pickup_charge: float = 0.0
    insurance: float = 0.0
    subtotal: float = 0.0
    tax: float = 0.0
    total: float = 0.0

    # Inputs the breakdown was derived from
    customs_value: float = 0.0
    line_item_count: int = 0

    @classmethod
    def zero(cls) -> "PriceBreakdown":
        return cls()
