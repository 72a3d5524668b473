"""Squarespace Commerce order model.

Only the fields used to describe a payment are declared; everything
else in the Orders API response is ignored.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


class LineItem(BaseModel):
    """A single line item of a Squarespace order."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    product_name: str | None = Field(
        default=None,
        alias="productName",
        description="Product name as shown on the order",
    )


class Order(BaseModel):
    """A Squarespace order as returned by the Orders API."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str | None = Field(default=None, description="Squarespace order ID")
    order_number: str | int | None = Field(
        default=None,
        alias="orderNumber",
        description="Merchant-facing order number",
    )
    line_items: list[LineItem] = Field(default_factory=list, alias="lineItems")

    @field_validator("line_items", mode="before")
    @classmethod
    def _drop_missing_items(cls, value: Any) -> Any:
        if value is None:
            return []
        if isinstance(value, list):
            return [item for item in value if item is not None]
        return value

    def product_names(self) -> list[str]:
        """Trimmed, non-empty product names in line item order."""
        names = ((item.product_name or "").strip() for item in self.line_items)
        return [name for name in names if name]
