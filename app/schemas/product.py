from pydantic import BaseModel, Field, ConfigDict
from datetime import datetime
from typing import Optional, Union


class ProductPayload(BaseModel):
    """
    Schema for creating or replacing a product.

    Every field is optional here so the service can report the first
    missing one by name. Stock may arrive as a number or a numeric string.
    """
    name: Optional[str] = Field(None, description="Product name (unique, case-insensitive)")
    unit: Optional[str] = Field(None, description="Unit of measure")
    category: Optional[str] = Field(None, description="Product category")
    brand: Optional[str] = Field(None, description="Brand name")
    stock: Optional[Union[int, float, str]] = Field(None, description="Stock on hand (>= 0)")
    status: Optional[str] = Field(None, description="Availability label")
    image: Optional[str] = Field(None, description="Image URL or path")


class ProductResponse(BaseModel):
    """Schema for product response including all fields."""
    id: int
    name: str
    unit: str
    category: str
    brand: str
    stock: int
    status: str
    image: Optional[str] = ""
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)


class DeleteResponse(BaseModel):
    success: bool
