from pydantic import BaseModel, ConfigDict, Field, StrictInt
from typing import Any, List, Optional

# Collection: products
class ProductIn(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: str = Field(..., min_length=1, description="Product title")
    description: str = Field(..., min_length=1, description="Product description")
    code: str = Field(..., min_length=1, description="Unique product code")
    price: float = Field(..., ge=0, description="Unit price")
    status: bool = Field(True, description="Whether the product is available")
    stock: int = Field(..., ge=0, description="Units in stock")
    category: str = Field(..., min_length=1, description="Product category")
    thumbnails: List[str] = Field(default_factory=list, description="Image paths")

# Partial update; id and timestamps are not part of the model and are dropped
class ProductUpdate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    title: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = Field(None, min_length=1)
    code: Optional[str] = Field(None, min_length=1)
    price: Optional[float] = Field(None, ge=0)
    status: Optional[bool] = None
    stock: Optional[int] = Field(None, ge=0)
    category: Optional[str] = Field(None, min_length=1)
    thumbnails: Optional[List[str]] = None

class ProductOut(ProductIn):
    id: str
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

# Collection: carts
class CartLineIn(BaseModel):
    product: str
    quantity: Any = None

class CartUpdateIn(BaseModel):
    products: List[CartLineIn]

class AddQuantityIn(BaseModel):
    quantity: int = 1

# No string or bool coercion on the absolute quantity
class QuantityIn(BaseModel):
    quantity: StrictInt
