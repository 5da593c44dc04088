# backend/coffeevan/schemas/products.py

from typing import Literal, Optional
from pydantic import BaseModel, Field

Category = Literal["Coffees", "Teas", "Cakes", "Hot Chocolate"]


class ProductCreate(BaseModel):
    name: str = Field(min_length=1)
    description: Optional[str] = None
    price: float = Field(ge=0)
    category: Category
    image: Optional[str] = None
    available_options: list[str] = []
    default_option: Optional[str] = None

    model_config = {"from_attributes": True}


class ProductUpdate(BaseModel):
    is_active: Optional[bool] = None
    name: Optional[str] = None
    description: Optional[str] = None
    price: Optional[float] = Field(None, ge=0)
    category: Optional[Category] = None
    image: Optional[str] = None
    available_options: Optional[list[str]] = None
    default_option: Optional[str] = None

    model_config = {"from_attributes": True}


class ProductRead(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    price: float
    category: str
    image: Optional[str] = None
    available_options: list[str] = []
    default_option: Optional[str] = None
    is_active: bool

    model_config = {"from_attributes": True}


class CategoryCount(BaseModel):
    category: str
    count: int
