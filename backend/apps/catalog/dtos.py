from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional


@dataclass
class CategorySummaryDTO:
    id: int
    name: str


@dataclass
class CategoryDTO:
    id: int
    name: str
    description: Optional[str]
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class CategoryWithCountDTO:
    id: int
    name: str
    description: Optional[str]
    product_count: int


@dataclass
class ProductDTO:
    id: int
    name: str
    description: Optional[str]
    price: str
    stock: int
    images: List[str]
    category: Optional[CategorySummaryDTO]
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class CategoryDetailDTO:
    id: int
    name: str
    description: Optional[str]
    products: List[ProductDTO] = field(default_factory=list)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
