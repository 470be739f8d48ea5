from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Dict, List, Optional, Tuple

from apps.common.pagination import DEFAULT_PAGE_SIZE

SORTABLE_FIELDS = {
    "createdAt": "created_at",
    "price": "price",
    "name": "name",
    "stock": "stock",
}


# Product Commands
@dataclass
class ProductCreateCommand:
    name: str
    price: Decimal
    description: Optional[str] = None
    stock: int = 0
    category_id: Optional[int] = None
    images: List[str] = field(default_factory=list)

    @staticmethod
    def from_raw(payload: Dict[str, Any]):
        data = dict(payload or {})
        # ids are server-assigned
        data.pop("id", None)
        description = data.get("description")
        return ProductCreateCommand(
            name=str(data.get("name", "")).strip(),
            price=Decimal(str(data.get("price", "0"))),
            description=description.strip() if isinstance(description, str) else None,
            stock=int(data.get("stock") or 0),
            category_id=data.get("categoryId"),
            images=list(data.get("images") or []),
        )

    def as_model_fields(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "price": self.price,
            "description": self.description,
            "stock": self.stock,
            "category_id": self.category_id,
            "images": self.images,
        }


@dataclass
class ProductUpdateCommand:
    """Partial update. Only keys present in the payload end up in ``changes``,
    so an explicit ``categoryId: null`` detaches the category."""

    product_id: int
    changes: Dict[str, Any] = field(default_factory=dict)

    _FIELD_MAP = (
        ("name", "name"),
        ("description", "description"),
        ("price", "price"),
        ("stock", "stock"),
        ("categoryId", "category_id"),
        ("images", "images"),
    )

    @property
    def category_id(self) -> Optional[int]:
        return self.changes.get("category_id")

    @property
    def touches_category(self) -> bool:
        return "category_id" in self.changes

    @staticmethod
    def from_raw(product_id: int, payload: Dict[str, Any]):
        data = dict(payload or {})
        data.pop("id", None)
        changes: Dict[str, Any] = {}
        for key, model_field in ProductUpdateCommand._FIELD_MAP:
            if key not in data:
                continue
            value = data[key]
            if model_field == "name" and isinstance(value, str):
                value = value.strip()
            elif model_field == "price" and value is not None:
                value = Decimal(str(value))
            elif model_field == "images":
                value = list(value or [])
            changes[model_field] = value
        return ProductUpdateCommand(product_id=product_id, changes=changes)


@dataclass(frozen=True)
class ProductFilterCommand:
    category_id: Optional[int] = None
    min_price: Optional[Decimal] = None
    max_price: Optional[Decimal] = None
    search: Optional[str] = None
    in_stock: Optional[bool] = None
    page: int = 1
    limit: int = DEFAULT_PAGE_SIZE
    sort_by: str = "createdAt"
    order: str = "desc"

    @staticmethod
    def from_raw(params: Dict[str, Any]):
        data = dict(params or {})
        search = data.get("search")
        search = search.strip() if isinstance(search, str) else None
        sort_by = data.get("sortBy") or "createdAt"
        order = str(data.get("order") or "desc").lower()
        return ProductFilterCommand(
            category_id=data.get("category"),
            min_price=data.get("minPrice"),
            max_price=data.get("maxPrice"),
            search=search or None,
            in_stock=data.get("inStock"),
            page=int(data.get("page") or 1),
            limit=int(data.get("limit") or DEFAULT_PAGE_SIZE),
            sort_by=sort_by if sort_by in SORTABLE_FIELDS else "createdAt",
            order="asc" if order == "asc" else "desc",
        )

    @property
    def ordering(self) -> Tuple[str, ...]:
        column = SORTABLE_FIELDS[self.sort_by]
        prefix = "" if self.order == "asc" else "-"
        # id breaks ties so pages never overlap
        return (f"{prefix}{column}", f"{prefix}id")

    def cache_key_parts(self) -> str:
        return ":".join(
            f"{name}={value}"
            for name, value in (
                ("category", self.category_id),
                ("min", self.min_price),
                ("max", self.max_price),
                ("q", (self.search or "").lower()),
                ("stock", self.in_stock),
                ("page", self.page),
                ("limit", self.limit),
                ("sort", self.sort_by),
                ("order", self.order),
            )
        )


# Category Commands
@dataclass
class CategoryCreateCommand:
    name: str
    description: Optional[str] = None

    @staticmethod
    def from_raw(payload: Dict[str, Any]):
        data = dict(payload or {})
        description = data.get("description")
        return CategoryCreateCommand(
            name=str(data.get("name", "")).strip(),
            description=description.strip() if isinstance(description, str) else None,
        )


@dataclass
class CategoryUpdateCommand:
    category_id: int
    name: Optional[str] = None
    description: Optional[str] = None
    has_description: bool = False

    @staticmethod
    def from_raw(category_id: int, payload: Dict[str, Any]):
        data = dict(payload or {})
        name = data.get("name")
        return CategoryUpdateCommand(
            category_id=category_id,
            name=name.strip() if isinstance(name, str) else None,
            description=data.get("description"),
            has_description="description" in data,
        )
