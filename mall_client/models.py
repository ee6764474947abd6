"""API Models - Pydantic models for catalog and order payloads."""
from decimal import Decimal
from typing import Generic, List, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field, field_validator

from mall_client.services.money import to_decimal as _to_decimal

T = TypeVar("T")


class _ApiModel(BaseModel):
    model_config = ConfigDict(extra="ignore")  # tolerate new server fields


class _QueryModel(_ApiModel):
    def to_params(self) -> dict:
        """Query-string params with unset filters dropped."""
        params = {}
        for key, value in self.model_dump(exclude_none=True).items():
            if isinstance(value, bool):
                value = "true" if value else "false"
            elif isinstance(value, Decimal):
                value = str(value)
            params[key] = value
        return params


class Page(_ApiModel, Generic[T]):
    """Paginated list payload."""
    items: List[T] = Field(default_factory=list)
    total: int = 0
    page: int = 1
    page_size: int = 0
    total_pages: int = 0


class ProductSpec(_ApiModel):
    name: str
    value: str


class ProductAttribute(_ApiModel):
    name: str
    value: str


class Product(_ApiModel):
    """Product model."""
    id: int
    name: str
    category_id: Optional[int] = None
    category_name: Optional[str] = None
    sku: str = ""
    price: Decimal = Decimal("0")
    original_price: Decimal = Decimal("0")
    stock: int = 0
    sales: int = 0
    images: List[str] = Field(default_factory=list)
    description: str = ""
    specs: List[ProductSpec] = Field(default_factory=list)
    attributes: List[ProductAttribute] = Field(default_factory=list)
    status: int = 1
    is_featured: bool = False
    is_new: bool = False
    weight: Optional[float] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @field_validator("price", "original_price", mode="before")
    @classmethod
    def convert_to_decimal(cls, v):
        return _to_decimal(v)

    @property
    def cover_image(self) -> str:
        return self.images[0] if self.images else ""


class Category(_ApiModel):
    """Category model; children are filled for the tree endpoint."""
    id: int
    name: str
    parent_id: int = 0
    level: int = 1
    sort: int = 0
    icon: Optional[str] = None
    description: Optional[str] = None
    status: int = 1
    children: List["Category"] = Field(default_factory=list)


class Banner(_ApiModel):
    id: int
    image: str
    title: Optional[str] = None
    link: Optional[str] = None
    sort: int = 0


class ProductQuery(_QueryModel):
    """Filters accepted by the product list and search endpoints."""
    page: Optional[int] = None
    page_size: Optional[int] = None
    keyword: Optional[str] = None
    category_id: Optional[int] = None
    price_min: Optional[Decimal] = None
    price_max: Optional[Decimal] = None
    sort: Optional[str] = None  # sales | price_asc | price_desc | newest
    is_featured: Optional[bool] = None
    is_new: Optional[bool] = None
    status: Optional[int] = None  # admin listing only


class CategoryQuery(_QueryModel):
    parent_id: Optional[int] = None
    level: Optional[int] = None
    status: Optional[int] = None


class ShippingAddress(_ApiModel):
    name: str
    phone: str
    province: str
    city: str
    district: str
    address: str
    postcode: Optional[str] = None


class OrderItem(_ApiModel):
    id: int
    order_id: int
    product_id: int
    product_name: str
    product_image: str = ""
    sku: str = ""
    price: Decimal = Decimal("0")
    quantity: int = 1
    total_amount: Decimal = Decimal("0")

    @field_validator("price", "total_amount", mode="before")
    @classmethod
    def convert_to_decimal(cls, v):
        return _to_decimal(v)


class Order(_ApiModel):
    """Order model as returned by the admin endpoints."""
    id: int
    order_no: str
    user_id: int
    user_name: Optional[str] = None
    user_phone: Optional[str] = None
    total_amount: Decimal = Decimal("0")
    discount_amount: Decimal = Decimal("0")
    final_amount: Decimal = Decimal("0")
    status: int = 0
    payment_status: int = 0
    payment_method: Optional[str] = None
    payment_time: Optional[str] = None
    shipping_address: Optional[ShippingAddress] = None
    items: List[OrderItem] = Field(default_factory=list)
    created_at: Optional[str] = None
    updated_at: Optional[str] = None

    @field_validator("total_amount", "discount_amount", "final_amount", mode="before")
    @classmethod
    def convert_to_decimal(cls, v):
        return _to_decimal(v)


class OrderQuery(_QueryModel):
    page: Optional[int] = None
    page_size: Optional[int] = None
    order_no: Optional[str] = None
    user_phone: Optional[str] = None
    status: Optional[int] = None
    payment_status: Optional[int] = None
    payment_method: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None


class OrderStatistics(_ApiModel):
    total_orders: int = 0
    pending_orders: int = 0
    processing_orders: int = 0
    completed_orders: int = 0
    total_amount: Decimal = Decimal("0")
    today_orders: int = 0
    today_amount: Decimal = Decimal("0")

    @field_validator("total_amount", "today_amount", mode="before")
    @classmethod
    def convert_to_decimal(cls, v):
        return _to_decimal(v)


class UserListItem(_ApiModel):
    """Row of the admin user list."""
    id: int
    username: Optional[str] = None
    phone: Optional[str] = None
    nickname: Optional[str] = None
    status: int = 1
    created_at: Optional[str] = None


class UserQuery(_QueryModel):
    page: Optional[int] = None
    page_size: Optional[int] = None
    keyword: Optional[str] = None
    status: Optional[int] = None
