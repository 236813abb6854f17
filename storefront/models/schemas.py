from __future__ import annotations

from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, ValidationInfo, field_validator


def _reference_id(value: Any) -> Any:
    # Populated references come back as documents; keep their identifier only.
    if isinstance(value, dict):
        return value.get("_id") or value.get("id") or ""
    return value


class CartEntry(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str = Field(default="", validation_alias=AliasChoices("id", "_id"))
    productId: str
    name: str = ""
    price: float = 0
    image: str = ""
    quantity: int = Field(default=1, ge=1)
    color: str | None = None
    size: str | None = None

    @field_validator("productId", mode="before")
    @classmethod
    def product_reference(cls, value: Any) -> Any:
        return _reference_id(value)

    @property
    def variant_key(self) -> tuple[str, str | None, str | None]:
        return (self.productId, self.color, self.size)

    def line_total(self) -> float:
        return round(self.price * self.quantity, 2)


class WishlistEntry(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    id: str = Field(default="", validation_alias=AliasChoices("id", "_id"))
    product: str
    name: str = ""
    price: float = 0
    image: str = ""
    category: str = ""

    @field_validator("product", mode="before")
    @classmethod
    def product_reference(cls, value: Any) -> Any:
        return _reference_id(value)


class CartSummary(BaseModel):
    subtotal: float
    itemCount: int
    shipping: float = 0
    total: float


class LoginRequest(BaseModel):
    email: str
    password: str


class RegisterRequest(BaseModel):
    name: str = Field(min_length=1)
    email: str
    password: str = Field(min_length=1)


class TokenResponse(BaseModel):
    model_config = ConfigDict(extra="ignore")

    token: str


class Identity(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str = Field(default="", validation_alias=AliasChoices("id", "_id"))
    name: str = ""
    email: str = ""
    isAdmin: bool = False

    @field_validator("isAdmin", mode="before")
    @classmethod
    def admin_flag(cls, value: Any) -> bool:
        return bool(value)


class ProductColor(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str
    hex: str | None = None


class ProductSize(BaseModel):
    model_config = ConfigDict(extra="allow")

    value: str
    inStock: bool = True


class Product(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str = Field(validation_alias=AliasChoices("id", "_id"))
    name: str
    price: float
    description: str = ""
    category: str = ""
    images: list[str] = Field(default_factory=list)
    colors: list[ProductColor] = Field(default_factory=list)
    sizes: list[ProductSize] = Field(default_factory=list)
    features: list[str] = Field(default_factory=list)
    specifications: dict[str, Any] = Field(default_factory=dict)
    originalPrice: float | None = None
    discount: float | None = None
    sku: str | None = None
    availability: str | None = None

    @field_validator("colors", "sizes", "features", "images", mode="before")
    @classmethod
    def list_or_empty(cls, value: Any) -> Any:
        return value if isinstance(value, list) else []

    @field_validator("specifications", "description", mode="before")
    @classmethod
    def none_to_empty(cls, value: Any, info: ValidationInfo) -> Any:
        if value is None:
            return {} if info.field_name == "specifications" else ""
        return value


class ProductPage(BaseModel):
    products: list[Product]
    total: int
    page: int
    hasMore: bool


class ProductWriteRequest(BaseModel):
    name: str = Field(min_length=1)
    price: float = Field(gt=0)
    description: str = ""
    category: str = Field(min_length=1)
    sku: str = Field(min_length=1)
    availability: str = "in_stock"
    originalPrice: float | None = Field(default=None, gt=0)
    discount: float | None = Field(default=None, ge=0, le=100)
    colors: list[ProductColor] = Field(default_factory=list)
    sizes: list[ProductSize] = Field(default_factory=list)
    features: list[str] = Field(default_factory=list)
    specifications: dict[str, Any] = Field(default_factory=dict)
    existingImages: list[str] = Field(default_factory=list)


class OrderItem(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str | None = Field(default=None, validation_alias=AliasChoices("id", "_id"))
    product: str | None = None
    quantity: int
    price: float | None = None
    color: str | None = None
    size: str | None = None
    name: str | None = None

    @field_validator("product", mode="before")
    @classmethod
    def product_reference(cls, value: Any) -> Any:
        return _reference_id(value)


class Order(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str = Field(validation_alias=AliasChoices("id", "_id"))
    orderId: str | None = None
    items: list[OrderItem] = Field(default_factory=list)
    total: float = 0
    shippingCost: float = 0
    status: str = ""


class TrackingInfo(BaseModel):
    model_config = ConfigDict(extra="allow")

    orderId: str
    status: str = ""
    trackingUrl: str | None = None
    events: list[dict[str, Any]] = Field(default_factory=list)


EMAIL_PATTERN = r"^[^\s@]+@[^\s@]+\.[^\s@]+$"
PHONE_PATTERN = r"^\+?\d{10,15}$"


class Address(BaseModel):
    model_config = ConfigDict(extra="allow", populate_by_name=True)

    id: str = Field(default="", validation_alias=AliasChoices("id", "_id"))
    name: str = ""
    street: str = ""
    city: str = ""
    state: str = ""
    country: str = ""
    phone: str = ""
    pincode: str | None = None
    isDefault: bool = False

    @field_validator("pincode", mode="before")
    @classmethod
    def pincode_text(cls, value: Any) -> Any:
        return str(value) if isinstance(value, int) else value


class AddressRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1)
    street: str = Field(min_length=1)
    city: str = Field(min_length=1)
    state: str = Field(min_length=1)
    country: str = Field(min_length=1)
    phone: str = Field(pattern=PHONE_PATTERN)
    pincode: str | None = None
    isDefault: bool = False


class ProfileUpdateRequest(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str
    email: str = Field(pattern=EMAIL_PATTERN)


class ChangePasswordRequest(BaseModel):
    currentPassword: str
    newPassword: str = Field(min_length=8)
