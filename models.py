from __future__ import annotations
from typing import Optional, List, Dict, Any
from pydantic import BaseModel, Field, EmailStr, ConfigDict

# ----------------------------
# Carrito
# ----------------------------

class ProductSummary(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    name: str = ""
    basePrice: float = 0.0
    imageUrls: List[str] = Field(default_factory=list)


class ColorRef(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int = 1
    name: str = ""


class CartItem(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    product: ProductSummary
    color: ColorRef = Field(default_factory=ColorRef)
    qty: int = Field(gt=0)

    @property
    def line_total(self) -> float:
        return self.product.basePrice * self.qty


# ----------------------------
# Wishlist
# ----------------------------

class WishlistProduct(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    name: str = ""
    basePrice: float = 0.0
    imageUrls: List[str] = Field(default_factory=list)
    description: Optional[str] = None
    category: Optional[str] = None


class UserRef(BaseModel):
    # el backend usa ids tipo "user_xxxx" o numéricos según el flujo de alta
    id: Optional[str] = None


class WishlistItem(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: int
    product: WishlistProduct
    user: UserRef = Field(default_factory=UserRef)


# ----------------------------
# Checkout / perfil
# ----------------------------

class ShippingDetails(BaseModel):
    """Datos del formulario de envío que viajan como metadata a Stripe."""
    model_config = ConfigDict(extra="ignore")

    firstName: str
    lastName: str
    email: EmailStr
    phone: str = ""
    address: str = ""
    province: str = ""
    city: str = ""
    postalCode: str = ""
    note: str = ""


class AddressData(BaseModel):
    model_config = ConfigDict(extra="ignore")

    line1: str = ""
    line2: str = ""
    postal_code: str = ""
    phone: str = ""
    city_name: str = ""
    province_name: str = ""


class CartSnapshot(BaseModel):
    """Lo que el checkout manda al servidor: items + total calculado."""
    items: List[CartItem] = Field(default_factory=list)
    totalPrice: float = 0.0
    count: int = 0

    @classmethod
    def from_items(cls, items: List[CartItem]) -> "CartSnapshot":
        return cls(
            items=list(items),
            totalPrice=cart_total(items),
            count=cart_count(items),
        )


def cart_count(items: List[CartItem]) -> int:
    return sum(it.qty for it in items)


def cart_total(items: List[CartItem]) -> float:
    return sum(it.product.basePrice * it.qty for it in items)


def dump_items(items: List[BaseModel]) -> List[Dict[str, Any]]:
    return [it.model_dump() for it in items]
