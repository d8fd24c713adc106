"""
Storefront Views

Pure functions from ``AppState`` to view models: category strip, product
grid and cart panel. They read state and never change it.
"""

from typing import List, Optional

from pydantic import BaseModel

from barf_malai.schemas import ProductTypeEnum
from barf_malai.state import ALL_CATEGORIES, AppState

EMPTY_CATEGORY_MESSAGE = "No products found in this category."
EMPTY_CART_MESSAGE = "Your cart is empty"


class CategoryCard(BaseModel):
    name: str
    label: str
    image_url: Optional[str] = None
    active: bool = False


class ProductCard(BaseModel):
    id: int
    name: str
    price: float
    price_label: str
    category: str
    badge: str
    image: str
    description: str


class ProductGrid(BaseModel):
    category: str
    products: List[ProductCard]
    empty_message: Optional[str] = None


class CartLine(BaseModel):
    id: int
    name: str
    image: str
    price: float
    quantity: int
    line_total: float
    summary: str


class CartPanel(BaseModel):
    open: bool
    lines: List[CartLine]
    total_items: int
    total_amount: float
    checkout_enabled: bool
    empty_message: Optional[str] = None


class NoticeView(BaseModel):
    message: str
    level: str


class StorefrontView(BaseModel):
    restaurant_name: str
    loading: bool
    error: Optional[str] = None
    categories: List[CategoryCard]
    grid: ProductGrid
    cart: CartPanel
    notice: Optional[NoticeView] = None


def _money(state: AppState, amount: float) -> str:
    value = int(amount) if float(amount).is_integer() else round(amount, 2)
    return f"{state.settings.currency_symbol}{value}"


def render_categories(state: AppState) -> List[CategoryCard]:
    cards = [CategoryCard(
        name=ALL_CATEGORIES,
        label="All Items",
        active=state.current_category == ALL_CATEGORIES,
    )]
    for category in state.categories:
        cards.append(CategoryCard(
            name=category.name,
            label=category.name,
            image_url=category.image_url or None,
            active=state.current_category == category.name,
        ))
    return cards


def render_products(state: AppState) -> ProductGrid:
    products = state.visible_products()
    cards = [
        ProductCard(
            id=p.id,
            name=p.name,
            price=p.price,
            price_label=_money(state, p.price),
            category=p.category,
            badge="Veg" if p.type == ProductTypeEnum.VEG else "Non-Veg",
            image=p.image,
            description=p.description,
        )
        for p in products
    ]
    return ProductGrid(
        category=state.current_category,
        products=cards,
        empty_message=None if cards else EMPTY_CATEGORY_MESSAGE,
    )


def render_cart(state: AppState) -> CartPanel:
    cart = state.cart
    lines = [
        CartLine(
            id=item.id,
            name=item.name,
            image=item.image,
            price=item.price,
            quantity=item.quantity,
            line_total=item.line_total,
            summary=(
                f"{_money(state, item.price)} × {item.quantity} = "
                f"{_money(state, item.line_total)}"
            ),
        )
        for item in cart.items
    ]
    total_items = cart.total_items()
    return CartPanel(
        open=state.cart_open,
        lines=lines,
        total_items=total_items,
        total_amount=cart.total_amount(),
        checkout_enabled=total_items > 0,
        empty_message=None if lines else EMPTY_CART_MESSAGE,
    )


def render_storefront(state: AppState) -> StorefrontView:
    notice = state.last_notice
    return StorefrontView(
        restaurant_name=state.settings.restaurant_name,
        loading=not state.menu_loaded,
        error=state.menu_error,
        categories=render_categories(state),
        grid=render_products(state),
        cart=render_cart(state),
        notice=NoticeView(message=notice.message, level=notice.level) if notice else None,
    )
