"""
                        Services Module

Client-side logic behind the storefront and the admin dashboard.
The RPC layer follows the hybrid pattern: a Mock client for development
and an HTTP client for the deployed sheet.

Services:
    - rpc: sheet web app client
    - menu_cache: menu snapshot with a time-to-live
    - cart: persistent cart store
    - checkout: form validation and order submission
    - admin: dashboard CRUD, order status and bills
    - images: image upload strategies
"""

from barf_malai.services.cart import CartStore
from barf_malai.services.menu_cache import MenuCache

__all__ = ["CartStore", "MenuCache"]
