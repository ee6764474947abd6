"""Typed wrappers over the mall REST API."""
from .admin import AdminApi
from .products import ProductApi
from .users import UserApi

__all__ = ["AdminApi", "ProductApi", "UserApi"]
