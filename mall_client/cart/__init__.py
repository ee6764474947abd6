"""Cart package: models, storage, and store."""
from .models import CartItem, CartSnapshot, CartSpec, normalize_specs
from .service import CartStore

__all__ = [
    "CartItem",
    "CartSnapshot",
    "CartSpec",
    "CartStore",
    "normalize_specs",
]
