"""Storage access for cart."""
from mall_client.storage import KeyValueStorage, StorageKeys

__all__ = ["KeyValueStorage", "StorageKeys"]
