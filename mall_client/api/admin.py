"""Admin console endpoints: login, orders, users, catalog management."""
from decimal import Decimal
from typing import Any, List, Optional, Sequence

from mall_client.auth.models import LoginResult, UserProfile
from mall_client.models import (
    Category,
    CategoryQuery,
    Order,
    OrderQuery,
    OrderStatistics,
    Page,
    Product,
    ProductQuery,
    UserListItem,
    UserQuery,
)
from mall_client.services.money import to_decimal
from mall_client.services.request import RequestPipeline


class AdminApi:
    def __init__(self, pipeline: RequestPipeline):
        self._pipeline = pipeline

    # ------------------------------------------------------------------
    # Auth
    # ------------------------------------------------------------------

    async def login(self, username: str, password: str) -> LoginResult:
        data = await self._pipeline.post(
            "/auth/login/password", json={"username": username, "password": password}
        )
        return LoginResult.model_validate(data)

    async def get_user_info(self) -> UserProfile:
        data = await self._pipeline.get("/user/info")
        return UserProfile.model_validate(data)

    async def logout(self) -> None:
        await self._pipeline.post("/auth/logout")

    # ------------------------------------------------------------------
    # Orders
    # ------------------------------------------------------------------

    async def list_orders(self, query: Optional[OrderQuery] = None) -> Page[Order]:
        params = query.to_params() if query else None
        data = await self._pipeline.get("/admin/orders", params=params)
        return Page[Order].model_validate(data or {})

    async def get_order(self, order_id: int) -> Order:
        data = await self._pipeline.get(f"/admin/orders/{order_id}")
        return Order.model_validate(data)

    async def update_order_status(self, order_id: int, status: int) -> None:
        await self._pipeline.patch(f"/admin/orders/{order_id}/status", json={"status": status})

    async def update_payment_status(self, order_id: int, payment_status: int) -> None:
        await self._pipeline.patch(
            f"/admin/orders/{order_id}/payment-status", json={"payment_status": payment_status}
        )

    async def batch_update_order_status(self, order_ids: Sequence[int], status: int) -> None:
        await self._pipeline.patch(
            "/admin/orders/batch/status", json={"ids": list(order_ids), "status": status}
        )

    async def cancel_order(self, order_id: int, reason: Optional[str] = None) -> None:
        await self._pipeline.patch(f"/admin/orders/{order_id}/cancel", json={"reason": reason})

    async def ship_order(self, order_id: int, tracking_no: str, shipping_company: str) -> None:
        await self._pipeline.patch(
            f"/admin/orders/{order_id}/ship",
            json={"tracking_no": tracking_no, "shipping_company": shipping_company},
        )

    async def confirm_order(self, order_id: int) -> None:
        await self._pipeline.patch(f"/admin/orders/{order_id}/confirm")

    async def refund_order(self, order_id: int, amount, reason: str) -> None:
        await self._pipeline.post(
            f"/admin/orders/{order_id}/refund",
            json={"amount": str(to_decimal(amount)), "reason": reason},
        )

    async def order_statistics(self) -> OrderStatistics:
        data = await self._pipeline.get("/admin/orders/statistics")
        return OrderStatistics.model_validate(data or {})

    async def export_orders(self, query: Optional[OrderQuery] = None) -> bytes:
        """Order export file (spreadsheet bytes as produced by the server)."""
        params = query.to_params() if query else None
        return await self._pipeline.download("/admin/orders/export", params=params)

    # ------------------------------------------------------------------
    # Users
    # ------------------------------------------------------------------

    async def list_users(self, query: Optional[UserQuery] = None) -> Page[UserListItem]:
        params = query.to_params() if query else None
        data = await self._pipeline.get("/admin/users", params=params)
        return Page[UserListItem].model_validate(data or {})

    async def get_user(self, user_id: int) -> UserProfile:
        data = await self._pipeline.get(f"/admin/users/{user_id}")
        return UserProfile.model_validate(data)

    async def update_user_status(self, user_id: int, status: int) -> None:
        await self._pipeline.put(f"/admin/users/{user_id}/status", json={"status": status})

    async def delete_user(self, user_id: int) -> None:
        await self._pipeline.delete(f"/admin/users/{user_id}")

    async def reset_user_password(self, user_id: int, password: str) -> None:
        await self._pipeline.put(f"/admin/users/{user_id}/password", json={"password": password})

    # ------------------------------------------------------------------
    # Categories
    # ------------------------------------------------------------------

    async def list_categories(self, query: Optional[CategoryQuery] = None) -> List[Category]:
        params = query.to_params() if query else None
        data = await self._pipeline.get("/admin/categories", params=params)
        return [Category.model_validate(c) for c in data or []]

    async def category_tree(self) -> List[Category]:
        data = await self._pipeline.get("/admin/categories/tree")
        return [Category.model_validate(c) for c in data or []]

    async def create_category(self, **fields: Any) -> Optional[Category]:
        data = await self._pipeline.post("/admin/categories", json=fields)
        return Category.model_validate(data) if data else None

    async def update_category(self, category_id: int, **fields: Any) -> None:
        await self._pipeline.put(f"/admin/categories/{category_id}", json=fields)

    async def delete_category(self, category_id: int) -> None:
        await self._pipeline.delete(f"/admin/categories/{category_id}")

    async def update_category_status(self, category_id: int, status: int) -> None:
        await self._pipeline.patch(f"/admin/categories/{category_id}/status", json={"status": status})

    # ------------------------------------------------------------------
    # Products
    # ------------------------------------------------------------------

    async def list_products(self, query: Optional[ProductQuery] = None) -> Page[Product]:
        params = query.to_params() if query else None
        data = await self._pipeline.get("/admin/products", params=params)
        return Page[Product].model_validate(data or {})

    async def get_product(self, product_id: int) -> Product:
        data = await self._pipeline.get(f"/admin/products/{product_id}")
        return Product.model_validate(data)

    async def create_product(self, **fields: Any) -> Optional[Product]:
        data = await self._pipeline.post("/admin/products", json=_jsonable(fields))
        return Product.model_validate(data) if data else None

    async def update_product(self, product_id: int, **fields: Any) -> None:
        await self._pipeline.put(f"/admin/products/{product_id}", json=_jsonable(fields))

    async def delete_product(self, product_id: int) -> None:
        await self._pipeline.delete(f"/admin/products/{product_id}")

    async def update_product_status(self, product_id: int, status: int) -> None:
        await self._pipeline.patch(f"/admin/products/{product_id}/status", json={"status": status})

    async def batch_update_product_status(self, product_ids: Sequence[int], status: int) -> None:
        await self._pipeline.patch(
            "/admin/products/batch/status", json={"ids": list(product_ids), "status": status}
        )

    async def batch_delete_products(self, product_ids: Sequence[int]) -> None:
        await self._pipeline.delete("/admin/products/batch", json={"ids": list(product_ids)})

    async def upload_image(self, filename: str, content: bytes) -> str:
        """Upload a catalog image; returns its URL."""
        data = await self._pipeline.post("/admin/upload/image", files={"file": (filename, content)})
        return (data or {}).get("url", "")


def _jsonable(fields: dict) -> dict:
    # Decimal is not JSON serializable
    return {key: str(value) if isinstance(value, Decimal) else value for key, value in fields.items()}
