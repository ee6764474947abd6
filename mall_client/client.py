"""Assembles storage, stores, request pipeline and API wrappers."""
from dataclasses import dataclass
from typing import Optional

import httpx

from mall_client.api import AdminApi, ProductApi, UserApi
from mall_client.auth.service import AuthService
from mall_client.auth.session import SessionStore
from mall_client.cart import CartStore
from mall_client.config import Settings
from mall_client.logging import get_logger
from mall_client.services.navigation import Navigator
from mall_client.services.request import RequestPipeline
from mall_client.storage import KeyValueStorage, StorageKeys, create_storage

logger = get_logger(__name__)


@dataclass
class MallClient:
    """
    One client surface (storefront, mini-program or admin console).

    Usage:
        async with MallClient.create(navigator=CallbackNavigator(go_login)) as mall:
            await mall.auth.restore()
            mall.cart.add_item(...)
    """
    settings: Settings
    storage: KeyValueStorage
    cart: CartStore
    session: SessionStore
    pipeline: RequestPipeline
    users: UserApi
    products: ProductApi
    admin: AdminApi
    auth: AuthService

    @classmethod
    def create(
        cls,
        settings: Optional[Settings] = None,
        *,
        storage: Optional[KeyValueStorage] = None,
        navigator: Optional[Navigator] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        admin: bool = False,
    ) -> "MallClient":
        """
        Build a client with state restored from storage.

        Args:
            settings: Defaults to Settings.from_env()
            storage: Defaults to file storage at settings.storage_path, else memory
            navigator: Called after an authentication failure clears the session
            http_client: Pre-configured httpx client (tests, proxies)
            admin: Use the admin endpoints for profile and logout flows
        """
        settings = settings or Settings.from_env()
        storage = storage if storage is not None else create_storage(settings.storage_path)
        keys = StorageKeys(namespace=settings.storage_namespace)

        cart = CartStore(storage, keys)
        session = SessionStore(storage, keys)
        pipeline = RequestPipeline(session, navigator, settings, client=http_client)
        users = UserApi(pipeline)
        admin_api = AdminApi(pipeline)
        auth = AuthService(session, users, admin_api if admin else None)

        logger.info(
            "Client ready: base_url=%s cart_lines=%d logged_in=%s",
            settings.base_url,
            len(cart),
            session.is_logged_in,
        )
        return cls(
            settings=settings,
            storage=storage,
            cart=cart,
            session=session,
            pipeline=pipeline,
            users=users,
            products=ProductApi(pipeline),
            admin=admin_api,
            auth=auth,
        )

    async def aclose(self) -> None:
        await self.pipeline.aclose()

    async def __aenter__(self) -> "MallClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
