"""
Mall Client

Client-side state engine shared by the storefront, mini-program and admin
console:
- cart: persisted cart lines with merge/clamp rules
- auth: session store (token + cached profile) and login flows
- services.request: authenticated request pipeline with error classification
- api: typed wrappers over the REST endpoints
- client: MallClient, which wires all of the above

Note: Imports are lazy so that importing a submodule does not pull in httpx.
"""

__all__ = [
    "MallClient",
    "Settings",
    "CartStore",
    "SessionStore",
    "RequestPipeline",
]


def __getattr__(name):
    """Lazy attribute access."""
    if name == "MallClient":
        from mall_client.client import MallClient
        return MallClient
    if name == "Settings":
        from mall_client.config import Settings
        return Settings
    if name == "CartStore":
        from mall_client.cart import CartStore
        return CartStore
    if name == "SessionStore":
        from mall_client.auth.session import SessionStore
        return SessionStore
    if name == "RequestPipeline":
        from mall_client.services.request import RequestPipeline
        return RequestPipeline
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
