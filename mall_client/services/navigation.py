"""Navigation collaborators invoked by the authentication-failure cascade."""
from typing import Callable, Protocol

from mall_client.logging import get_logger

logger = get_logger(__name__)


class Navigator(Protocol):
    """Anything able to send the user to the login surface."""

    def redirect_to_login(self) -> None: ...


class CallbackNavigator:
    """Adapts a plain callable (router push, window switch, ...)."""

    def __init__(self, callback: Callable[[], None]):
        self._callback = callback

    def redirect_to_login(self) -> None:
        self._callback()


class NullNavigator:
    """Headless clients (scripts, tests) have nowhere to navigate."""

    def redirect_to_login(self) -> None:
        logger.info("Login required")
