"""Sign-in redirect performed when a session is lost for good."""

from __future__ import annotations

from albumctl.core.logging import get_logger

logger = get_logger(__name__)

SIGN_IN_ROUTE = "/login"


class Navigator:
    """Tracks the current route and performs the hard redirect to sign-in."""

    def __init__(self, current_route: str = "/", sign_in_route: str = SIGN_IN_ROUTE):
        self.current_route = current_route
        self.sign_in_route = sign_in_route
        self.history: list[str] = []

    @property
    def on_sign_in(self) -> bool:
        return self.sign_in_route in self.current_route

    def navigate(self, route: str) -> None:
        self.history.append(route)
        self.current_route = route

    def redirect_to_sign_in(self) -> bool:
        """Go to the sign-in route unless already there.

        Returns:
            True if a navigation happened.
        """
        if self.on_sign_in:
            return False
        logger.info("Session lost, redirecting to %s", self.sign_in_route)
        self.navigate(self.sign_in_route)
        return True
