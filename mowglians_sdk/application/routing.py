"""Route table mapping paths to views, gated on session state."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict

from .session import SessionManager


class Access(str, Enum):
    """Who may open a route."""

    PUBLIC = "public"
    AUTHENTICATED = "authenticated"
    ADMIN = "admin"


class Route(BaseModel):
    """A path bound to a view."""

    model_config = ConfigDict(frozen=True)

    path: str
    view: str
    access: Access = Access.PUBLIC


class RouteDecision(BaseModel):
    """Outcome of resolving a path.

    Exactly one of ``view`` and ``redirect_to`` is set unless ``loading`` is
    true, in which case the caller should wait for the session to resolve.
    """

    model_config = ConfigDict(frozen=True)

    view: str | None = None
    redirect_to: str | None = None
    loading: bool = False


NOT_FOUND_VIEW = "not-found"

DEFAULT_ROUTES = (
    Route(path="/", view="index"),
    Route(path="/auth", view="auth"),
    Route(path="/adopt", view="adopt"),
    Route(path="/fundraising", view="fundraising"),
    Route(path="/profile", view="profile", access=Access.AUTHENTICATED),
    Route(path="/admin", view="admin", access=Access.ADMIN),
)


class RouteTable:
    """Resolves paths against the current session."""

    def __init__(self, session: SessionManager, routes: tuple[Route, ...] = DEFAULT_ROUTES):
        self._session = session
        self._routes = {route.path: route for route in routes}

    @property
    def routes(self) -> list[Route]:
        """Registered routes."""
        return list(self._routes.values())

    @staticmethod
    def _normalize(path: str) -> str:
        path = path.split("?", 1)[0].split("#", 1)[0] or "/"
        if len(path) > 1:
            path = path.rstrip("/")
        return path

    async def resolve(self, path: str) -> RouteDecision:
        """Resolve a path to a view or a redirect.

        Anonymous visitors of signed-in pages are sent to ``/auth``; signed-in
        users without the admin role are sent from ``/admin`` to ``/profile``.
        """
        route = self._routes.get(self._normalize(path))
        if route is None:
            return RouteDecision(view=NOT_FOUND_VIEW)
        if route.access == Access.PUBLIC:
            return RouteDecision(view=route.view)

        session = self._session.session
        if session.loading:
            return RouteDecision(loading=True)
        if not session.is_authenticated:
            return RouteDecision(redirect_to="/auth")
        if route.access == Access.ADMIN and not await self._session.is_admin():
            return RouteDecision(redirect_to="/profile")
        return RouteDecision(view=route.view)
