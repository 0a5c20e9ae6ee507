"""Routes and the session guard.

A route is ``<group>/<screen>``; the group decides whether a signed-in user
belongs there.
"""
from typing import Optional

AUTH_GROUP = "auth"
TABS_GROUP = "tabs"

LOGIN = "auth/login"
REGISTER = "auth/register"
ONBOARDING = "auth/onboarding"
HOME = "tabs/home"

TAB_ROUTES = (
    "tabs/home",
    "tabs/wallet",
    "tabs/market",
    "tabs/housing",
    "tabs/library",
    "tabs/voting",
    "tabs/messages",
    "tabs/settings",
)


def segments(route: str) -> list:
    return [s for s in route.strip("/").split("/") if s]


def route_group(route: str) -> str:
    parts = segments(route)
    return parts[0] if parts else ""


def resolve_redirect(
    authenticated: bool,
    route: str,
    is_loading: bool = False,
    has_seen_onboarding: bool = False,
) -> Optional[str]:
    """Return where the user must be sent, or None to stay on ``route``."""
    if is_loading:
        return None

    in_auth_group = route_group(route) == AUTH_GROUP
    if not authenticated:
        if not in_auth_group:
            return LOGIN if has_seen_onboarding else ONBOARDING
        if route == ONBOARDING and has_seen_onboarding:
            return LOGIN
        return None

    if in_auth_group:
        return HOME
    return None
