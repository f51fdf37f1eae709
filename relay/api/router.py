import copy
from typing import List
from fastapi import APIRouter, Depends, FastAPI
from fastapi.routing import APIRoute
from relay.api.endpoints import api_keys, chat, info, music, photos, weather
from relay.config import Settings
from relay.core.api_key import require_api_key
from relay.core.route_policy import RoutePolicy


def with_route_policy(router: APIRouter, prefix: str, policy: RoutePolicy) -> APIRouter:
    """
    Copy of router whose gated routes carry the API key dependency.

    Gating is decided here from the full path (prefix + route path), so
    nothing has to be looked up per request.
    """
    scoped = APIRouter()
    for route in router.routes:
        if isinstance(route, APIRoute) and policy.is_gated(f"{prefix}{route.path}"):
            route = copy.copy(route)
            route.dependencies = [*route.dependencies, Depends(require_api_key)]
        scoped.routes.append(route)
    return scoped


def include_api_routers(app: FastAPI, settings: Settings, policy: RoutePolicy) -> List[str]:
    """
    Register the relay routes of every enabled service.

    Returns the full paths of the registered routes.
    """
    prefix = settings.API_PREFIX
    mounts = [
        (info.router, prefix, "info"),
        (api_keys.router, prefix, "api-keys"),
    ]
    if settings.is_enabled("music"):
        mounts.append((music.router, f"{prefix}/music", "music"))
    if settings.is_enabled("photos"):
        mounts.append((photos.router, prefix, "photos"))
    if settings.is_enabled("weather"):
        mounts.append((weather.router, prefix, "weather"))
    if settings.is_enabled("chat"):
        mounts.append((chat.router, f"{prefix}/tina", "tina"))

    registered = []
    for router, router_prefix, tag in mounts:
        app.include_router(with_route_policy(router, router_prefix, policy), prefix=router_prefix, tags=[tag])
        registered.extend(
            f"{router_prefix}{route.path}" for route in router.routes if isinstance(route, APIRoute)
        )
    return registered
