# standard library
from collections.abc import Awaitable, Callable

# third parties
from fastapi import APIRouter

# relative
from .configurations import Configuration, Dependencies
from .routers import router_items, router_memberships

router = APIRouter(tags=["items"])
router.include_router(router_items)
router.include_router(router_memberships)


def get_router(
    configuration: (
        Configuration | Callable[[], Configuration | Awaitable[Configuration]]
    )
):
    Dependencies.get_configuration = (
        configuration if callable(configuration) else lambda: configuration
    )

    return router
