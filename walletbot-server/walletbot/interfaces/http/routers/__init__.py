from fastapi import APIRouter

from . import conversations, parties, webhooks


def create_api_router(prefix: str = "") -> APIRouter:
    router = APIRouter(prefix=prefix)
    router.include_router(webhooks.router, prefix="/webhooks", tags=["webhooks"])
    router.include_router(parties.router, prefix="/parties", tags=["parties"])
    router.include_router(conversations.router)
    return router


__all__ = [
    "create_api_router",
]
