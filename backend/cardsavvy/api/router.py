from fastapi import APIRouter

from cardsavvy.api.v1 import auth, catalog, chat, health

api_router = APIRouter(prefix="/api")

api_router.include_router(health.router, tags=["Health"])
api_router.include_router(auth.router, prefix="/auth", tags=["Auth"])
api_router.include_router(catalog.router, tags=["Catalog"])
api_router.include_router(chat.router, prefix="/chat", tags=["Chat"])
