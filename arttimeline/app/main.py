# arttimeline/app/main.py
from __future__ import annotations
import logging
import sys
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from arttimeline.app.config import settings, validate_settings
from arttimeline.app.deps import close_clients
from arttimeline.app.routers.artworks import router as artworks_router
from arttimeline.app.routers.auth import router as auth_router
from arttimeline.app.routers.collection import router as collection_router
from arttimeline.app.routers.met import router as met_router

# Logging no stdout
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)],
)

app = FastAPI(title=f"{settings.APP_NAME} API", version="1.0.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.FRONTEND_CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(artworks_router)
app.include_router(met_router)
app.include_router(collection_router)
app.include_router(auth_router)


@app.on_event("startup")
async def startup() -> None:
    validate_settings(settings)


@app.on_event("shutdown")
async def shutdown() -> None:
    await close_clients()


@app.get("/health")
def health():
    return {"ok": True, "env": settings.APP_ENV}
