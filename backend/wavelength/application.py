from __future__ import annotations

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from wavelength.api.router import api_router
from wavelength.config import settings
from wavelength.runtime import runtime


def create_app() -> FastAPI:
    app = FastAPI(title="Wavelength Backend", version="1.0.0")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(api_router)

    @app.get("/")
    async def root() -> dict[str, object]:
        return {"ok": True, "service": "wavelength-backend"}

    @app.on_event("shutdown")
    async def on_shutdown() -> None:
        await runtime.shutdown()

    return app


app = create_app()
