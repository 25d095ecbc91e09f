"""FastAPI application."""

from fastapi import FastAPI

from kitasuro.app.api.routes.comments import router as comments_router
from kitasuro.app.api.routes.health import router as health_router
from kitasuro.app.api.routes.metrics import router as metrics_router
from kitasuro.app.api.routes.organization import router as organization_router
from kitasuro.app.api.routes.proposals import router as proposals_router
from kitasuro.app.api.routes.tours import router as tours_router

app = FastAPI(title="Kitasuro API", version="0.1.0")

# Register routes
app.include_router(health_router, tags=["health"])
app.include_router(metrics_router, tags=["metrics"])
app.include_router(comments_router)
app.include_router(proposals_router)
app.include_router(tours_router)
app.include_router(organization_router)


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {"message": "Kitasuro API", "version": "0.1.0"}
