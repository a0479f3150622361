from fastapi import APIRouter, Request

from inventory_api.core.serialization_helpers import envelope
from inventory_api.models.base import utcnow


router = APIRouter()


@router.get("/health")
def health(request: Request):
    settings = request.app.state.settings
    return envelope(
        {"status": "ok", "environment": settings.env, "timestamp": utcnow()},
        "Inventory API is running",
    )


@router.get("")
def api_info(request: Request):
    return envelope(
        {
            "name": request.app.title,
            "version": request.app.version,
            "endpoints": {
                "auth": "/api/auth",
                "categories": "/api/categories",
                "products": "/api/products",
                "users": "/api/users",
                "dashboard": "/api/dashboard",
                "health": "/api/health",
            },
        }
    )
