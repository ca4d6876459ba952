from .upload import router as upload_router
from .queries import router as queries_router
from .health import router as health_router

__all__ = ["upload_router", "queries_router", "health_router"]
