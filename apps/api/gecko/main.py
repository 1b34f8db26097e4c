from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging

from gecko.core.config import get_settings
from gecko.core.errors import register_error_handlers
from gecko.core.logging_config import setup_logging
from gecko.routers.admin import router as admin_router
from gecko.routers.auth import router as auth_router
from gecko.routers.catalog import router as catalog_router
from gecko.routers.health import router as health_router
from gecko.routers.payments import router as payments_router
from gecko.routers.restore import router as restore_router
from gecko.routers.subscriptions import router as subscriptions_router

settings = get_settings()
setup_logging()
logger = logging.getLogger(__name__)

app = FastAPI(
    title=settings.APP_NAME,
    description="Plan-gated access to shared service sessions, synchronized into the browser by the Gecko extension.",
    version="0.1.0",
)

register_error_handlers(app)


# Global exception handler for unhandled errors
@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Handle unexpected server errors with structured response."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "error": "internal_server_error",
            "message": "An unexpected error occurred. Please try again later.",
            "request_id": request.headers.get("X-Request-ID"),
        }
    )

# The extension calls from a chrome-extension:// origin
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-JWT-Token"],
)

app.include_router(health_router)
app.include_router(auth_router, prefix="/api")
app.include_router(catalog_router, prefix="/api")
app.include_router(restore_router, prefix="/api")
app.include_router(subscriptions_router, prefix="/api")
app.include_router(payments_router, prefix="/api")
app.include_router(admin_router, prefix="/api")


@app.get("/")
def read_root():
    return {
        "message": "Welcome to Gecko Store API",
        "docs": "/docs",
        "health": "/health"
    }
