"""
FastAPI application entry point
"""
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import logging
import traceback
from .config import settings
from .database import SessionLocal, init_db
from .errors import OnniBoxError
from .logging_config import configure_logging
from .api import (
    auth, users, registries, route_cash, agency_cash, fuel, expenses,
    tourism, ledger, closing, audit, reports, backup, health,
)
from .services.seed import create_admin_user, seed_demo_data

configure_logging()

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"

# Create the application
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    debug=settings.DEBUG
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routers
app.include_router(health.router, prefix=API_PREFIX, tags=["Health"])
app.include_router(auth.router, prefix=f"{API_PREFIX}/auth", tags=["Authentication"])
app.include_router(users.router, prefix=f"{API_PREFIX}/users", tags=["Users"])
for path, registry_router, tag in registries.REGISTRY_ROUTERS:
    app.include_router(registry_router, prefix=f"{API_PREFIX}{path}", tags=[tag])
app.include_router(route_cash.router, prefix=f"{API_PREFIX}/route-cash", tags=["Route cash"])
app.include_router(agency_cash.router, prefix=f"{API_PREFIX}/agency-cash", tags=["Agency cash"])
app.include_router(fuel.router, prefix=f"{API_PREFIX}/fuel", tags=["Fuel"])
app.include_router(expenses.router, prefix=f"{API_PREFIX}/expenses", tags=["General expenses"])
app.include_router(tourism.router, prefix=f"{API_PREFIX}/tourism", tags=["Tourism"])
app.include_router(ledger.router, prefix=f"{API_PREFIX}/ledger", tags=["Driver ledger"])
app.include_router(closing.router, prefix=f"{API_PREFIX}/closing", tags=["Daily closing"])
app.include_router(audit.router, prefix=f"{API_PREFIX}/audit", tags=["Audit"])
app.include_router(reports.router, prefix=API_PREFIX, tags=["Reports"])
app.include_router(backup.router, prefix=f"{API_PREFIX}/backup", tags=["Backup"])


@app.exception_handler(OnniBoxError)
async def domain_exception_handler(request: Request, exc: OnniBoxError):
    """Business errors raised by the services layer"""
    logger.info(f"[{type(exc).__name__}] {request.method} {request.url.path}: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message}
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global handler: JSON instead of a raw traceback"""
    logger.error(f"[ERROR] {request.method} {request.url.path} failed: {exc}\n{traceback.format_exc()}")
    return JSONResponse(
        status_code=500,
        content={"detail": "Internal server error. The failure was logged."}
    )


@app.on_event("startup")
async def startup_event():
    """Create tables, the first administrator and the demo registries"""
    init_db()
    db = SessionLocal()
    try:
        create_admin_user(db)
        if settings.SEED_DEMO_DATA:
            seed_demo_data(db)
    finally:
        db.close()
    logger.info(f"[SERVER] {settings.APP_NAME} {settings.APP_VERSION} ready")


if __name__ == "__main__":
    import uvicorn
    import argparse

    parser = argparse.ArgumentParser(description="OnniBox Server")
    parser.add_argument("--port", type=int, default=settings.PORT, help="Port to run the server on")
    parser.add_argument("--host", type=str, default=settings.HOST, help="Host to bind to")
    parser.add_argument("--no-reload", action="store_true", help="Disable auto-reload")
    args = parser.parse_args()

    reload = not args.no_reload and settings.DEBUG
    print(f"[SERVER] {settings.APP_NAME} on http://{args.host}:{args.port} (reload={reload}, db={settings.DATABASE_URL})")

    uvicorn.run(
        "onnibox.main:app",
        host=args.host,
        port=args.port,
        reload=reload,
        reload_dirs=["onnibox"] if reload else None,
    )
