# FastAPI Application Entry Point
import logging
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

# Configuration and Observability
from claims_case_service.app.config import settings
from claims_case_service.app.observability import setup_opentelemetry, logger
from claims_case_service.app.api.errors import http_exception_for
from claims_case_service.app.service.exceptions import BaseCaseManagementError

# Initialize OpenTelemetry
setup_opentelemetry(service_name=settings.SERVICE_NAME_API)

# Import instrumentors after OTel SDK is initialized
from opentelemetry.instrumentation.fastapi import FastAPIInstrumentor
from opentelemetry.instrumentation.pymongo import PymongoInstrumentor

# Database connection
from claims_case_service.infrastructure.database.connection import connect_to_mongo, close_mongo_connection, get_db
from claims_case_service.infrastructure.database.indexes import ensure_indexes

# API Routers
from claims_case_service.app.api.v1.endpoints import health as health_router
from claims_case_service.app.api.v1.endpoints import cases as cases_router
from claims_case_service.app.api.v1.endpoints import finances as finances_router
from claims_case_service.app.api.v1.endpoints import invoices as invoices_router
from claims_case_service.app.api.v1.endpoints import utils as utils_router
from claims_case_service.app.api.v1.endpoints.directories import clients_router, providers_router, hospitals_router

# --- FastAPI Application Instance ---
app = FastAPI(
    title="Claims Case Service",
    description="Tracks claim cases through review and approval, with the finance entries and invoices they produce.",
    version="1.0.0"
)

# --- Event Handlers for DB Connection & OTel Instrumentation ---
@app.on_event("startup")
async def startup_event():
    logger.info("FastAPI application startup...")
    try:
        await connect_to_mongo()
        async for db in get_db():
            await ensure_indexes(db)
            break
        logger.info("MongoDB connection established and indexes ensured.")

        PymongoInstrumentor().instrument()
        logger.info("PyMongo instrumentation complete.")
    except Exception as e:
        # Requests will retry the connection through get_db and fail with 503 until storage is reachable
        logger.error(f"Failed during startup: {e}", exc_info=True)

@app.on_event("shutdown")
async def shutdown_event():
    logger.info("FastAPI application shutdown...")
    close_mongo_connection()
    logger.info("MongoDB connection closed.")

@app.exception_handler(RequestValidationError)
async def request_validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = [
        {"field": ".".join(str(part) for part in error.get("loc", ())[1:]), "message": error.get("msg")}
        for error in exc.errors()
    ]
    logger.warning(f"Request validation failed for {request.method} {request.url.path}: {errors}")
    return JSONResponse(status_code=400, content={"detail": "Validation failed", "errors": errors})

# Service errors raised outside the routes' own handling (e.g. by get_db)
@app.exception_handler(BaseCaseManagementError)
async def service_exception_handler(request: Request, exc: BaseCaseManagementError):
    http_exc = http_exception_for(exc)
    return JSONResponse(status_code=http_exc.status_code, content={"detail": http_exc.detail})

# Instrument FastAPI app
FastAPIInstrumentor.instrument_app(app)
logger.info("FastAPI instrumentation complete.")

# Include API Routers
app.include_router(health_router.router)
app.include_router(cases_router.router, prefix="/api")
app.include_router(finances_router.router, prefix="/api")
app.include_router(invoices_router.router, prefix="/api")
app.include_router(clients_router, prefix="/api")
app.include_router(providers_router, prefix="/api")
app.include_router(hospitals_router, prefix="/api")
app.include_router(utils_router.router, prefix="/api")

logger.info("API routers included. Application setup complete.")

# To run: uvicorn claims_case_service.app.main:app --reload --port 8000
