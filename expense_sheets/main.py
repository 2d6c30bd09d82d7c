from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging

from expense_sheets.core.config import settings
from expense_sheets.core.logging_config import configure_logging
from expense_sheets.db import dynamo
from expense_sheets.routers import analytics, auth, categories, descriptions, expenses, health, sheets
from expense_sheets.utils.analyzer import AnalyticsInputError

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    configure_logging()
    if settings.DYNAMO_CREATE_TABLES:
        logger.info("Creating missing DynamoDB tables...")
        dynamo.create_tables()
    yield


app = FastAPI(
    title=settings.PROJECT_NAME,
    debug=settings.DEBUG,
    lifespan=lifespan
)

# CORS configuration
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*"],
    max_age=3600,
)


@app.exception_handler(AnalyticsInputError)
async def analytics_input_error_handler(request: Request, exc: AnalyticsInputError):
    logger.warning(f"Rejected analytics request {request.url.path}: {exc}")
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})


# Root endpoint
@app.get("/")
def root():
    return {"message": f"Welcome to {settings.PROJECT_NAME} API"}


# Register routers
prefix = settings.API_PREFIX
app.include_router(health.router, prefix=prefix, tags=["Health"])  # /api/health
app.include_router(auth.router, prefix=f"{prefix}/auth", tags=["Auth"])
app.include_router(sheets.router, prefix=f"{prefix}/sheets", tags=["Sheets"])
app.include_router(expenses.router, prefix=f"{prefix}/sheets/{{sheet_id}}/expenses", tags=["Expenses"])
app.include_router(categories.router, prefix=f"{prefix}/sheets/{{sheet_id}}/categories", tags=["Categories"])
app.include_router(descriptions.router, prefix=f"{prefix}/sheets/{{sheet_id}}", tags=["Descriptions"])
app.include_router(analytics.router, prefix=prefix, tags=["Analytics"])
