"""
civicapp/main.py

"""


from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging
from civicapp.core.config import settings
from civicapp.core.database import connect_to_mongo, close_mongo_connection
from civicapp.core.exceptions import LedgerError
from civicapp.api.v1 import api_router
from civicapp.graphql.schema import graphql_app
from civicapp.services.notifications import notification_bus



# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    await connect_to_mongo()
    yield
    # Shutdown
    await close_mongo_connection()
    logger.info(
        f"Notification bus: {notification_bus.published} published, "
        f"{notification_bus.dropped} dropped"
    )

# Create FastAPI app.
app = FastAPI(
    title=settings.APP_NAME,
    lifespan=lifespan,
    debug=settings.DEBUG
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(LedgerError)
async def ledger_error_handler(request: Request, exc: LedgerError):
    if exc.status_code >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.message, "code": exc.code},
    )


app.include_router(api_router, prefix="/api/v1")

# Include GraphQL endpoint
app.include_router(graphql_app, prefix="/graphql")

@app.get("/")
async def root():
    return {"message": "Welcome to CivicReports API"}

@app.get("/health")
async def health_check():
    return {"status": "healthy"}
