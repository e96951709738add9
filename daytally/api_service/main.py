import logging
from typing import Optional
from fastapi import FastAPI, APIRouter
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from daytally.api_service.core.identity import FirebaseIdentityProvider, IdentityProvider, MemoryIdentityProvider
from daytally.api_service.core.sessions import SessionRegistry
from daytally.api_service.core.settings import Settings, settings
from daytally.api_service.core.store import FirebaseStore, MemoryStore, RemoteStore
from daytally.api_service.api_v1.endpoints import activities, analytics, auth, system
from daytally.ledger.service import LedgerService

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - [%(name)s] - %(message)s"
)
logger = logging.getLogger(__name__)

def build_store(config: Settings) -> RemoteStore:
    if config.STORE_BACKEND == "firebase":
        return FirebaseStore(config.FIREBASE_DATABASE_URL, timeout=config.REQUEST_TIMEOUT_SECONDS)
    if config.STORE_BACKEND == "memory":
        return MemoryStore()
    raise ValueError(f"Unknown STORE_BACKEND: {config.STORE_BACKEND!r}")

def build_identity_provider(config: Settings) -> IdentityProvider:
    if config.IDENTITY_BACKEND == "firebase":
        return FirebaseIdentityProvider(
            config.FIREBASE_API_KEY,
            auth_url=config.FIREBASE_AUTH_URL,
            request_uri=config.GOOGLE_REQUEST_URI,
            timeout=config.REQUEST_TIMEOUT_SECONDS,
        )
    if config.IDENTITY_BACKEND == "memory":
        return MemoryIdentityProvider()
    raise ValueError(f"Unknown IDENTITY_BACKEND: {config.IDENTITY_BACKEND!r}")

@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    logger.info("Starting up DayTally API Service...")
    logger.info(
        f"Using store backend '{app.state.ledger.store.name}' "
        f"and identity backend '{app.state.identity.name}'"
    )
    if settings.SECRET_KEY == "change-me":
        logger.warning("SECRET_KEY is the development default; set it before deploying.")

    yield

    # Shutdown
    logger.info("Shutting down DayTally API Service...")

def create_app(
    store: Optional[RemoteStore] = None,
    identity: Optional[IdentityProvider] = None,
) -> FastAPI:
    app = FastAPI(
        title=settings.PROJECT_NAME,
        description="Log how each day's 24 hours were spent and analyse complete days by category.",
        version=settings.VERSION,
        debug=settings.DEBUG,
        openapi_url=f"{settings.API_V1_STR}/openapi.json",
        docs_url=f"{settings.API_V1_STR}/docs",
        redoc_url=f"{settings.API_V1_STR}/redoc",
        lifespan=lifespan
    )
    app.state.ledger = LedgerService(store or build_store(settings))
    app.state.identity = identity or build_identity_provider(settings)
    app.state.sessions = SessionRegistry()

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOWED_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Create API v1 router
    api_v1_router = APIRouter(prefix=settings.API_V1_STR)

    # Include all endpoint routers
    api_v1_router.include_router(auth.router, prefix="/auth", tags=["Authentication"])
    api_v1_router.include_router(activities.router, prefix="/activities", tags=["Activities"])
    api_v1_router.include_router(analytics.router, prefix="/analytics", tags=["Analytics"])
    api_v1_router.include_router(system.router, prefix="/system", tags=["System"])

    # Include the v1 router in the main app
    app.include_router(api_v1_router)

    # Root endpoint
    @app.get("/", tags=["Root"])
    async def root():
        return {
            "message": f"Welcome to the {settings.PROJECT_NAME}",
            "version": settings.VERSION,
            "docs": f"{settings.API_V1_STR}/docs"
        }

    # Health check endpoint
    @app.get("/health", tags=["Health"])
    async def health_check():
        return {"status": "healthy", "service": "daytally-api"}

    return app

app = create_app()

if __name__ == "__main__":
    import uvicorn
    logger.info("Starting Uvicorn server for development...")
    uvicorn.run(app, host="0.0.0.0", port=8000, log_level="info")
