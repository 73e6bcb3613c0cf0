import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from provider_directory.api.routes import admin, auth, categories, offers, providers, users
from provider_directory.core.config import Settings, get_settings
from provider_directory.core.database import Base, build_engine, build_session_factory
from provider_directory.core.errors import register_exception_handlers
from provider_directory.core.logging_setup import add_audit_middleware, configure_logging
from provider_directory.core.security import PasswordHasher, TokenIssuer
# Model modules must be imported so their tables are registered on Base
from provider_directory.models import offer, provider, user  # noqa: F401
from provider_directory.services.offer_service import OfferService
from provider_directory.services.provider_service import ProviderService
from provider_directory.services.user_service import UserService
from provider_directory.storage.local_storage import LocalStorage

logger = logging.getLogger(__name__)


def seed_admin(app: FastAPI) -> None:
    """Create the bootstrap administrator configured through ADMIN_* settings"""
    settings: Settings = app.state.settings
    if not (settings.ADMIN_EMAIL and settings.ADMIN_PASSWORD):
        return
    db = app.state.session_factory()
    try:
        admin_user = app.state.user_service.ensure_admin(
            db,
            name=settings.ADMIN_NAME,
            email=settings.ADMIN_EMAIL,
            password=settings.ADMIN_PASSWORD,
            phone=settings.ADMIN_PHONE,
        )
        logger.info(f"Administrator account ready: {admin_user.email}")
    finally:
        db.close()


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup: create tables if they don't exist and seed the administrator.
    Shutdown: release pooled connections.
    """
    Base.metadata.create_all(bind=app.state.engine)
    seed_admin(app)
    logger.info("Database initialized")
    yield
    app.state.engine.dispose()


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build the application. Settings are read once and everything that needs
    them (engine, storage, hashing, tokens, services) is constructed here and
    kept on app.state for the request dependencies.
    """
    settings = settings or get_settings()
    configure_logging(settings.LOG_LEVEL)

    app = FastAPI(
        title="Provider Directory API",
        description="Business directory: providers, offers and featured listings",
        version="1.0.0",
        lifespan=lifespan,
    )

    engine = build_engine(settings)
    storage = LocalStorage(settings)
    provider_service = ProviderService(storage, enforce_taxonomy=settings.ENFORCE_TAXONOMY)

    app.state.settings = settings
    app.state.engine = engine
    app.state.session_factory = build_session_factory(engine)
    app.state.storage = storage
    app.state.token_issuer = TokenIssuer(settings)
    app.state.user_service = UserService(PasswordHasher(settings.BCRYPT_ROUNDS), storage)
    app.state.provider_service = provider_service
    app.state.offer_service = OfferService(provider_service, storage)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.get_cors_origins(),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    add_audit_middleware(app)
    register_exception_handlers(app)

    # All routes are prefixed with /api
    app.include_router(auth.router, prefix="/api")
    app.include_router(users.router, prefix="/api")
    app.include_router(categories.router, prefix="/api")
    app.include_router(providers.router, prefix="/api")
    app.include_router(offers.router, prefix="/api")
    app.include_router(admin.router, prefix="/api")

    # Uploaded images and avatars, read-only
    app.mount(storage.url_prefix, StaticFiles(directory=storage.upload_dir), name="uploads")

    @app.get("/")
    async def root():
        return {"message": "Provider Directory API", "version": "1.0.0"}

    @app.get("/health")
    async def health():
        """Health check endpoint - used by monitoring/deployment tools"""
        return {"status": "healthy"}

    return app


app = create_app()
