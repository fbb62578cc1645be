import logging

from fastapi import FastAPI

from zscan_sync import __version__
from zscan_sync.api.v1.api import router as api_router
from zscan_sync.config import Settings, settings as default_settings
from zscan_sync.database import ScanStore
from zscan_sync.services.sync import PasscodeHasher

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(level: str) -> None:
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)


def create_app(settings: Settings | None = None, store: ScanStore | None = None) -> FastAPI:
    settings = settings or default_settings
    configure_logging(settings.LOG_LEVEL)

    app = FastAPI(title="ZScan Sync API", version=__version__)
    app.state.settings = settings
    app.state.store = store or ScanStore(
        settings.DATABASE_URL, busy_timeout=settings.SQLITE_BUSY_TIMEOUT
    )
    app.state.hasher = PasscodeHasher(rounds=settings.BCRYPT_ROUNDS)

    # Health check route
    @app.get("/health")
    def health_check():
        return {"status": "ok"}

    app.include_router(api_router)
    return app


app = create_app()
