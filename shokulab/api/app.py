"""FastAPI application factory"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from shokulab import __version__
from shokulab.api.routes.contract import router as contract_router
from shokulab.api.schemas import HealthResponse
from shokulab.utils.config import configure_logging, get_settings


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: make sure the schema exists"""
    from shokulab.db.supabase import get_database

    get_database().init_db()
    yield


def create_app(init_db: bool = True) -> FastAPI:
    """Create and configure the FastAPI application"""
    configure_logging()

    app = FastAPI(
        title="Shokulab Contract API",
        description="食ラボ 契約書の作成・合意・安心決済手数料計算",
        version=__version__,
        lifespan=lifespan if init_db else None,
    )

    # CORS for the mobile client and local tools
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(contract_router)

    @app.get("/api/health", response_model=HealthResponse)
    async def health():
        """Health check endpoint"""
        try:
            db_mode = get_settings().db_mode
            status = "ok"
        except Exception:
            db_mode = "unknown"
            status = "error"
        return HealthResponse(status=status, db_mode=db_mode, version=__version__)

    return app
