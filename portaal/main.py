from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from portaal.api.v1 import api_router
from portaal.core.errors import PortaalError
from portaal.core.log_config import configure_logging
from portaal.core.settings import Settings, settings
from portaal.realtime.notifier import ChangeNotifier, build_notifier
from portaal.repositories import RepositoryProvider
from portaal.utils.storage_client import StorageClient


def create_app(
    app_settings: Settings | None = None,
    repositories: RepositoryProvider | None = None,
    storage: StorageClient | None = None,
    notifier: ChangeNotifier | None = None,
) -> FastAPI:
    app_settings = app_settings or settings
    configure_logging(app_settings.LOG_LEVEL)

    provider = repositories or RepositoryProvider(app_settings)
    storage = storage or StorageClient(app_settings)
    notifier = notifier or build_notifier(app_settings, provider.open)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        # SQLite local cria as tabelas; Postgres usa migrações Alembic
        if (app_settings.DATABASE_URL or "").startswith("sqlite"):
            provider.create_schema()
        yield
        await notifier.close()
        provider.dispose()

    app = FastAPI(title=app_settings.APP_TITLE, version="1.0.0", lifespan=lifespan)

    app.state.settings = app_settings
    app.state.repositories = provider
    app.state.storage = storage
    app.state.notifier = notifier

    @app.exception_handler(PortaalError)
    async def portaal_error_handler(request: Request, exc: PortaalError):
        return JSONResponse(status_code=exc.status_code, content={"detail": str(exc)})

    app.include_router(api_router, prefix="/v1")

    @app.get("/health")
    def health():
        return {"status": "ok", "demo_mode": provider.demo}

    return app


app = create_app()
