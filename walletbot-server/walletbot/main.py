from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware

from walletbot import __version__
from walletbot.core.config import Settings, get_settings
from walletbot.core.container import ApplicationContainer
from walletbot.core.logging_config import configure_logging
from walletbot.infrastructure.database import init_db
from walletbot.interfaces.http.routers import create_api_router
from walletbot.schemas import HealthResponse
from walletbot.websocket.manager import ConnectionManager


def create_app(settings: Settings | None = None, container: ApplicationContainer | None = None) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if getattr(app.state, "container", None) is None:
            app.state.container = ApplicationContainer.build(settings)
        await init_db(app.state.container.engine)
        try:
            yield
        finally:
            await app.state.container.aclose()

    app = FastAPI(
        title=settings.project_name,
        description="Conversational wallet: deposits, withdrawals and transfers",
        version=__version__,
        lifespan=lifespan,
    )
    if container is not None:
        app.state.container = container

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(create_api_router())

    @app.get("/health", response_model=HealthResponse)
    async def health(request: Request):
        transport = request.app.state.container.transport
        connections = transport.get_online_count() if isinstance(transport, ConnectionManager) else 0
        return HealthResponse(version=__version__, connections=connections)

    return app


app = create_app()
