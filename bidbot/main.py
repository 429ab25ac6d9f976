"""
FastAPI backend for the bidbot freelance bidding service
"""
import logging
import os
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text

from .analytics import AnalyticsService
from .cache import CacheStore, HistoryStore
from .config import Settings, load_settings
from .database import create_db_engine, init_db, make_session_factory
from .llm import LLMClient, ProposalWriter
from .models import HealthResponse
from .platforms import PlatformClient
from .projects import SEARCH_PLATFORMS
from .proposals import ProposalGenerator, TemplateStore
from .router import Services, router
from .search import ProjectSearchService

logger = logging.getLogger("bidbot.main")

API_VERSION = "1.0.0"


def build_services(settings: Settings, cache: CacheStore,
                   platform_client: Optional[PlatformClient] = None,
                   llm_client: Optional[LLMClient] = None,
                   templates: Optional[TemplateStore] = None) -> Services:
    history = HistoryStore(cache)
    analytics = AnalyticsService()
    platform_client = platform_client or PlatformClient(settings)
    llm_client = llm_client or LLMClient.from_settings(settings)
    if templates is None:
        templates = TemplateStore(settings.templates_dir)
        templates.load()

    if not llm_client.is_configured:
        logger.warning("OpenAI API key not provided, proposals will use templates only")

    return Services(
        platforms=platform_client,
        search=ProjectSearchService(platform_client, cache, history, analytics),
        generator=ProposalGenerator(templates, writer=ProposalWriter(llm_client), history=history),
        analytics=analytics,
    )


def create_app(settings: Optional[Settings] = None, *,
               cache: Optional[CacheStore] = None,
               platform_client: Optional[PlatformClient] = None,
               llm_client: Optional[LLMClient] = None,
               templates: Optional[TemplateStore] = None) -> FastAPI:
    settings = settings or load_settings()
    cache = cache or CacheStore.from_url(settings.redis_url)
    services = build_services(settings, cache, platform_client, llm_client, templates)
    engine = create_db_engine(settings.database_url)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Lifespan events for startup and shutdown"""
        # Startup
        init_db(engine)
        logger.info(f"bidbot API started (cache={cache.backend_name}, ai={settings.ai_enabled})")
        yield
        # Shutdown
        await services.platforms.close()
        await services.generator.writer.client.close()
        await cache.close()
        engine.dispose()

    app = FastAPI(
        title="bidbot API",
        description="Freelance project search, scoring and proposal generation",
        version=API_VERSION,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.cache = cache
    app.state.services = services
    app.state.engine = engine
    app.state.session_factory = make_session_factory(engine)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.include_router(router)

    @app.get("/health", response_model=HealthResponse)
    async def health_check(request: Request):
        """Health check: cache connectivity, database and configured platforms"""
        state = request.app.state
        cache_ok = await state.cache.ping()
        try:
            with state.engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            db_ok = True
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            db_ok = False

        platforms = {p: state.services.platforms.is_configured(p) for p in SEARCH_PLATFORMS}
        return HealthResponse(
            status="healthy" if cache_ok and db_ok else "degraded",
            cache={"backend": state.cache.backend_name, "connected": cache_ok, "database": db_ok},
            platforms=platforms,
            ai_enabled=state.services.generator.writer.available,
            templates=len(state.services.generator.templates),
        )

    return app


def configure_logging(level: str = "INFO"):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


if __name__ == "__main__":
    import uvicorn

    settings = load_settings()
    configure_logging(settings.log_level)
    uvicorn.run(
        create_app(settings),
        host=os.getenv("API_HOST", "0.0.0.0"),
        port=int(os.getenv("API_PORT", 8000)),
    )
