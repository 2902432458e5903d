"""Main FastAPI application for the attack campaign simulator"""
from fastapi import FastAPI
from contextlib import asynccontextmanager
from datetime import datetime, timezone
import logging
import random

from .core.config import settings
from .routers import campaigns
from .services.content_generator import LLMAlertGenerator, TemplateAlertGenerator
from .services.document_sink import ElasticsearchSink, KibanaSpaces
from .services.simulation_engine import AttackSimulationEngine

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the engine and its collaborators once per process"""
    logger.info("Starting attack campaign simulator...")

    rng = random.Random()
    app.state.engine = AttackSimulationEngine(generator=TemplateAlertGenerator(rng), rng=rng, settings=settings)
    app.state.ai_generator = None
    if settings.openai_api_key:
        app.state.ai_generator = LLMAlertGenerator(
            api_key=settings.openai_api_key,
            base_url=settings.openai_base_url,
            model=settings.openai_model,
            timeout=settings.generator_call_timeout_seconds,
            rng=rng,
        )
    app.state.sink = ElasticsearchSink.from_settings(settings)
    app.state.spaces = KibanaSpaces.from_settings(settings)

    logger.info(f"Simulator ready (Elasticsearch: {settings.elastic_node}, Kibana: {settings.kibana_node})")

    yield

    logger.info("Shutting down attack campaign simulator...")
    app.state.sink.client.close()


app = FastAPI(
    title=settings.api_title,
    version=settings.api_version,
    lifespan=lifespan
)

app.include_router(campaigns.router, prefix=settings.api_prefix, tags=["campaigns"])


@app.get(f"{settings.api_prefix}/health")
async def health_check():
    """Health check endpoint"""
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "version": settings.api_version
    }
