from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .core.logging import configure_logging_from_env, get_logger
from .core.middleware import TraceIDMiddleware
from .core.tracing import configure_tracing, instrument_fastapi, shutdown_tracing
from .exception_handlers import register_exception_handlers
from .routes import ai_chat, floorplan, health, interior, kawasan, kpr, metrics
from .services.ai.orchestration import get_orchestrator

configure_logging_from_env()
logger = get_logger(__name__)

configure_tracing()

app = FastAPI(
    title="SiHuni API",
    description="AI assistant, interior, area-risk, floor-plan and KPR services",
    version="1.0.0",
)

# The web front end is served from another origin
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(TraceIDMiddleware)
instrument_fastapi(app)
register_exception_handlers(app)


@app.on_event("startup")
async def startup_event():
    """Build the AI orchestrator so a missing provider key aborts startup."""
    orchestrator = get_orchestrator()
    logger.info(
        "app_startup_ai_ready",
        credentials=list(orchestrator.credentials.names),
        max_retries=orchestrator.policy.max_retries,
        initial_delay_ms=orchestrator.policy.initial_delay_ms,
    )


@app.on_event("shutdown")
async def shutdown_event():
    shutdown_tracing()
    logger.info("app_shutdown_completed")


app.include_router(health.router, prefix="/health", tags=["Health"])
app.include_router(metrics.router, prefix="/metrics", tags=["Metrics"])
app.include_router(ai_chat.router, prefix="/api/ai-chat", tags=["AI Chat"])
app.include_router(interior.router, prefix="/api/interior", tags=["Interior"])
app.include_router(kawasan.router, prefix="/api/kawasan", tags=["Area Risk"])
app.include_router(floorplan.router, prefix="/api/generate-floorplan", tags=["Floor Plan"])
app.include_router(kpr.router, prefix="/api/kpr", tags=["KPR"])
