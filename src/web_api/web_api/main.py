import logging
from typing import Dict, Optional
from fastapi import FastAPI, Request, Response
from fastapi.responses import JSONResponse

from shared.config import Settings, get_settings
from shared.errors import PrismError
from shared.image_generation import ImageGenerationProvider, get_image_gen_provider
from shared.pipeline import ImageGenerationPipeline
from shared.records import RecordStore
from shared.storage_supabase import ArtifactStore
from web_api.auth import IdentityVerifier, SupabaseAuthVerifier
from web_api.routes_generate import router as generate_router
from web_api.routes_health import router as health_router

log = logging.getLogger("prism")

CORS_ALLOW_HEADERS = "authorization, x-client-info, apikey, content-type"


def cors_headers(settings: Settings, origin: Optional[str]) -> Dict[str, str]:
    """Same headers on pre-flight, success and error responses."""
    origins = settings.cors_origins()
    headers = {"Access-Control-Allow-Headers": CORS_ALLOW_HEADERS}
    if "*" in origins:
        headers["Access-Control-Allow-Origin"] = "*"
    elif origin and origin in origins:
        headers["Access-Control-Allow-Origin"] = origin
        headers["Vary"] = "Origin"
    return headers


def _configure_logging(settings: Settings) -> None:
    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format='%(asctime)s %(levelname)s %(name)s - %(message)s'
    )


def _wire_services(
    app: FastAPI,
    settings: Settings,
    provider: Optional[ImageGenerationProvider],
    store: Optional[ArtifactStore],
    records: Optional[RecordStore],
    verifier: Optional[IdentityVerifier],
) -> None:
    """
    Build long-lived collaborators once. Anything missing puts the app in
    degraded mode: it boots, and generation requests answer 500.
    """
    app.state.pipeline = None
    app.state.verifier = verifier
    app.state.config_error = None

    if provider is None and not settings.model_configured():
        app.state.config_error = "GOOGLE_AI_API_KEY is not configured"
        log.error("GOOGLE_AI_API_KEY is not configured. Generation disabled.")
        return

    try:
        if provider is None:
            provider = get_image_gen_provider(
                "gemini",
                api_key=settings.GOOGLE_AI_API_KEY,
                model=settings.GEMINI_MODEL,
                base_url=settings.GEMINI_API_BASE,
                timeout=settings.MODEL_TIMEOUT_SECONDS,
            )

        client = None
        if store is None or records is None or verifier is None:
            from shared.db_supabase import get_supabase_client
            client = get_supabase_client(settings)

        if store is None:
            store = ArtifactStore(
                client,
                public_bucket=settings.STORAGE_PUBLIC_BUCKET,
                private_bucket=settings.STORAGE_PRIVATE_BUCKET,
                cache_control=settings.STORAGE_CACHE_CONTROL,
            )
        if records is None:
            from shared.db_unified import get_record_store
            records = get_record_store(settings, client)
        if verifier is None:
            app.state.verifier = SupabaseAuthVerifier(client)
    except (RuntimeError, ValueError) as e:
        app.state.config_error = str(e)
        log.exception("Service wiring failed. App will start in degraded mode.")
        return

    app.state.pipeline = ImageGenerationPipeline(
        provider,
        store,
        records,
        cleanup_orphans=settings.CLEANUP_ORPHANED_UPLOADS,
    )
    log.info("Generation pipeline ready (provider=%s, records=%s)",
             provider.name, settings.RECORDS_BACKEND)


def create_app(
    settings: Optional[Settings] = None,
    provider: Optional[ImageGenerationProvider] = None,
    store: Optional[ArtifactStore] = None,
    records: Optional[RecordStore] = None,
    verifier: Optional[IdentityVerifier] = None,
) -> FastAPI:
    settings = settings or get_settings()
    _configure_logging(settings)

    app = FastAPI(title="Prism Image API", version="0.1.0")
    app.state.settings = settings

    @app.middleware("http")
    async def _cors(request: Request, call_next):
        # Pre-flight is answered before routing, auth or body parsing.
        if request.method == "OPTIONS":
            response = Response(status_code=200)
        else:
            response = await call_next(request)
        response.headers.update(cors_headers(settings, request.headers.get("origin")))
        return response

    @app.exception_handler(PrismError)
    async def _prism_error_handler(request: Request, exc: PrismError):
        return JSONResponse(status_code=exc.status_code, content={"error": exc.message})

    app.include_router(health_router)
    app.include_router(generate_router)

    _wire_services(app, settings, provider, store, records, verifier)
    return app


app = create_app()
