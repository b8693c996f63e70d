from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/healthz")
def healthz():
    """
    Liveness check: MUST be cheap and MUST NOT depend on external services.
    If this fails, the process is not running.
    """
    return {"status": "ok"}


@router.get("/readyz")
def readyz(request: Request):
    """
    Readiness check: reports whether generation can be served.
    Configuration only; no network calls to Gemini or Supabase.
    """
    settings = request.app.state.settings
    model_ok = settings.model_configured()
    pipeline_ok = getattr(request.app.state, "pipeline", None) is not None

    status = "ok" if (model_ok and pipeline_ok and not request.app.state.config_error) else "degraded"

    return {
        "status": status,
        "model": "ok" if model_ok else "fail",
        "storage": "ok" if pipeline_ok else "fail",
        "records_backend": settings.RECORDS_BACKEND,
    }
