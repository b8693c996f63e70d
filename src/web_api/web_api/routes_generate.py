import json
import logging
from typing import Any
from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as BodyValidationError

from shared.errors import ConfigurationError, PrismError, ValidationError
from shared.pipeline import GenerationRequest, ImageGenerationPipeline
from web_api.auth import CallerIdentity, get_caller_identity

LOG = logging.getLogger(__name__)

router = APIRouter(prefix="/v1", tags=["generate"])


class GenerateImageIn(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    prompt: Any = None
    is_public: bool = Field(default=False, alias="isPublic")


class GenerateImageOut(BaseModel):
    imageUrl: str
    isPublic: bool
    prompt: str
    id: str


def get_pipeline(request: Request) -> ImageGenerationPipeline:
    """Fails every generation request while the app runs in degraded mode."""
    config_error = getattr(request.app.state, "config_error", None)
    if config_error:
        raise ConfigurationError(config_error)
    return request.app.state.pipeline


async def read_generation_request(request: Request) -> GenerationRequest:
    """
    Parse the JSON body by hand so it is only looked at after the
    configuration and credential dependencies have passed.
    """
    raw = await request.body()
    try:
        data = json.loads(raw) if raw.strip() else {}
    except ValueError as e:
        raise ValidationError("Invalid request body") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ValidationError("Invalid request body")

    try:
        body = GenerateImageIn.model_validate(data)
    except BodyValidationError as e:
        raise ValidationError("Invalid request body") from e

    return GenerationRequest.from_input(body.prompt, body.is_public)


@router.post("/generate-image", response_model=GenerateImageOut)
def generate_image(
    pipeline: ImageGenerationPipeline = Depends(get_pipeline),
    identity: CallerIdentity = Depends(get_caller_identity),
    req: GenerationRequest = Depends(read_generation_request),
):
    run = pipeline.start(identity.id)

    try:
        result = pipeline.run(run, req)
    except PrismError:
        raise
    except Exception as e:
        LOG.exception("Error in generate-image handler")
        raise PrismError(str(e) or "Failed to generate image") from e

    return result.to_response()
