"""
Image generation pipeline: model call -> decode -> upload -> persist.
The web API owns auth and input validation and hands a validated
GenerationRequest to ImageGenerationPipeline.run().
"""
from __future__ import annotations

import enum
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .errors import PrismError, ValidationError
from .image_generation import ImageGenerationProvider
from .media import build_artifact
from .records import ArtifactRecord, RecordStore
from .storage_supabase import ArtifactStore, StoredArtifact

LOG = logging.getLogger(__name__)


class PipelineStage(str, enum.Enum):
    received = "received"
    authenticated = "authenticated"
    validated = "validated"
    model_called = "model_called"
    decoded = "decoded"
    uploaded = "uploaded"
    persisted = "persisted"
    responded = "responded"
    failed = "failed"


TERMINAL_STAGES = (PipelineStage.responded, PipelineStage.failed)


@dataclass
class GenerationRequest:
    prompt: str
    is_public: bool = False

    @classmethod
    def from_input(cls, prompt: Any, is_public: Any = False) -> "GenerationRequest":
        if not isinstance(prompt, str) or not prompt.strip():
            raise ValidationError("Prompt is required")
        return cls(prompt=prompt, is_public=bool(is_public))


@dataclass
class PipelineRun:
    """
    Per-request state. Never shared between requests.
    stage only moves forward, except into failed.
    """
    user_id: str
    stage: PipelineStage = PipelineStage.received
    history: List[PipelineStage] = field(default_factory=lambda: [PipelineStage.received])
    failure_reason: Optional[str] = None
    stored: Optional[StoredArtifact] = None
    record: Optional[ArtifactRecord] = None

    def advance(self, stage: PipelineStage) -> None:
        if self.stage in TERMINAL_STAGES:
            raise RuntimeError(f"Pipeline already finished in stage {self.stage.value}")
        self.stage = stage
        self.history.append(stage)
        LOG.debug("pipeline user=%s stage=%s", self.user_id, stage.value)

    def fail(self, reason: str) -> None:
        self.stage = PipelineStage.failed
        self.history.append(PipelineStage.failed)
        self.failure_reason = reason


@dataclass
class GenerationResult:
    record: ArtifactRecord
    run: PipelineRun

    def to_response(self) -> Dict[str, Any]:
        return {
            "imageUrl": self.record.image_url,
            "isPublic": self.record.is_public,
            "prompt": self.record.prompt,
            "id": self.record.id,
        }


class ImageGenerationPipeline:
    """
    Sequential saga over the external services. Every stage fails fast; if the
    record write fails after a successful upload the uploaded object is deleted
    (when cleanup_orphans is set) before the error propagates.
    """

    def __init__(
        self,
        provider: ImageGenerationProvider,
        store: ArtifactStore,
        records: RecordStore,
        cleanup_orphans: bool = True,
    ):
        self.provider = provider
        self.store = store
        self.records = records
        self.cleanup_orphans = cleanup_orphans

    def start(self, user_id: str) -> PipelineRun:
        run = PipelineRun(user_id=user_id)
        run.advance(PipelineStage.authenticated)
        return run

    def run(self, run: PipelineRun, request: GenerationRequest) -> GenerationResult:
        run.advance(PipelineStage.validated)
        LOG.info(
            "Generating image with prompt: %r isPublic: %s user: %s (provider=%s)",
            request.prompt, request.is_public, run.user_id, self.provider.name,
        )

        try:
            payload = self.provider.generate(request.prompt)
            run.advance(PipelineStage.model_called)

            artifact = build_artifact(payload)
            run.advance(PipelineStage.decoded)

            run.stored = self.store.upload(run.user_id, artifact, request.is_public)
            run.advance(PipelineStage.uploaded)

            try:
                run.record = self.records.insert_record(
                    user_id=run.user_id,
                    prompt=request.prompt,
                    image_url=run.stored.public_url,
                    file_path=run.stored.path,
                    is_public=request.is_public,
                )
            except Exception:
                self._compensate(run)
                raise
            run.advance(PipelineStage.persisted)
        except Exception as e:
            reason = e.message if isinstance(e, PrismError) else str(e)
            run.fail(reason)
            LOG.error("Pipeline failed for user %s after %s: %s",
                      run.user_id, run.history[-2].value, reason)
            raise

        run.advance(PipelineStage.responded)
        LOG.info("Image generated for user %s: %s", run.user_id, run.record.id)
        return GenerationResult(record=run.record, run=run)

    def _compensate(self, run: PipelineRun) -> None:
        if not run.stored:
            return
        if not self.cleanup_orphans:
            LOG.warning("Record write failed; leaving orphaned object %s/%s",
                        run.stored.bucket, run.stored.path)
            return
        try:
            self.store.delete(run.stored)
        except Exception:
            LOG.exception("Cleanup of orphaned object %s/%s failed",
                          run.stored.bucket, run.stored.path)
