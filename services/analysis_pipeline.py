"""Artwork ingestion and analysis pipeline.

`AnalysisPipeline` coordinates the image normalizer, image storage, the
artwork record store, the analysis queue and the OpenAI analyzer:

    upload -> normalize -> store files -> placeholder row -> queue job
    job    -> mark analyzing -> analyze (with retries) -> result or failure row

Uploads and re-analysis requests return as soon as the placeholder is
durable; the outcome is only observable through later reads of the record.
"""

from __future__ import annotations

import asyncio
import base64
import logging
import os
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from dal.artwork_dal import ArtworkDAL
from models.analysis_result import AnalysisErrorKind, to_minor_units
from models.artwork_record import ArtworkRecord
from models.errors import AnalysisFailedError, InvalidInputError, NotFoundError
from services.analysis_queue import AnalysisJob, AnalysisQueue
from services.image_normalizer import ImageNormalizer
from services.image_storage import ImageStorage
from services.openai.artwork_analyzer import ArtworkAnalyzer, split_tags

LOGGER = logging.getLogger(__name__)
ANALYSIS_MAX_ATTEMPTS = int(os.getenv("ANALYSIS_MAX_ATTEMPTS", "1"))
ANALYSIS_RETRY_DELAY_SECONDS = float(os.getenv("ANALYSIS_RETRY_DELAY_SECONDS", "2"))

FAILED_TITLE = "Analysis Failed"
REANALYSIS_FAILED_TITLE = "Re-analysis Failed"
DEFAULT_FAILURE_MESSAGE = "AI analysis failed - please try again"
FAILURE_MESSAGES = {
    AnalysisErrorKind.QUOTA_EXCEEDED: "OpenAI quota exceeded - please check billing",
    AnalysisErrorKind.RATE_LIMITED: "AI service is busy - please try again shortly",
    AnalysisErrorKind.AUTH_FAILED: "AI service rejected the configured credentials - please contact support",
    AnalysisErrorKind.TIMEOUT: "AI analysis timed out - please try again",
    AnalysisErrorKind.PARSE: "AI returned an unreadable analysis - please try again",
}

Upload = Tuple[bytes, Optional[str]]


def failure_message(kind: AnalysisErrorKind) -> str:
    """Return the short user-facing reason for a failed analysis."""
    return FAILURE_MESSAGES.get(kind, DEFAULT_FAILURE_MESSAGE)


class AnalysisPipeline:
    """Orchestrate uploads, background analyses and re-analysis."""

    def __init__(
        self,
        artwork_dal: ArtworkDAL,
        analyzer: ArtworkAnalyzer,
        queue: AnalysisQueue,
        storage: ImageStorage,
        normalizer: Optional[ImageNormalizer] = None,
        *,
        max_attempts: int = ANALYSIS_MAX_ATTEMPTS,
        retry_delay: float = ANALYSIS_RETRY_DELAY_SECONDS,
    ) -> None:
        self.artworks = artwork_dal
        self.analyzer = analyzer
        self.queue = queue
        self.storage = storage
        self.normalizer = normalizer or ImageNormalizer()
        self.max_attempts = max(1, int(max_attempts))
        self.retry_delay = retry_delay

    async def ingest(
        self,
        owner_id: str,
        image: bytes,
        mime_type: Optional[str],
        additional: Sequence[Upload] = (),
        description: Optional[str] = None,
    ) -> ArtworkRecord:
        """Create a placeholder artwork for an upload and queue its analysis.

        Args:
            owner_id: Id of the uploading user.
            image: Raw bytes of the primary image.
            mime_type: Declared MIME type of the primary image.
            additional: Extra `(bytes, mime_type)` images kept with the artwork.
            description: Optional owner description passed to the model as context.

        Returns:
            The placeholder record, before any analysis has run.

        Raises:
            InvalidInputError: If any image fails validation; nothing is stored.
        """
        primary = await asyncio.to_thread(self.normalizer.normalize, image, mime_type)
        extras = [await asyncio.to_thread(self.normalizer.normalize, raw, mime) for raw, mime in additional]

        image_path = await self.storage.save(primary.primary)
        extra_paths = await self.storage.save_many(extra.primary for extra in extras)
        try:
            record = await self.artworks.create_placeholder(owner_id, image_path, primary.thumbnail, extra_paths)
        except Exception:
            await self.storage.delete([image_path, *extra_paths])
            raise
        LOGGER.info("Artwork %d created for user %s (%dx%d)", record.id, owner_id, primary.width, primary.height)

        job = AnalysisJob(
            artwork_id=record.id,
            owner_id=owner_id,
            image_b64=primary.primary_b64,
            existing_description=description,
        )
        try:
            self.queue.submit(job)
        except RuntimeError as exc:
            LOGGER.error("Could not queue analysis for artwork %d: %s", record.id, exc)
            await self.artworks.apply_analysis_failure(
                record.id, FAILED_TITLE, DEFAULT_FAILURE_MESSAGE, AnalysisErrorKind.UNKNOWN.value
            )
        return record

    async def reanalyze(self, artwork_id: int, owner_id: str) -> ArtworkRecord:
        """Reset an owned artwork to the re-analyzing placeholder and queue a new analysis.

        Raises:
            NotFoundError: If the artwork does not exist or is not owned by `owner_id`.
            AnalysisInFlightError: If an analysis for it is already queued or running.
            InvalidInputError: If the stored image is missing.
        """
        record = await self.artworks.get(artwork_id, owner_id)
        if record is None:
            raise NotFoundError(f"Artwork {artwork_id} not found")

        self.queue.claim(artwork_id)
        try:
            try:
                image = await self.storage.read(record.image_path)
            except FileNotFoundError as exc:
                raise InvalidInputError("Stored image for this artwork is missing.") from exc
            await self.artworks.reset_for_reanalysis(artwork_id, owner_id)
            refreshed = await self.artworks.get(artwork_id, owner_id)
            if refreshed is None:
                raise NotFoundError(f"Artwork {artwork_id} not found")
            self.queue.enqueue(
                AnalysisJob(
                    artwork_id=artwork_id,
                    owner_id=owner_id,
                    image_b64=base64.b64encode(image).decode("utf-8"),
                    reanalysis=True,
                )
            )
        except Exception:
            self.queue.release(artwork_id)
            raise

        LOGGER.info("Re-analysis queued for artwork %d", artwork_id)
        return refreshed

    async def run_job(self, job: AnalysisJob) -> bool:
        """Queue handler: analyze one artwork and persist the outcome.

        Analysis failures, and results the store cannot write, become a Failed
        record; other store errors are logged.
        Returns True when the analysis result was written.
        """
        try:
            await self.artworks.mark_analyzing(job.artwork_id)
            result = None
            failure: Optional[AnalysisFailedError] = None
            for attempt in range(1, self.max_attempts + 1):
                try:
                    result = await self.analyzer.analyze_image(job.image_b64, job.existing_description)
                    failure = None
                    break
                except AnalysisFailedError as error:
                    failure = error
                except Exception as exc:  # pylint: disable=broad-exception-caught
                    LOGGER.exception("Unexpected analysis error for artwork %d", job.artwork_id)
                    failure = AnalysisFailedError(AnalysisErrorKind.UNKNOWN, str(exc), cause=exc)
                if not failure.retryable or attempt >= self.max_attempts:
                    break
                LOGGER.warning(
                    "Analysis attempt %d/%d for artwork %d failed (%s); retrying",
                    attempt,
                    self.max_attempts,
                    job.artwork_id,
                    failure.kind.value,
                )
                await asyncio.sleep(self.retry_delay * attempt)

            if failure is not None:
                await self._record_failure(job, failure)
                return False

            try:
                applied = await self.artworks.apply_analysis_result(job.artwork_id, result)
            except Exception as exc:  # pylint: disable=broad-exception-caught
                LOGGER.exception("Could not store analysis result for artwork %d", job.artwork_id)
                await self._record_failure(job, AnalysisFailedError(AnalysisErrorKind.UNKNOWN, str(exc), cause=exc))
                return False
            if not applied:
                LOGGER.warning("Artwork %d was deleted before its analysis finished", job.artwork_id)
            return applied
        except Exception:  # pylint: disable=broad-exception-caught
            LOGGER.exception("Could not persist analysis outcome for artwork %d", job.artwork_id)
            return False

    async def regenerate_description(self, artwork_id: int, owner_id: str) -> str:
        """Write and store fresh description prose for an owned artwork.

        Raises:
            NotFoundError: If the artwork is not owned by `owner_id`.
            AnalysisFailedError: If the model call fails.
        """
        record = await self._owned(artwork_id, owner_id)
        groups = self._tag_groups(record)
        description = await self.analyzer.regenerate_description(
            record.title,
            record.medium,
            style=groups["style"],
            themes=groups["themes"],
            colors=groups["colors"],
        )
        await self.artworks.set_description(artwork_id, owner_id, description)
        return description

    async def suggest_price(self, artwork_id: int, owner_id: str) -> int:
        """Estimate, store and return a price in cents for an owned artwork.

        Raises:
            NotFoundError: If the artwork is not owned by `owner_id`.
            AnalysisFailedError: If the model call fails.
        """
        record = await self._owned(artwork_id, owner_id)
        price = await self.analyzer.suggest_price(
            medium=record.medium,
            style=self._tag_groups(record)["style"],
            dimensions=record.dimensions,
            artist=record.artist,
            condition=record.condition,
        )
        cents = to_minor_units(price)
        await self.artworks.set_suggested_price(artwork_id, owner_id, cents)
        return cents

    async def delete(self, artwork_id: int, owner_id: str) -> None:
        """Delete an owned artwork and its stored image files.

        Raises:
            NotFoundError: If the artwork is not owned by `owner_id`.
        """
        record = await self._owned(artwork_id, owner_id)
        if not await self.artworks.delete(artwork_id, owner_id):
            raise NotFoundError(f"Artwork {artwork_id} not found")
        await self.storage.delete(self._stored_files(record))

    async def _owned(self, artwork_id: int, owner_id: str) -> ArtworkRecord:
        record = await self.artworks.get(artwork_id, owner_id)
        if record is None:
            raise NotFoundError(f"Artwork {artwork_id} not found")
        return record

    async def _record_failure(self, job: AnalysisJob, error: AnalysisFailedError) -> None:
        LOGGER.error("Analysis for artwork %d failed (%s): %s", job.artwork_id, error.kind.value, error.reason)
        title = REANALYSIS_FAILED_TITLE if job.reanalysis else FAILED_TITLE
        await self.artworks.apply_analysis_failure(
            job.artwork_id, title, failure_message(error.kind), error.kind.value
        )

    @staticmethod
    def _tag_groups(record: ArtworkRecord) -> Dict[str, List[str]]:
        """Style / theme / color groups from the stored analysis, or guessed from tags once edited."""
        data = record.analysis_data or {}
        groups = {key: data.get(key) for key in ("style", "themes", "colors")}
        if all(isinstance(value, list) for value in groups.values()):
            if groups["style"] + groups["themes"] + groups["colors"] == record.tags:
                return groups
        return split_tags(record.tags)

    @staticmethod
    def _stored_files(record: ArtworkRecord) -> Iterable[str]:
        return [record.image_path, *record.additional_images]
