"""
Ingestion pipeline: raw inputs to idle submissions.

Flow:
    1. Keep only inputs whose declared media type is image/*
    2. Decode every accepted input concurrently (worker threads)
    3. Wait for all of them, dropping the ones that fail
    4. Append the survivors in one store update, in completion order
    5. Emit BatchIngested so the UI layer can select and switch view
"""

import asyncio
import io
import mimetypes
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Callable, Iterable, List, Optional, Set, Tuple

from loguru import logger
from PIL import Image

from exercise_grader.config.constants import GENERIC_PLACEHOLDER_NAMES, PIL_FORMAT_MIME_TYPES
from exercise_grader.core.exceptions import DecodeError, NoImageInputError
from exercise_grader.core.models import Submission, build_data_uri, now_ms
from exercise_grader.core.store import SubmissionStore
from exercise_grader.ingestion.sources import RawInput
from exercise_grader.prompts.translations import get_message


@dataclass(frozen=True)
class BatchIngested:
    """Event emitted once a batch has been appended to the store."""
    ids: Tuple[str, ...]

    @property
    def last_id(self) -> Optional[str]:
        return self.ids[-1] if self.ids else None


@dataclass
class IngestionReport:
    """Outcome of one ingest() call."""
    submissions: List[Submission] = field(default_factory=list)
    skipped_names: List[str] = field(default_factory=list)  # Not image/*
    failed_names: List[str] = field(default_factory=list)   # Decode failed

    @property
    def ids(self) -> List[str]:
        return [s.id for s in self.submissions]

    @property
    def accepted_count(self) -> int:
        return len(self.submissions)


BatchListener = Callable[[BatchIngested], None]


def decode_image(raw: RawInput) -> Tuple[bytes, str]:
    """
    Read and verify one image (blocking).

    Returns:
        (bytes, mime_type) with the MIME type detected by Pillow when known

    Raises:
        DecodeError: Unreadable file or not a decodable image
    """
    try:
        data = raw.read_bytes()
    except OSError as e:
        raise DecodeError(f"Cannot read {raw.name}: {e}", {"name": raw.name}) from e

    if not data:
        raise DecodeError(f"Empty input: {raw.name}", {"name": raw.name})

    try:
        with Image.open(io.BytesIO(data)) as img:
            detected_format = img.format
            img.verify()
    except Exception as e:
        # Pillow raises DecompressionBombError, struct.error, IndexError... on bad files
        raise DecodeError(f"Cannot decode {raw.name}: {e}", {"name": raw.name}) from e

    mime_type = PIL_FORMAT_MIME_TYPES.get(detected_format or "", raw.media_type)
    return data, mime_type


def is_placeholder_name(name: str) -> bool:
    return name.strip().lower() in GENERIC_PLACEHOLDER_NAMES


class IngestionPipeline:
    """
    Turns picked, dropped or pasted inputs into idle submissions.

    Usage:
        pipeline = IngestionPipeline(store, language="vi")
        report = await pipeline.ingest([RawInput.from_path("hw1.png")])
    """

    def __init__(
        self,
        store: SubmissionStore,
        language: str = "vi",
        clock: Callable[[], datetime] = datetime.now
    ):
        self.store = store
        self.language = language
        self.clock = clock
        self._listeners: List[BatchListener] = []

    def subscribe(self, listener: BatchListener) -> Callable[[], None]:
        """Register a BatchIngested listener; returns the unsubscribe function."""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    async def ingest(self, inputs: Iterable[RawInput]) -> IngestionReport:
        """
        Ingest a batch of raw inputs.

        Raises:
            NoImageInputError: No input declares an image media type
        """
        inputs = list(inputs)
        accepted = [raw for raw in inputs if raw.is_image]
        report = IngestionReport(skipped_names=[raw.name for raw in inputs if not raw.is_image])

        if not accepted:
            raise NoImageInputError(
                get_message("no_image_input", self.language),
                {"names": report.skipped_names},
            )

        if report.skipped_names:
            logger.info(f"Ignoring {len(report.skipped_names)} non-image input(s)")

        decoded: List[Tuple[RawInput, bytes, str]] = []
        pending = [self._decode(raw) for raw in accepted]
        for next_done in asyncio.as_completed(pending):
            raw, outcome = await next_done
            if isinstance(outcome, DecodeError):
                logger.debug(f"Dropping {raw.name}: {outcome.message}")
                report.failed_names.append(raw.name)
                continue
            data, mime_type = outcome
            decoded.append((raw, data, mime_type))

        if not decoded:
            logger.info("No input could be decoded, nothing ingested")
            return report

        report.submissions = self._build_submissions(decoded)
        self.store.append_batch(report.submissions)
        logger.info(
            f"Ingested {report.accepted_count} submission(s)"
            + (f", {len(report.failed_names)} failed to decode" if report.failed_names else "")
        )

        event = BatchIngested(ids=tuple(report.ids))
        for listener in list(self._listeners):
            listener(event)

        return report

    async def _decode(self, raw: RawInput):
        try:
            return raw, await asyncio.to_thread(decode_image, raw)
        except DecodeError as e:
            return raw, e

    # ==================== NAMING ====================

    def _build_submissions(self, decoded: List[Tuple[RawInput, bytes, str]]) -> List[Submission]:
        taken: Set[str] = {s.file_name for s in self.store.submissions}
        submissions = []

        for raw, data, mime_type in decoded:
            file_name = raw.name
            if is_placeholder_name(raw.name):
                file_name = self._paste_name(raw.name, mime_type, taken)
            taken.add(file_name)

            submissions.append(Submission(
                file_name=file_name,
                image_url=build_data_uri(data, mime_type),
                uploaded_at=now_ms(),
            ))

        return submissions

    def _paste_name(self, placeholder: str, mime_type: str, taken: Set[str]) -> str:
        """Time-derived name for pasted images, e.g. Bai_lam_14-05-09.png."""
        extension = Path(placeholder).suffix or mimetypes.guess_extension(mime_type) or ".png"
        stem = f"{get_message('paste_name_prefix', self.language)}_{self.clock().strftime('%H-%M-%S')}"

        candidate = f"{stem}{extension}"
        counter = 2
        while candidate in taken:
            candidate = f"{stem}_{counter}{extension}"
            counter += 1
        return candidate
