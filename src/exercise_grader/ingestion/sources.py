"""
Raw inputs accepted by the ingestion pipeline.

A RawInput is what a file picker, a drag-drop or a clipboard paste hands
over: a name, a declared media type and either a path or in-memory bytes.
Nothing is read or validated until the pipeline decodes it.
"""

import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Union

from exercise_grader.config.constants import CLIPBOARD_PLACEHOLDER_NAME, IMAGE_MEDIA_PREFIX


@dataclass(frozen=True)
class RawInput:
    """One candidate image, not yet decoded."""
    name: str
    media_type: str  # Declared by the source, e.g. "image/png"
    data: Optional[bytes] = None
    path: Optional[Path] = None

    def __post_init__(self):
        if self.data is None and self.path is None:
            raise ValueError("RawInput needs either data or a path")

    @property
    def is_image(self) -> bool:
        return self.media_type.lower().startswith(IMAGE_MEDIA_PREFIX)

    def read_bytes(self) -> bytes:
        """Blocking read; called from a worker thread."""
        if self.data is not None:
            return self.data
        return self.path.read_bytes()

    @classmethod
    def from_path(cls, path: Union[str, Path]) -> "RawInput":
        """File picker or drag-drop: media type guessed from the extension."""
        path = Path(path)
        media_type, _ = mimetypes.guess_type(path.name)
        return cls(
            name=path.name,
            media_type=media_type or "application/octet-stream",
            path=path,
        )

    @classmethod
    def from_bytes(
        cls,
        data: bytes,
        media_type: str = "image/png",
        name: str = None
    ) -> "RawInput":
        """Clipboard paste: bytes with a declared type and a placeholder name."""
        return cls(
            name=name or CLIPBOARD_PLACEHOLDER_NAME,
            media_type=media_type,
            data=data,
        )
