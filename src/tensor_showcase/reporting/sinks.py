"""Export sinks that take a serialized payload and persist it."""

from pathlib import Path
from typing import List, Protocol

from loguru import logger

from .formats import ExportPayload


class ExportSink(Protocol):
    """Anything that can accept an export payload."""

    def save(self, payload: ExportPayload) -> object:
        ...


class FileSink:
    """Writes payloads into a directory under their suggested filename."""

    def __init__(self, output_dir: Path) -> None:
        """Initialize file sink.

        Args:
            output_dir: Base output directory.
        """
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def save(self, payload: ExportPayload) -> Path:
        path = self.output_dir / payload.filename
        path.write_bytes(payload.data)
        logger.info(f"Saved {payload.mime_type} export to {path}")
        return path


class MemorySink:
    """Keeps payloads in memory; useful for previews and tests."""

    def __init__(self) -> None:
        self.payloads: List[ExportPayload] = []

    def save(self, payload: ExportPayload) -> ExportPayload:
        self.payloads.append(payload)
        return payload
