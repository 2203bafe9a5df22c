"""Export formats and the payload handed to export sinks."""

from dataclasses import dataclass
from enum import Enum


class ExportFormat(str, Enum):
    """Supported export formats."""

    JSON = "json"
    CSV = "csv"
    TXT = "txt"
    HTML = "html"

    @property
    def mime_type(self) -> str:
        return MIME_TYPES[self]

    @property
    def extension(self) -> str:
        return self.value


MIME_TYPES = {
    ExportFormat.JSON: "application/json",
    ExportFormat.CSV: "text/csv",
    ExportFormat.TXT: "text/plain",
    ExportFormat.HTML: "text/html",
}


@dataclass(frozen=True)
class ExportPayload:
    """Serialized export ready for a sink."""

    data: bytes
    filename: str
    mime_type: str

    @property
    def text(self) -> str:
        return self.data.decode("utf-8")
