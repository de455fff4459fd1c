"""External collaborator contracts and their local implementations."""

import asyncio
import io
import re
from pathlib import Path
from typing import Any, Callable, Dict, Optional, Protocol

from career_matcher.config import settings
from career_matcher.core.models import DocumentKind
from career_matcher.utils.logging import get_logger

logger = get_logger(__name__)

ProgressCallback = Callable[[int], None]


class ObjectStorage(Protocol):
    """Stores document bytes and returns an opaque reference."""

    async def store(self, data: bytes, key: str, on_progress: Optional[ProgressCallback] = None) -> str:
        ...


class TextExtractor(Protocol):
    """Turns document bytes into plain text."""

    async def extract_text(self, data: bytes, kind: DocumentKind) -> str:
        ...


class StructuredExtractor(Protocol):
    """Turns résumé text into an object following the given schema."""

    async def extract(self, text: str, schema: Dict[str, Any]) -> Dict[str, Any]:
        ...


class LocalObjectStorage:
    """Object storage backed by a local directory."""

    def __init__(self, root: Optional[str] = None, chunk_size: Optional[int] = None):
        self.root = Path(root or settings.storage_dir)
        self.chunk_size = chunk_size or settings.storage_chunk_size
        self.logger = logger.bind(component="local_object_storage")

    async def store(self, data: bytes, key: str, on_progress: Optional[ProgressCallback] = None) -> str:
        path = self._path_for(key)
        report = None
        if on_progress is not None:
            # Progress is written from a worker thread; deliver it on the event loop
            loop = asyncio.get_running_loop()
            report = lambda value: loop.call_soon_threadsafe(on_progress, value)
        await asyncio.to_thread(self._write, path, data, report)
        self.logger.info("Object stored", key=key, size_bytes=len(data))
        return path.resolve().as_uri()

    def _path_for(self, key: str) -> Path:
        root = self.root.resolve()
        path = (root / key).resolve()
        if root not in path.parents:
            raise ValueError(f"Storage key escapes the storage root: {key!r}")
        return path

    def _write(self, path: Path, data: bytes, on_progress: Optional[ProgressCallback]) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        total = len(data) or 1
        with open(path, "wb") as handle:
            for offset in range(0, len(data), self.chunk_size):
                chunk = data[offset:offset + self.chunk_size]
                handle.write(chunk)
                if on_progress is not None:
                    on_progress(int((offset + len(chunk)) * 100 / total))


class DocumentTextExtractor:
    """Extracts text from PDF (pypdf), DOCX (python-docx) and legacy DOC files."""

    # Runs of printable characters long enough to be prose in a binary .doc
    _DOC_TEXT_RUN = re.compile(rb"[\x20-\x7e\r\n\t]{4,}")

    def __init__(self):
        self.logger = logger.bind(component="document_text_extractor")

    async def extract_text(self, data: bytes, kind: DocumentKind) -> str:
        extractors = {
            DocumentKind.PDF: self._extract_pdf,
            DocumentKind.DOCX: self._extract_docx,
            DocumentKind.DOC: self._extract_doc,
        }
        text = await asyncio.to_thread(extractors[kind], data)
        self.logger.debug("Text extracted", kind=kind.value, characters=len(text))
        return text

    def _extract_pdf(self, data: bytes) -> str:
        from pypdf import PdfReader

        reader = PdfReader(io.BytesIO(data))
        pages = [page.extract_text() or "" for page in reader.pages]
        return "\n".join(pages).strip()

    def _extract_docx(self, data: bytes) -> str:
        import docx

        document = docx.Document(io.BytesIO(data))
        lines = [paragraph.text for paragraph in document.paragraphs]
        for table in document.tables:
            for row in table.rows:
                lines.append(" | ".join(cell.text for cell in row.cells))
        return "\n".join(line for line in lines if line.strip())

    def _extract_doc(self, data: bytes) -> str:
        runs = self._DOC_TEXT_RUN.findall(data)
        return "\n".join(run.decode("ascii").strip() for run in runs if run.strip())
