"""Text extraction pipeline for uploaded documents."""

import asyncio
import io
import logging

from PyPDF2 import PasswordType, PdfReader
from PyPDF2.errors import DependencyError, FileNotDecryptedError, PdfReadError

from ..entities.document import PDF_MEDIA_TYPE, DocumentRecord
from ..entities.errors import BlobNotFoundError
from ..entities.extraction import ExtractionErrorKind, ExtractionResult
from ..interfaces.blob_storage import BlobStorage

logger = logging.getLogger(__name__)

PAGE_SEPARATOR = "\n\n"


def page_error_marker(page_number: int) -> str:
    return f"[Error extracting text from page {page_number}]"


class TextExtractionPipeline:
    """
    Converts a document's bytes into plain text.

    Extraction is a pure function of the document's bytes. Pages are parsed
    one at a time in a worker thread, so the event loop regains control
    between pages. Nothing is retried automatically.
    """

    def __init__(self, storage: BlobStorage):
        self._storage = storage

    async def extract(self, record: DocumentRecord) -> ExtractionResult:
        if record.media_type != PDF_MEDIA_TYPE:
            logger.warning(f"File type not supported for text extraction: {record.media_type}")
            return ExtractionResult.unsupported(record.id, record.media_type)

        logger.info(f"Extracting text from PDF: {record.display_name}")
        try:
            data = await self._storage.fetch(record.source_location)
        except BlobNotFoundError as e:
            logger.error(f"Could not fetch {record.source_location}: {e}")
            return ExtractionResult.failure(
                record.id,
                ExtractionErrorKind.NOT_FOUND,
                f'Could not download "{record.display_name}". Please check your connection and try again.',
            )

        try:
            reader = await asyncio.to_thread(self._open, data)
        except FileNotDecryptedError:
            return self._encrypted(record)
        except DependencyError as e:
            logger.error(f"PDF processing components unavailable: {e}")
            return ExtractionResult.failure(
                record.id,
                ExtractionErrorKind.RUNTIME,
                f"Failed to initialize PDF processing components: {e}",
            )
        except (PdfReadError, ValueError, KeyError, TypeError) as e:
            logger.error(f"Invalid PDF {record.display_name}: {e}")
            return ExtractionResult.failure(
                record.id,
                ExtractionErrorKind.INVALID,
                f'The file "{record.display_name}" is not a valid PDF or is corrupted.',
            )

        if reader is None:
            return self._encrypted(record)

        try:
            num_pages = len(reader.pages)
        except (PdfReadError, FileNotDecryptedError, ValueError, KeyError) as e:
            logger.error(f"Could not read page tree of {record.display_name}: {e}")
            return ExtractionResult.failure(
                record.id,
                ExtractionErrorKind.INVALID,
                f'The file "{record.display_name}" is not a valid PDF or is corrupted.',
            )
        logger.info(f"PDF loaded: {num_pages} pages")

        page_texts = []
        for index in range(num_pages):
            page_texts.append(await self._extract_page(reader, index))

        text = PAGE_SEPARATOR.join(page_texts).strip()
        logger.info(f"Finished extracting text from {record.display_name}. Total length: {len(text)}")
        return ExtractionResult.success(record.id, text)

    def _open(self, data: bytes):
        """Open a PDF, returning ``None`` when it needs a password."""
        reader = PdfReader(io.BytesIO(data))
        if reader.is_encrypted and reader.decrypt("") == PasswordType.NOT_DECRYPTED:
            return None
        return reader

    async def _extract_page(self, reader: PdfReader, index: int) -> str:
        page_number = index + 1
        try:
            text = await asyncio.to_thread(self._page_text, reader, index)
            logger.debug(f"Extracted text from page {page_number}")
            return text
        except Exception as e:
            logger.error(f"Error processing page {page_number}: {e}")
            return page_error_marker(page_number)

    @staticmethod
    def _page_text(reader: PdfReader, index: int) -> str:
        page = reader.pages[index]
        return " ".join((page.extract_text() or "").split())

    @staticmethod
    def _encrypted(record: DocumentRecord) -> ExtractionResult:
        logger.warning(f"PDF {record.display_name} is password protected")
        return ExtractionResult.failure(
            record.id,
            ExtractionErrorKind.ENCRYPTED,
            f'Could not extract text. The PDF file "{record.display_name}" is password protected.',
        )
