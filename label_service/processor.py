import asyncio
import structlog
import sys
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional
from document_pkg import Document, DocumentProcessor
from label_extractor import (
    LabelExtractorError,
    OutputLabel,
    collect_labels,
    extract_labels_from_image,
    extract_labels_from_pdf,
)

logger = structlog.get_logger(__name__)


class UnsupportedDocumentError(LabelExtractorError):
    """Raised for documents that are neither a PDF nor a raster image."""
    pass


# Label Processor Implementation
class LabelDocumentProcessor(DocumentProcessor[List[OutputLabel]]):

    def __init__(self, page_workers: Optional[int] = None):
        self.page_workers = page_workers
        self.executor = ThreadPoolExecutor()

    async def process(self, document: Document) -> List[OutputLabel]:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(self.executor, self.process_sync, document)

    def process_sync(self, document: Document) -> List[OutputLabel]:
        """Blocking extraction, run on the executor."""
        if document.is_pdf:
            results = extract_labels_from_pdf(document.content, max_workers=self.page_workers)
            for result in results:
                if not result.ok:
                    logger.error(
                        "Page skipped",
                        filename=document.filename,
                        page=result.page_number,
                        error=str(result.error),
                        script=sys.argv[0],
                    )
            return collect_labels(results)

        if document.is_image:
            return extract_labels_from_image(document.content)

        raise UnsupportedDocumentError(f"{document.filename} is not a PDF or image file")

    def shutdown(self) -> None:
        """Ensure the executor shuts down cleanly."""
        self.executor.shutdown(wait=True, cancel_futures=True)
