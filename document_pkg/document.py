import io
import time
import uuid
from functools import cached_property
from pathlib import Path
from typing import Optional

from PIL import Image, UnidentifiedImageError

PDF_MAGIC = b"%PDF-"
PDF_MEDIA_TYPE = "application/pdf"


def is_pdf_bytes(data: bytes) -> bool:
    """True when the %PDF- header appears within the first 1 KiB, after optional whitespace."""
    return data[:1024].lstrip().startswith(PDF_MAGIC)


def _generated_filename() -> str:
    return f"document_{time.strftime('%Y%m%d%H%M%S')}_{uuid.uuid4()}"


# Document Representation
class Document:
    def __init__(self, content: bytes, filename: str = None):
        self.content: bytes = content
        # A name with no usable stem would escape the per-document output folder
        if not filename or Path(filename).stem in ("", ".", ".."):
            filename = _generated_filename()
        self.filename: str = filename

    @cached_property
    def media_type(self) -> Optional[str]:
        """application/pdf, the image/* type Pillow identifies, or None when unrecognised."""
        if is_pdf_bytes(self.content):
            return PDF_MEDIA_TYPE
        try:
            with Image.open(io.BytesIO(self.content)) as image:
                image_format = image.format
        except (UnidentifiedImageError, OSError):
            return None
        return Image.MIME.get(image_format, f"image/{image_format.lower()}")

    @property
    def is_pdf(self) -> bool:
        return self.media_type == PDF_MEDIA_TYPE

    @property
    def is_image(self) -> bool:
        media_type = self.media_type
        return media_type is not None and media_type.startswith("image/")

    def __repr__(self) -> str:
        return f"Document(filename={self.filename!r}, size={len(self.content)}, media_type={self.media_type!r})"
