from .document import Document, is_pdf_bytes
from .processor import DocumentProcessor
