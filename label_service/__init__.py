from .config import ServiceSettings, load_settings
from .message_queue import AsyncQueue, MessageQueue
from .processor import LabelDocumentProcessor, UnsupportedDocumentError
from .service import consumer, document_from_frames, main, producer, run, save_labels
