"""
Label extraction service.

Receives PDF or image documents over a ZeroMQ PULL socket, extracts the 4x6
shipping labels from each one in a worker thread and writes every label as a
PNG to the output folder. A message is either a single frame holding the
document bytes or two frames: the original filename followed by the bytes.

Labels for a document land in <output folder>/<document name>/ using the
label_page{N}_{position}.png naming scheme (shipping_label.png for images).

To stop the service, use Ctrl+C.
"""

import asyncio
import structlog
import sys
import zmq
import zmq.asyncio
from pathlib import Path
from typing import List, Optional
from document_pkg import Document, DocumentProcessor
from label_extractor import OutputLabel, configure_logging
from .config import ServiceSettings, load_settings
from .message_queue import AsyncQueue, MessageQueue
from .processor import LabelDocumentProcessor

logger = structlog.get_logger(__name__)

POLL_INTERVAL = 0.01  # Prevent high CPU usage while the socket is idle
QUEUE_WAIT_TIMEOUT = 0.1  # Consumer re-checks the shutdown flag this often


def document_from_frames(frames: List[bytes]) -> Document:
    """Build a Document from a one frame (content) or two frame (filename, content) message."""
    if len(frames) >= 2:
        filename = frames[0].decode("utf-8", errors="replace").strip() or None
        return Document(frames[-1], filename=filename)
    return Document(frames[0])


def save_labels(document: Document, labels: List[OutputLabel], output_folder: Path) -> List[Path]:
    """Write each label's PNG into a folder named after the document."""
    document_folder = Path(output_folder) / Path(document.filename).stem
    document_folder.mkdir(parents=True, exist_ok=True)

    saved = []
    for label in labels:
        output_filename = document_folder / label.filename
        output_filename.write_bytes(label.to_png())
        saved.append(output_filename)
    return saved


# Producer
async def producer(queue: MessageQueue[Document], zmq_socket: zmq.asyncio.Socket, shutdown_event: asyncio.Event) -> None:
    while not shutdown_event.is_set():
        try:
            frames: List[bytes] = await zmq_socket.recv_multipart(flags=zmq.NOBLOCK)
            document = document_from_frames(frames)
            await queue.put(document)
            logger.info("Producer received document", filename=document.filename, media_type=document.media_type, script=sys.argv[0])
        except zmq.Again:
            await asyncio.sleep(POLL_INTERVAL)
        except asyncio.CancelledError:
            break
        except zmq.ZMQError as e:
            logger.error("Producer error", error=str(e), script=sys.argv[0])
            await asyncio.sleep(POLL_INTERVAL)

    logger.info("Producer finished.", script=sys.argv[0])


# Consumer
async def consumer(queue: MessageQueue[Document], processor: DocumentProcessor[List[OutputLabel]],
                   shutdown_event: asyncio.Event, output_folder: Path) -> None:
    # Documents already queued when shutdown is requested are still processed
    while not shutdown_event.is_set() or not queue.empty():
        try:
            document: Document = await queue.get(timeout=QUEUE_WAIT_TIMEOUT)
        except asyncio.TimeoutError:
            continue
        except asyncio.CancelledError:
            break

        try:
            logger.info("Consumer processing document", filename=document.filename, script=sys.argv[0])

            labels: List[OutputLabel] = await processor.process(document)

            if labels:
                saved = save_labels(document, labels, output_folder)
                logger.info(
                    "Consumer processed and saved labels",
                    filename=document.filename,
                    labels=[str(path) for path in saved],
                    script=sys.argv[0],
                )
            else:
                logger.error("No labels extracted from document", filename=document.filename, script=sys.argv[0])
        except asyncio.CancelledError:
            break
        except Exception as e:
            logger.exception("Consumer error", filename=document.filename, error=str(e), script=sys.argv[0])
        finally:
            queue.task_done()

    logger.info("Consumer finished.", script=sys.argv[0])


# Main Function
async def main(settings: Optional[ServiceSettings] = None) -> None:
    settings = settings or load_settings()
    queue: MessageQueue[Document] = AsyncQueue(maxsize=settings.queue_maxsize)
    processor: DocumentProcessor[List[OutputLabel]] = LabelDocumentProcessor(page_workers=settings.page_workers)
    shutdown_event = asyncio.Event()

    context: zmq.asyncio.Context = zmq.asyncio.Context()
    socket: zmq.asyncio.Socket = context.socket(zmq.PULL)
    socket.bind(settings.zmq_bind_address)  # Bind to the ZeroMQ socket

    producer_task = asyncio.create_task(producer(queue, socket, shutdown_event))
    consumer_task = asyncio.create_task(consumer(queue, processor, shutdown_event, settings.output_folder))

    try:
        logger.info(
            "Service started. Press Ctrl+C to stop.",
            address=settings.zmq_bind_address,
            output_folder=str(settings.output_folder),
            script=sys.argv[0],
        )
        await shutdown_event.wait()

    except (KeyboardInterrupt, asyncio.CancelledError):
        logger.warning("Service interrupted. Shutting down...", script=sys.argv[0])

    finally:
        shutdown_event.set()  # Signal shutdown

        # Consumer drains the queue before finishing
        results = await asyncio.gather(producer_task, consumer_task, return_exceptions=True)

        # Log any exceptions instead of letting them crash shutdown
        for result in results:
            if isinstance(result, Exception):
                logger.error("Task error during shutdown", error=str(result), script=sys.argv[0])

        logger.info("Shutting down label processor...", script=sys.argv[0])
        processor.shutdown()

        logger.info("Closing ZeroMQ sockets...", script=sys.argv[0])
        socket.close()
        context.term()

        logger.info("Shutdown complete.", script=sys.argv[0])


def run() -> None:
    settings = load_settings()
    configure_logging(settings.log_config)
    try:
        asyncio.run(main(settings))
    except KeyboardInterrupt:
        logger.warning("Service interrupted. Exiting gracefully...", script=sys.argv[0])


if __name__ == "__main__":
    run()
