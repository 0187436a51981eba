import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

DEFAULT_ZMQ_BIND_ADDRESS = "tcp://*:5555"  # Use * for all available interfaces
DEFAULT_OUTPUT_FOLDER = "output_png"
DEFAULT_LOG_CONFIG = "logging_config.yaml"
DEFAULT_QUEUE_MAXSIZE = 10


@dataclass(frozen=True)
class ServiceSettings:
    zmq_bind_address: str = DEFAULT_ZMQ_BIND_ADDRESS
    output_folder: Path = Path(DEFAULT_OUTPUT_FOLDER)
    log_config: str = DEFAULT_LOG_CONFIG
    queue_maxsize: int = DEFAULT_QUEUE_MAXSIZE
    page_workers: Optional[int] = None  # Threads per PDF; None lets the executor decide


def _optional_int(value: Optional[str], name: str) -> Optional[int]:
    if value is None or value.strip() == "":
        return None
    try:
        return int(value)
    except ValueError as e:
        raise ValueError(f"{name} must be an integer, got {value!r}") from e


def load_settings(environ: Optional[Mapping[str, str]] = None) -> ServiceSettings:
    """Build settings from LABEL_* environment variables, falling back to the defaults."""
    env = os.environ if environ is None else environ
    queue_maxsize = _optional_int(env.get("LABEL_QUEUE_MAXSIZE"), "LABEL_QUEUE_MAXSIZE")
    return ServiceSettings(
        zmq_bind_address=env.get("LABEL_ZMQ_BIND_ADDRESS", DEFAULT_ZMQ_BIND_ADDRESS),
        output_folder=Path(env.get("LABEL_OUTPUT_FOLDER", DEFAULT_OUTPUT_FOLDER)),
        log_config=env.get("LABEL_LOG_CONFIG", DEFAULT_LOG_CONFIG),
        queue_maxsize=DEFAULT_QUEUE_MAXSIZE if queue_maxsize is None else queue_maxsize,
        page_workers=_optional_int(env.get("LABEL_PAGE_WORKERS"), "LABEL_PAGE_WORKERS"),
    )
