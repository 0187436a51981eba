import logging
import logging.config
import os
import structlog
import yaml

DEFAULT_LOG_CONFIG = "logging_config.yaml"


def configure_logging(log_config: str = DEFAULT_LOG_CONFIG) -> None:
    """Load the stdlib logging config from YAML and route structlog through it as JSON."""
    if os.path.exists(log_config):
        with open(log_config, "r") as f:
            config = yaml.safe_load(f)
            logging.config.dictConfig(config)
    else:
        logging.basicConfig(level=logging.INFO, format="%(message)s")

    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),  # ISO timestamps on every event
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer()
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True
    )
