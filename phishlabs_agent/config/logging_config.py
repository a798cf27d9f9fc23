import logging

LOG_FORMAT = '%(asctime)s [%(levelname)s] %(name)s: %(message)s'

def configure_logging(log_level: str = "INFO") -> None:
    """Configures the root logger once for the whole process."""
    level = getattr(logging, log_level.upper(), logging.INFO)
    root_logger = logging.getLogger()
    if not root_logger.handlers:
        logging.basicConfig(level=level, format=LOG_FORMAT)
    root_logger.setLevel(level)
    # httpx logs every request line at INFO, including the upstream URL
    logging.getLogger("httpx").setLevel(max(level, logging.WARNING))
