import logging

LOG_FORMAT = "%(asctime)s | %(name)s | %(levelname)s | %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging once for the host process."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
    )
    # httpx logs every request at INFO; keep grid polling quiet.
    logging.getLogger("httpx").setLevel(logging.WARNING)
