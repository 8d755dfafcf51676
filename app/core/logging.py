import logging
import sys
from app.core.config import settings

AUDIT_LOGGER_NAME = "idp.audit"

def configure_logging() -> None:
    """
    Configure structured logging for the application.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel(settings.log_level)

    # Remove existing handlers
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    # Create console handler
    handler = logging.StreamHandler(sys.stdout)
    formatter = logging.Formatter(
        fmt="%(asctime)s [%(levelname)s] [%(name)s] %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S%z"
    )
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)

    # Audit lines are already structured; print them bare
    audit_logger = logging.getLogger(AUDIT_LOGGER_NAME)
    audit_logger.propagate = False
    for existing in audit_logger.handlers[:]:
        audit_logger.removeHandler(existing)
    audit_handler = logging.StreamHandler(sys.stdout)
    audit_handler.setFormatter(logging.Formatter(fmt="%(message)s"))
    audit_logger.addHandler(audit_handler)

    # Silence noise
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
