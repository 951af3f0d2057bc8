"""Apply settings to logging and the HTTP instrumentation points.

Usage:
    from logme.core.setup import configure_from_settings, instrument_from_settings

    settings = configure_from_settings()
    app = FastAPI()
    instrument_from_settings(app, settings)
"""

from typing import Any

from logme.core.config import Settings, get_settings
from logme.observability.events import EventSink
from logme.observability.logger import configure_logging, get_logger
from logme.observability.middleware import instrument_app
from logme.observability.transport import EgressInstrumentation

logger = get_logger(__name__)


def configure_from_settings(settings: Settings | None = None) -> Settings:
    """Configure structlog from settings.

    Args:
        settings: Settings to apply; loaded from the environment when omitted.

    Returns:
        The applied settings.
    """
    settings = settings or get_settings()
    configure_logging(
        log_level=settings.log_level,
        log_format=settings.log_format,
        development_mode=settings.development_mode,
        service_name=settings.service_name,
    )
    logger.debug(
        "logging.configured",
        log_level=settings.log_level,
        log_format=settings.log_format,
    )
    return settings


def instrument_from_settings(
    app: Any,
    settings: Settings | None = None,
    sink: EventSink | None = None,
) -> None:
    """Add the request logging middleware to an app using ``settings.ingress``."""
    settings = settings or get_settings()
    instrument_app(app, config=settings.ingress, sink=sink)


def egress_from_settings(
    settings: Settings | None = None,
    sink: EventSink | None = None,
) -> EgressInstrumentation:
    """Create the egress instrumentation handle using ``settings.egress``."""
    settings = settings or get_settings()
    return EgressInstrumentation(config=settings.egress, sink=sink)
