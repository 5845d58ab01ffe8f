"""Build admission buffers from settings."""

import logging

from eventgate.core.settings import EventGateSettings, get_cached_settings
from eventgate.streaming.buffer import AdmissionBuffer
from eventgate.streaming.sync import SynchronizedAdmissionBuffer

logger = logging.getLogger(__name__)


def create_buffer(
    settings: EventGateSettings | None = None,
) -> AdmissionBuffer | SynchronizedAdmissionBuffer:
    """Create an admission buffer configured by settings.

    Args:
        settings: Settings to read the buffer section from. Uses the cached
            settings if None.

    Returns:
        A plain buffer, or a synchronized one if ``buffer.synchronized``.
    """
    settings = settings or get_cached_settings()
    buffer_settings = settings.buffer

    buffer: AdmissionBuffer = AdmissionBuffer(buffer_settings.identity_comparison)
    logger.debug(
        "Created admission buffer (identity_comparison=%s, synchronized=%s)",
        buffer_settings.identity_comparison,
        buffer_settings.synchronized,
    )

    if buffer_settings.synchronized:
        return SynchronizedAdmissionBuffer(buffer)
    return buffer
