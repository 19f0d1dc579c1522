"""Reject bundles the transport could not carry.

The upload sends the whole bundle as one message. Anything larger than 90%
of the transport's maximum message size is refused before a network call is
made; the remaining 10% is headroom for the call's own framing.
"""

from __future__ import annotations

from provisioner.core.errors import BundleTooLargeError
from provisioner.core.logging import get_logger
from provisioner.core.settings import BUNDLE_SIZE_RATIO, DEFAULT_MAX_MESSAGE_LENGTH

logger = get_logger(__name__)


def size_limit(max_message_length: int = DEFAULT_MAX_MESSAGE_LENGTH) -> float:
    """Largest permitted bundle size for a given transport maximum."""
    return max_message_length * BUNDLE_SIZE_RATIO


def check_bundle_size(
    size: int,
    max_message_length: int = DEFAULT_MAX_MESSAGE_LENGTH,
    *,
    name: str | None = None,
) -> None:
    """Raise ``BundleTooLargeError`` if ``size`` exceeds the limit.

    A bundle exactly at the limit is accepted.
    """
    limit = size_limit(max_message_length)
    if size > limit:
        logger.error("bundle.too_large", bundle=name, size_bytes=size, limit=limit)
        raise BundleTooLargeError(size=size, limit=limit, name=name)
    logger.debug("bundle.size_ok", bundle=name, size_bytes=size, limit=limit)
