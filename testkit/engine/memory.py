"""Queries about the host's memory."""

import logging
import os

from testkit.engine.units import Bytes

logger = logging.getLogger(__name__)


def physical_memory() -> Bytes:
    """Return the amount of physical memory of the host.

    Returns:
        Size of the physical memory, or 0 if it cannot be determined

    """
    try:
        page_size = os.sysconf("SC_PAGE_SIZE")
        pages = os.sysconf("SC_PHYS_PAGES")
    except (AttributeError, ValueError, OSError) as e:
        logger.warning(f"Cannot query physical memory: {e}")
        return Bytes(0)

    if page_size <= 0 or pages <= 0:
        return Bytes(0)
    return Bytes(page_size * pages)
