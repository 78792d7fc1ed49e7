"""
Scan policy enums shared by configuration and the deduplicator.
"""

from enum import Enum


class StampPolicy(Enum):
    """
    When the deduplicator refreshes its last-scan timestamp.

    ALWAYS: on every call, including suppressed ones. A steady stream of
        reads keeps extending the quiet window until the stream pauses for
        a full cooldown.
    ON_EMIT: only when a scan is allowed through. Emits at most once per
        cooldown while reads keep arriving.
    """

    ALWAYS = "always"
    ON_EMIT = "on_emit"
