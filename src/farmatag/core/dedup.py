"""
Scan deduplication - keeps one physical label from being reported every frame.
"""

import logging
import math

from ..models import StampPolicy
from ..utils.constants import DEFAULT_SCAN_COOLDOWN

logger = logging.getLogger(__name__)


class ScanDeduplicator:
    """Cooldown gate deciding whether a classified observation is emitted."""

    def __init__(
        self,
        cooldown: float = DEFAULT_SCAN_COOLDOWN,
        policy: StampPolicy = StampPolicy.ALWAYS,
    ):
        self.cooldown = cooldown
        self.policy = policy
        self.last_scan_time = -math.inf

    def should_emit(self, now: float) -> bool:
        """
        Check the cooldown and stamp according to the policy.

        Args:
            now: Current session clock in seconds

        Returns:
            True if at least `cooldown` seconds passed since the last stamp
        """
        allowed = now - self.last_scan_time >= self.cooldown
        if allowed or self.policy is StampPolicy.ALWAYS:
            self.last_scan_time = now
        if not allowed:
            logger.debug(f"Scan suppressed by cooldown at t={now:.3f}")
        return allowed
