"""
Detection Pipeline

Turns one frame's raw detector output into emitted ScanResults.

Per observation, in input order:
1. Classify quality - unreadable reads are skipped
2. Decode GS1 fields and check the cooldown gate
3. Emit, attaching the most recent authenticity signals; the first
   GOOD-or-better emission ends the frame (multi-code packaging would
   otherwise emit several results at once)

A frame without any usable observation yields the next hint from a fixed
rotation of instructional messages.
"""

import itertools
import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

from ..models import QualityTier, RawObservation, ScanResult
from ..utils.constants import NO_DETECTION_HINTS
from .authenticity import AuthenticitySignalBuffer
from .dedup import ScanDeduplicator
from .gs1 import decode_payload
from .quality import classify_observation, quality_message

logger = logging.getLogger(__name__)


@dataclass
class FrameOutcome:
    """What one pipeline pass produced."""

    results: list[ScanResult] = field(default_factory=list)
    messages: list[str] = field(default_factory=list)
    focus_point: tuple[float, float] | None = None


class DetectionPipeline:
    """
    Composes decoder, quality classifier and deduplicator.

    Stateless apart from the deduplicator, the hint rotation and a scan
    counter; a single frame is processed synchronously to completion.
    """

    def __init__(
        self,
        deduplicator: ScanDeduplicator,
        authenticity: AuthenticitySignalBuffer,
        decoder: Callable[[str], dict[str, str]] = decode_payload,
        hints: Sequence[str] = NO_DETECTION_HINTS,
    ):
        self.deduplicator = deduplicator
        self.authenticity = authenticity
        self.decoder = decoder
        self._hints = tuple(hints)
        self._hint_cycle = itertools.cycle(self._hints)
        self.scan_count = 0

    def process_frame(
        self, observations: Sequence[RawObservation], now: float
    ) -> FrameOutcome:
        """
        Run one frame's observations through the pipeline.

        Args:
            observations: Detector output for the frame, in detector order
            now: Session clock in seconds

        Returns:
            FrameOutcome with emitted results and advisory messages
        """
        outcome = FrameOutcome()
        usable = False

        if observations:
            outcome.focus_point = observations[0].center

        for observation in observations:
            quality = classify_observation(observation)
            if quality is QualityTier.UNREADABLE:
                continue
            usable = True

            fields = self.decoder(observation.payload)
            if not self.deduplicator.should_emit(now):
                continue

            result = ScanResult(
                payload=observation.payload,
                quality=quality,
                fields=fields,
                timestamp=now,
                authenticity_signals=self.authenticity.recent(now),
            )
            self._record(result)
            outcome.results.append(result)
            outcome.messages.append(quality_message(quality))

            if quality.is_reliable:
                break

        if not usable and self._hints:
            outcome.messages.append(next(self._hint_cycle))

        return outcome

    def _record(self, result: ScanResult) -> None:
        """Count and log an emitted scan."""
        self.scan_count += 1
        if not result.quality.is_reliable:
            logger.debug(f"Low quality scan emitted: {result.payload[:30]}")
            return

        holograms = len(result.authenticity_signals)
        hologram_info = f" (+ {holograms} hologram(s))" if holograms else ""
        logger.info(
            f"Data matrix scanned (#{self.scan_count}){hologram_info}: "
            f"{result.payload[:30]}"
        )
        if result.fields:
            logger.info(f"Parsed fields: {dict(result.fields)}")

        for index, hologram in enumerate(result.pharmaceutical_signals, start=1):
            logger.debug(
                f"  Hologram {index}: confidence {hologram.confidence * 100:.1f}%, "
                f"reflectance {hologram.reflective_intensity:.2f}"
            )
