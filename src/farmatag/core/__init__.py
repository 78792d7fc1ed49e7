"""
Scanner core - decoding, classification, deduplication and camera control.

Components (leaf-first):
  gs1         - GS1 Application Identifier decoder
  quality     - Observation quality tiers
  dedup       - Cooldown gate for emitted scans
  pipeline    - Per-frame composition of the three above
  distance    - Guidance states with transition-only reporting
  controller  - Zoom/focus commands with budgets and rate limits
  scheduler   - Deferred follow-up actions
"""

from .authenticity import AuthenticitySignalBuffer
from .controller import ControllerBudget, ControlOutput, ZoomFocusController
from .dedup import ScanDeduplicator
from .distance import DistanceGuidanceEngine, ThresholdDistanceClassifier
from .gs1 import decode_payload, format_gs1_date
from .pipeline import DetectionPipeline, FrameOutcome
from .quality import QUALITY_RULES, QualityRule, classify, classify_observation
from .scheduler import Scheduler, ThreadingScheduler, VirtualScheduler

__all__ = [
    "AuthenticitySignalBuffer",
    "ControlOutput",
    "ControllerBudget",
    "DetectionPipeline",
    "DistanceGuidanceEngine",
    "FrameOutcome",
    "QUALITY_RULES",
    "QualityRule",
    "ScanDeduplicator",
    "Scheduler",
    "ThreadingScheduler",
    "ThresholdDistanceClassifier",
    "VirtualScheduler",
    "ZoomFocusController",
    "classify",
    "classify_observation",
    "decode_payload",
    "format_gs1_date",
]
