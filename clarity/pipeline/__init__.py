"""Per-turn pipeline: step transitions, progress tracking and orchestration."""

from clarity.pipeline.orchestrator import TurnPipeline
from clarity.pipeline.progress_tracker import ProgressTracker
from clarity.pipeline.transitions import next_step

__all__ = ["ProgressTracker", "TurnPipeline", "next_step"]
