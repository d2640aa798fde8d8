"""Core functionality modules"""

from .cue import CueSheet, Track, parse_cue, load_cue, sanitize_title
from .timestamps import TimePosition, parse_time_position, to_seconds
from .split_orchestrator import SplitOrchestrator, SplitState, SplitAttempt, verify_direct_split
from .audio_processor import process_single_pair
from .job_orchestrator import RunResult, split_directory

__all__ = [
    "CueSheet",
    "Track",
    "parse_cue",
    "load_cue",
    "sanitize_title",
    "TimePosition",
    "parse_time_position",
    "to_seconds",
    "SplitOrchestrator",
    "SplitState",
    "SplitAttempt",
    "verify_direct_split",
    "process_single_pair",
    "RunResult",
    "split_directory",
]
