"""Batch processing of every CUE+audio pair under a directory"""
import os
import traceback
from dataclasses import dataclass, replace

from .audio_processor import process_single_pair
from .embedded_cue import extract_embedded_cue, find_embedded_cue_candidates, write_temporary_cue
from .errors import CueSplitterError, EmbeddedCueNotFoundError, NoMatchingAudioError
from .file_finder import find_cue_files, match_audio_file

SUCCESS = "success"
FAILED = "failed"
SKIPPED = "skipped"


@dataclass(frozen=True)
class RunResult:
    """Aggregate outcome of a scan; record() returns a new value"""

    total: int = 0
    succeeded: int = 0
    failed: int = 0
    skipped: int = 0

    def record(self, status):
        if status == SUCCESS:
            return replace(self, total=self.total + 1, succeeded=self.succeeded + 1)
        if status == SKIPPED:
            return replace(self, total=self.total + 1, skipped=self.skipped + 1)
        return replace(self, total=self.total + 1, failed=self.failed + 1)


def _run_pair(cue_path, audio_file, toolchain, log, archive_cue, frame_accurate, log_prefix):
    """Per-pair error boundary: every failure becomes a FAILED status"""
    try:
        process_single_pair(
            cue_path, audio_file, toolchain, log,
            archive_cue=archive_cue, frame_accurate=frame_accurate, log_prefix=log_prefix,
        )
    except CueSplitterError as e:
        log(f"{log_prefix} ❌ {e}")
        log(f"{log_prefix} ✗ Failed to process: {os.path.basename(audio_file)} - continuing with next file")
        return FAILED
    except Exception as e:
        log(f"{log_prefix} 💥 Fatal error: {str(e)}")
        log(f"{log_prefix} Stack trace:\n{traceback.format_exc()}")
        return FAILED

    log(f"{log_prefix} ✓ Successfully processed: {os.path.basename(audio_file)}")
    return SUCCESS


def _process_cue(cue_path, toolchain, log, frame_accurate, log_prefix):
    dir_path = os.path.dirname(cue_path)
    log(f"{log_prefix} 📄 Processing CUE file: {os.path.basename(cue_path)} in {os.path.basename(dir_path)}")

    try:
        audio_file = match_audio_file(cue_path, log)
    except NoMatchingAudioError as e:
        cue_base = os.path.splitext(os.path.basename(cue_path))[0]
        log(f"{log_prefix} ⚠️ {e}")
        log(f"{log_prefix} ⚠️   Looking for: {cue_base}.{{flac,ape,wv}}")
        log(f"{log_prefix} ⚠️   In directory: {dir_path}")
        log(f"{log_prefix} ⚠️   Available audio files:")
        for candidate in e.candidates or ["(none)"]:
            log(f"{log_prefix} ⚠️     {candidate}")
        return SKIPPED

    return _run_pair(cue_path, audio_file, toolchain, log, True, frame_accurate, log_prefix)


def _process_embedded(audio_file, toolchain, log, frame_accurate, log_prefix):
    log(f"{log_prefix} 📎 Processing file with embedded cue sheet: {os.path.basename(audio_file)}")
    try:
        text = extract_embedded_cue(audio_file, toolchain.prober, log)
    except EmbeddedCueNotFoundError as e:
        log(f"{log_prefix} ⚠️ {e}")
        return SKIPPED

    temp_cue = write_temporary_cue(text)
    try:
        return _run_pair(temp_cue, audio_file, toolchain, log, False, frame_accurate, log_prefix)
    finally:
        if os.path.exists(temp_cue):
            os.remove(temp_cue)


def log_summary(result, log):
    log("================================")
    log("📊 Processing Summary:")
    log(f"   Total pairs found: {result.total}")
    log(f"   Successfully processed: {result.succeeded}")
    if result.failed:
        log(f"❌  Failed: {result.failed}")
    if result.skipped:
        log(f"⚠️  Skipped: {result.skipped}")
    log("================================")


def split_directory(root_path, toolchain, log, frame_accurate=False):
    """
    Process every CUE+audio pair found under root_path, one at a time.

    When the tree holds no .cue file at all, audio files with an embedded
    cue sheet are processed instead. A failing pair never stops the batch.

    Args:
        root_path: Root directory to scan
        toolchain: Toolchain used for every external tool
        log: Function to call for logging messages
        frame_accurate: Keep CUE frames in fallback split boundaries

    Returns:
        RunResult with total, succeeded, failed and skipped counts
    """
    result = RunResult()
    root_path = os.path.abspath(root_path)
    log(f"🔍 Scanning directory: {root_path}")

    cue_paths = find_cue_files(root_path, log_func=log)
    if cue_paths:
        log(f"✅ Found {len(cue_paths)} CUE file(s) to process")
        for idx, cue_path in enumerate(cue_paths, 1):
            log_prefix = f"[Pair {idx}/{len(cue_paths)}]"
            result = result.record(_process_cue(cue_path, toolchain, log, frame_accurate, log_prefix))
    else:
        log("ℹ️ No external CUE files found, checking for embedded cue sheets...")
        candidates = find_embedded_cue_candidates(root_path, toolchain.prober, log)
        if not candidates:
            log(f"⚠️ No CUE files or embedded cue sheets found in: {root_path}")
        else:
            log(f"✅ Found {len(candidates)} file(s) with embedded cue sheets")
        for idx, audio_file in enumerate(candidates, 1):
            log_prefix = f"[File {idx}/{len(candidates)}]"
            result = result.record(_process_embedded(audio_file, toolchain, log, frame_accurate, log_prefix))

    log_summary(result, log)
    return result
