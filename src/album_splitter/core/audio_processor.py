"""Processing of a single CUE+audio pair"""
import os

from .archive import archive_originals, create_working_dir, discard_files, discard_working_dir
from .cue import load_cue
from .normalizer import source_audio
from .split_orchestrator import SplitOrchestrator
from ..utils.encoding import write_utf8_cue


def process_single_pair(cue_path, audio_file, toolchain, log, archive_cue=True,
                        frame_accurate=False, log_prefix=""):
    """
    Split one audio image into tracks and archive the originals.

    On success the tracks sit next to the audio file and the audio file
    plus its CUE are in _original/. On failure every track written so far
    and the working directory are removed and the originals stay where
    they were.

    Args:
        cue_path: Path to the CUE sheet file
        audio_file: Path to the audio image file (FLAC, APE or WavPack)
        toolchain: Toolchain used for every external tool
        log: Function to call for logging messages
        archive_cue: False when the CUE is a temporary file extracted from
            the audio container and must not be archived
        frame_accurate: Keep CUE frames in fallback split boundaries
        log_prefix: Prefix for log messages

    Returns:
        List of created track paths

    Raises:
        CueSplitterError: If the pair could not be processed
    """
    def pair_log(msg):
        log(f"{log_prefix} {msg}" if log_prefix else msg)

    audio_file = os.path.abspath(audio_file)
    cue_path = os.path.abspath(cue_path)
    album_dir = os.path.dirname(audio_file)

    pair_log(f"🎵 Processing: {os.path.basename(audio_file)} with {os.path.basename(cue_path)}")
    source = source_audio(audio_file)
    sheet, cue_text = load_cue(cue_path, pair_log)

    working_dir = create_working_dir(album_dir)
    orchestrator = SplitOrchestrator(toolchain, pair_log, frame_accurate=frame_accurate)
    created = []
    try:
        utf8_cue = write_utf8_cue(cue_text, os.path.join(working_dir, "sheet.utf8.cue"))
        created = orchestrator.run(source, utf8_cue, sheet, album_dir, working_dir)

        try:
            archive_originals(audio_file, cue_path if archive_cue else None, album_dir, pair_log)
        except Exception:
            orchestrator.rollback()
            raise
    finally:
        normalized = orchestrator.normalized
        if normalized is not None and normalized.is_temporary:
            discard_files([normalized.path], pair_log)
        discard_working_dir(working_dir, pair_log)

    pair_log("✅ Split complete! Original files moved to: _original/")
    return created
