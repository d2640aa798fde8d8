"""Working directories, archiving of originals and cleanup after a pair"""
import os
import shutil
import tempfile

from .errors import ArchiveError

ORIGINAL_DIR_NAME = "_original"
WORKING_DIR_PREFIX = ".split_temp_"


def create_working_dir(album_dir):
    """
    Create the temporary directory for one pair inside album_dir.

    The name carries the process id plus a random suffix so parallel runs on
    the same tree never share a directory.

    Returns:
        Path of the new directory
    """
    return tempfile.mkdtemp(prefix=f"{WORKING_DIR_PREFIX}{os.getpid()}_", dir=album_dir)


def discard_working_dir(working_dir, log):
    if working_dir and os.path.isdir(working_dir):
        log(f"🗑️ Cleaning up temporary directory: {os.path.basename(working_dir)}")
        shutil.rmtree(working_dir, ignore_errors=True)


def discard_files(paths, log):
    """Remove temporary files, skipping the ones that are already gone"""
    for path in paths:
        if path and os.path.exists(path):
            log(f"🗑️ Removing temporary file: {os.path.basename(path)}")
            os.remove(path)


def archive_originals(audio_path, cue_path, album_dir, log):
    """
    Move the original audio and CUE file into <album_dir>/_original/.

    Either both files end up in _original/ or neither does: when a move
    fails the files already moved are put back before raising.

    Args:
        audio_path: Original source audio
        cue_path: Sidecar CUE file, or None for an embedded cue sheet
        album_dir: Album directory holding the split tracks
        log: Function to call for logging messages

    Returns:
        Path of the _original directory

    Raises:
        ArchiveError: If the originals could not be moved
    """
    original_dir = os.path.join(album_dir, ORIGINAL_DIR_NAME)
    created_dir = not os.path.isdir(original_dir)
    moved = []

    try:
        os.makedirs(original_dir, exist_ok=True)
        for path in (audio_path, cue_path):
            if path is None:
                continue
            if not os.path.isfile(path):
                raise ArchiveError(f"Original file not found: {path}")
            dest = os.path.join(original_dir, os.path.basename(path))
            if os.path.exists(dest):
                log(f"⚠️ Replacing {os.path.basename(dest)} already in {ORIGINAL_DIR_NAME}/")
            shutil.move(path, dest)
            moved.append((path, dest))
            log(f"📦 Moved to {ORIGINAL_DIR_NAME}/: {os.path.basename(path)}")
    except (OSError, shutil.Error, ArchiveError) as e:
        for path, dest in reversed(moved):
            shutil.move(dest, path)
        if created_dir and os.path.isdir(original_dir) and not os.listdir(original_dir):
            os.rmdir(original_dir)
        if isinstance(e, ArchiveError):
            raise
        raise ArchiveError(f"Failed to move originals to {ORIGINAL_DIR_NAME}/: {e}") from e

    return original_dir
