"""Recovery of cue sheets embedded in audio containers"""
import os
import tempfile

from .errors import EmbeddedCueNotFoundError
from .file_finder import is_excluded_dir
from .normalizer import AUDIO_EXTENSIONS, codec_for_path
from ..utils.encoding import write_utf8_cue


def _extraction_methods(prober, codec):
    """Extraction methods to try for a codec, most specific first"""
    methods = []
    if codec == "flac":
        methods.append(("metaflac", prober.flac_cuesheet))
    elif codec == "wavpack":
        methods.append(("wvunpack", prober.wavpack_cuesheet))
    methods.append(("ffprobe", prober.probe_cuesheet))
    return methods


def extract_embedded_cue(audio_path, prober, log_func):
    """
    Read the cue sheet stored inside an audio file.

    Args:
        audio_path: Path to a FLAC, APE or WavPack file
        prober: Prober capability
        log_func: Function to call for logging messages

    Returns:
        Cue sheet text

    Raises:
        EmbeddedCueNotFoundError: If no method yields non-empty text
    """
    for method_name, method in _extraction_methods(prober, codec_for_path(audio_path)):
        text = method(audio_path)
        if text and text.strip():
            log_func(f"📎 Extracted embedded cue sheet with {method_name}: {os.path.basename(audio_path)}")
            return text
    raise EmbeddedCueNotFoundError(
        f"Failed to extract embedded cue sheet from: {os.path.basename(audio_path)}"
    )


def has_embedded_cue(audio_path, prober):
    """True if any extraction method finds a cue sheet in audio_path"""
    for _, method in _extraction_methods(prober, codec_for_path(audio_path)):
        text = method(audio_path)
        if text and text.strip():
            return True
    return False


def find_embedded_cue_candidates(root_path, prober, log_func=None):
    """
    Find audio files carrying an embedded cue sheet.

    Only consulted when the scan found no .cue file anywhere under root_path.

    Args:
        root_path: Root directory to search
        prober: Prober capability
        log_func: Optional function to call for logging messages

    Returns:
        Sorted list of audio file paths
    """
    if log_func is None:
        log_func = lambda msg: None

    candidates = []
    for dirpath, dirnames, filenames in os.walk(root_path):
        dirnames[:] = sorted(d for d in dirnames if not is_excluded_dir(d))
        for file_name in sorted(filenames):
            if not file_name.lower().endswith(AUDIO_EXTENSIONS):
                continue
            audio_path = os.path.join(dirpath, file_name)
            if has_embedded_cue(audio_path, prober):
                log_func(f"  📎 Embedded cue sheet found: {os.path.relpath(audio_path, root_path)}")
                candidates.append(audio_path)
    return candidates


def write_temporary_cue(text):
    """
    Store extracted cue text in a temporary UTF-8 file.

    The caller owns the file and deletes it once the pair is processed.

    Returns:
        Path of the temporary .cue file
    """
    fd, path = tempfile.mkstemp(prefix="embedded_", suffix=".cue")
    os.close(fd)
    return write_utf8_cue(text, path)
