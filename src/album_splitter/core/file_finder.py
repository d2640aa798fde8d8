"""File discovery and searching utilities"""
import os
import re
import cueparser

from .archive import ORIGINAL_DIR_NAME, WORKING_DIR_PREFIX
from .cue import parse_cue
from .errors import MalformedCueError, NoMatchingAudioError
from .normalizer import AUDIO_EXTENSIONS
from ..utils.encoding import read_cue_text

# Extensions listed when no match is found, so the warning shows what is there
_LISTED_EXTENSIONS = AUDIO_EXTENSIONS + (".wav", ".tta", ".m4a", ".mp3", ".ogg", ".opus")

_FILE_DIRECTIVE = re.compile(r'^\s*FILE\s+"([^"]+)"', re.IGNORECASE)


def is_excluded_dir(name):
    """Directories never scanned: archived originals and our own working directories"""
    return name == ORIGINAL_DIR_NAME or name.startswith(WORKING_DIR_PREFIX)


def _parse_cue_file(cue_text):
    """
    Parse CUE sheet text using cueparser library.

    Args:
        cue_text: CUE sheet text, already decoded

    Returns:
        CueSheet object if successful, None otherwise
    """
    try:
        cue_sheet = cueparser.CueSheet()
        cue_sheet.setOutputFormat('', '')
        cue_sheet.setData(cue_text)
        cue_sheet.parse()
        return cue_sheet
    except Exception:
        return None


def _file_directives(lines):
    return [match.group(1) for match in map(_FILE_DIRECTIVE.match, lines) if match]


def _extract_audio_files_from_cuesheet(cue_sheet):
    """
    Extract all audio file names from a parsed CueSheet.

    Args:
        cue_sheet: Parsed CueSheet object

    Returns:
        List of audio file names referenced in FILE directives
    """
    data = getattr(cue_sheet, "data", None) or []
    if isinstance(data, str):
        data = data.splitlines()
    return _file_directives(data)


def referenced_audio_files(cue_path):
    """
    File names referenced by FILE directives.

    The sheet is decoded with the detected encoding first, so names in
    cp1251 or Shift-JIS sheets keep their non-ASCII characters. When
    cueparser yields nothing the sheet's own FILE value is used.
    """
    cue_text = read_cue_text(cue_path, lambda msg: None)

    cue_sheet = _parse_cue_file(cue_text)
    if cue_sheet is not None:
        audio_files = _extract_audio_files_from_cuesheet(cue_sheet)
        if audio_files:
            return audio_files

    audio_files = _file_directives(cue_text.splitlines())
    if audio_files:
        return audio_files

    try:
        sheet = parse_cue(cue_text)
    except MalformedCueError:
        return []
    return [sheet.file] if sheet.file else []


def _find_audio_file(audio_file_name, dirpath, filenames):
    """
    Locate an audio file in the directory, trying exact match first, then case-insensitive.

    Args:
        audio_file_name: Name of the audio file to find
        dirpath: Directory to search in
        filenames: List of files in the directory

    Returns:
        Full path to the audio file if found, None otherwise
    """
    if audio_file_name in filenames:
        return os.path.join(dirpath, audio_file_name)

    # Try case-insensitive search (for Linux compatibility)
    for existing_file in filenames:
        if existing_file.lower() == audio_file_name.lower():
            return os.path.join(dirpath, existing_file)

    return None


def _find_by_stem(stem, dirpath, filenames):
    """Try stem + each supported extension, in flac, ape, wv order"""
    for ext in AUDIO_EXTENSIONS:
        audio_file_path = _find_audio_file(stem + ext, dirpath, filenames)
        if audio_file_path:
            return audio_file_path
    return None


def available_audio_files(dirpath):
    """Audio-looking files in a directory, for diagnostics"""
    try:
        filenames = os.listdir(dirpath)
    except OSError:
        return []
    return sorted(f for f in filenames if f.lower().endswith(_LISTED_EXTENSIONS))


def match_audio_file(cue_path, log_func):
    """
    Find the audio image a CUE file describes.

    Strategies, in order:
    1. Same base name as the CUE (album.cue -> album.flac / .ape / .wv)
    2. The FILE directive, or its base name with a supported extension
       (FILE "album.wav" -> album.flac)
    3. CUE named after the audio file (album.flac.cue -> album.flac)
    4. Any supported audio file in the same directory

    Args:
        cue_path: Path to the CUE file
        log_func: Function to call for logging messages

    Returns:
        Path to the matching audio file

    Raises:
        NoMatchingAudioError: If nothing matches
    """
    dirpath = os.path.dirname(os.path.abspath(cue_path))
    filenames = sorted(
        f for f in os.listdir(dirpath) if os.path.isfile(os.path.join(dirpath, f))
    )
    cue_filename = os.path.basename(cue_path)
    cue_basename = os.path.splitext(cue_filename)[0]

    audio_file_path = _find_by_stem(cue_basename, dirpath, filenames)
    if audio_file_path:
        log_func(f"    ✅ Matched: {cue_filename} → {os.path.basename(audio_file_path)}")
        return audio_file_path

    for referenced in referenced_audio_files(cue_path):
        referenced = os.path.basename(referenced.replace('\\', '/'))
        if referenced.lower().endswith(AUDIO_EXTENSIONS):
            audio_file_path = _find_audio_file(referenced, dirpath, filenames)
        else:
            audio_file_path = None
        if not audio_file_path:
            audio_file_path = _find_by_stem(os.path.splitext(referenced)[0], dirpath, filenames)
        if audio_file_path:
            log_func(f"    ✅ Matched FILE directive: {cue_filename} → {os.path.basename(audio_file_path)}")
            return audio_file_path

    if cue_basename.lower().endswith(AUDIO_EXTENSIONS):
        audio_file_path = _find_audio_file(cue_basename, dirpath, filenames)
        if audio_file_path:
            log_func(f"    ✅ Found matching audio file: {os.path.basename(audio_file_path)}")
            return audio_file_path

    log_func("    🔍 No exact match found, searching for any audio file in directory...")
    for ext in AUDIO_EXTENSIONS:
        for existing_file in filenames:
            if existing_file.lower().endswith(ext):
                log_func(f"    ✅ Found audio file: {existing_file}")
                return os.path.join(dirpath, existing_file)

    raise NoMatchingAudioError(cue_path, available_audio_files(dirpath))


def find_cue_files(root_path, log_func=None):
    """
    Recursively search for CUE files in root_path and all subdirectories.

    _original/ directories and working directories are skipped so files
    that were already processed are never picked up again.

    Args:
        root_path: Root directory to search
        log_func: Optional function to call for logging messages

    Returns:
        Sorted list of absolute CUE file paths
    """
    if log_func is None:
        log_func = lambda msg: None

    cue_paths = []
    root_path = os.path.abspath(root_path)

    for dirpath, dirnames, filenames in os.walk(root_path):
        dirnames[:] = sorted(d for d in dirnames if not is_excluded_dir(d))
        cue_files = sorted(f for f in filenames if f.lower().endswith(".cue"))

        if cue_files:
            rel_dir = os.path.relpath(dirpath, root_path) if dirpath != root_path else "."
            log_func(f"📁 Scanning directory: {rel_dir}")

        for cue_file in cue_files:
            log_func(f"  📄 Found CUE file: {cue_file}")
            cue_paths.append(os.path.join(dirpath, cue_file))

    return cue_paths
