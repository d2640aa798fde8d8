"""CUE sheet model and parser"""
import re
from dataclasses import dataclass, field
from typing import List, Optional

from .errors import MalformedCueError
from .timestamps import TimePosition, parse_time_position
from ..utils.encoding import read_cue_text

# Characters that cannot appear in track file names
_FORBIDDEN_CHARS = re.compile(r'[<>:"/\\|?*]')

_TRACK_PATTERN = re.compile(r'^TRACK\s+(\d+)(?:\s+(\S+))?', re.IGNORECASE)
_INDEX_PATTERN = re.compile(r'^INDEX\s+(\d+)\s+(\S+)', re.IGNORECASE)
_REM_DATE_PATTERN = re.compile(r'^REM\s+DATE\s+(.+)$', re.IGNORECASE)
_VALUE_PATTERN = re.compile(r'^(PERFORMER|TITLE|FILE)\s+(.*)$', re.IGNORECASE)
_FILE_VALUE_PATTERN = re.compile(r'^"(.*)"(?:\s+\S+)?$|^(\S+)(?:\s+\S+)?$')


def sanitize_title(title):
    """Replace characters that are unsafe in file names with underscores"""
    return _FORBIDDEN_CHARS.sub('_', title)


def _unquote(value):
    value = value.strip()
    if len(value) >= 2 and value.startswith('"') and value.endswith('"'):
        return value[1:-1]
    return value


@dataclass
class Track:
    """A single track of a CUE sheet"""

    number: int
    title: str
    start: TimePosition
    raw_title: str = ""
    performer: Optional[str] = None

    @property
    def file_stem(self):
        return f"{self.number:02d} - {self.title}"


@dataclass
class CueSheet:
    """A parsed CUE sheet: album metadata plus its tracks in order"""

    tracks: List[Track] = field(default_factory=list)
    performer: Optional[str] = None
    title: Optional[str] = None
    date: Optional[str] = None
    file: Optional[str] = None

    @property
    def track_count(self):
        return len(self.tracks)

    def track(self, number):
        """Return the track with the given number, or None"""
        if 1 <= number <= len(self.tracks):
            return self.tracks[number - 1]
        return None

    def end_of(self, track):
        """Start of the following track, or None when track runs to the end of media"""
        following = self.track(track.number + 1)
        return following.start if following else None


class _TrackBuilder:
    def __init__(self, number):
        self.number = number
        self.title = None
        self.performer = None
        self.indexes = {}

    def build(self):
        if not self.indexes:
            raise MalformedCueError(f"Track {self.number:02d} has no INDEX entry")
        start = self.indexes.get(1)
        if start is None:
            start = self.indexes[min(self.indexes)]
        raw_title = self.title if self.title else f"Track {self.number:02d}"
        return Track(
            number=self.number,
            title=sanitize_title(raw_title),
            start=start,
            raw_title=raw_title,
            performer=self.performer,
        )


def parse_cue(lines):
    """
    Parse CUE sheet text into a CueSheet.

    Album TITLE and PERFORMER are the first occurrences before any TRACK;
    inside a track block the first TITLE and PERFORMER belong to the track.
    A track starts at its INDEX 01, or at its first INDEX when 01 is absent.

    Args:
        lines: Iterable of lines, or a single string holding the whole sheet

    Returns:
        CueSheet

    Raises:
        MalformedCueError: If no tracks are found, an INDEX is unreadable,
            track numbers are not 1..N in order, or starts do not increase
    """
    if isinstance(lines, str):
        lines = lines.splitlines()

    sheet = CueSheet()
    builders = []
    current = None

    for raw_line in lines:
        line = raw_line.replace('\r', '').lstrip('\ufeff').strip()
        if not line:
            continue

        track_match = _TRACK_PATTERN.match(line)
        if track_match:
            current = _TrackBuilder(int(track_match.group(1)))
            builders.append(current)
            continue

        index_match = _INDEX_PATTERN.match(line)
        if index_match:
            if current is None:
                continue
            try:
                position = parse_time_position(index_match.group(2))
            except ValueError as e:
                raise MalformedCueError(f"Track {current.number:02d}: {e}") from e
            current.indexes.setdefault(int(index_match.group(1)), position)
            continue

        date_match = _REM_DATE_PATTERN.match(line)
        if date_match:
            if current is None and sheet.date is None:
                sheet.date = _unquote(date_match.group(1))
            continue

        value_match = _VALUE_PATTERN.match(line)
        if not value_match:
            continue
        command = value_match.group(1).upper()
        value = value_match.group(2)

        if command == 'FILE':
            if sheet.file is None:
                file_match = _FILE_VALUE_PATTERN.match(value.strip())
                if file_match:
                    sheet.file = file_match.group(1) if file_match.group(1) is not None else file_match.group(2)
        elif current is None:
            if command == 'TITLE' and sheet.title is None:
                sheet.title = _unquote(value)
            elif command == 'PERFORMER' and sheet.performer is None:
                sheet.performer = _unquote(value)
        else:
            if command == 'TITLE' and current.title is None:
                current.title = _unquote(value)
            elif command == 'PERFORMER' and current.performer is None:
                current.performer = _unquote(value)

    if not builders:
        raise MalformedCueError("No tracks found in CUE file")

    for expected, builder in enumerate(builders, 1):
        if builder.number != expected:
            raise MalformedCueError(
                f"Track numbers are not contiguous: expected {expected:02d}, found {builder.number:02d}"
            )

    sheet.tracks = [builder.build() for builder in builders]

    for previous, track in zip(sheet.tracks, sheet.tracks[1:]):
        if track.start.to_seconds() <= previous.start.to_seconds():
            raise MalformedCueError(
                f"Track {track.number:02d} starts at {track.start}, not after track {previous.number:02d} ({previous.start})"
            )

    return sheet


def load_cue(cue_path, log_func):
    """
    Read and parse a CUE file from disk.

    Args:
        cue_path: Path to the CUE file
        log_func: Function to call for logging messages

    Returns:
        Tuple of (CueSheet, decoded text)
    """
    text = read_cue_text(cue_path, log_func)
    return parse_cue(text.splitlines()), text
