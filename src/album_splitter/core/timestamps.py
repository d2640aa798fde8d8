"""CUE time position arithmetic"""
import re
from collections import namedtuple

FRAMES_PER_SECOND = 75

# M:SS, MM:SS:FF (INDEX lines) and M:SS.FF (cuebreakpoints output)
_POSITION_PATTERN = re.compile(r'^(\d+):(\d{1,2})(?:[:.](\d{1,2}))?$')


class TimePosition(namedtuple('TimePosition', ['minutes', 'seconds', 'frames'])):
    """A CUE position in minutes, seconds and frames (75 frames per second)"""

    __slots__ = ()

    def __new__(cls, minutes, seconds, frames=0):
        return super().__new__(cls, minutes, seconds, frames)

    def to_seconds(self):
        return self.minutes * 60 + self.seconds + self.frames / FRAMES_PER_SECOND

    def whole_seconds(self):
        """Position truncated to the second; frames are dropped"""
        return self.minutes * 60 + self.seconds

    def __str__(self):
        return f"{self.minutes:02d}:{self.seconds:02d}:{self.frames:02d}"


ZERO = TimePosition(0, 0, 0)


def parse_time_position(text):
    """
    Parse a CUE timestamp.

    Args:
        text: Timestamp such as "03:25:37", "3:25.37" or "3:25"

    Returns:
        TimePosition

    Raises:
        ValueError: If the text is not a valid timestamp
    """
    match = _POSITION_PATTERN.match(text.strip())
    if not match:
        raise ValueError(f"Invalid CUE timestamp: {text!r}")

    minutes = int(match.group(1))
    seconds = int(match.group(2))
    frames = int(match.group(3)) if match.group(3) else 0

    if seconds >= 60:
        raise ValueError(f"Seconds out of range in timestamp: {text!r}")
    if frames >= FRAMES_PER_SECOND:
        raise ValueError(f"Frames out of range in timestamp: {text!r}")

    return TimePosition(minutes, seconds, frames)


def to_seconds(position):
    """Convert a TimePosition or a timestamp string to seconds"""
    if isinstance(position, str):
        position = parse_time_position(position)
    return position.to_seconds()


def format_seconds(value):
    """Render seconds for a command line argument (205.493333, 180, ...)"""
    if float(value).is_integer():
        return str(int(value))
    return f"{value:.6f}".rstrip('0').rstrip('.')
