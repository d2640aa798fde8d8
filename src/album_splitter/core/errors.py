"""Exceptions raised while splitting a CUE+audio pair"""


class CueSplitterError(Exception):
    """Base class for every per-pair failure"""


class MalformedCueError(CueSplitterError):
    """CUE sheet could not be parsed or lists no tracks"""


class TranscodeError(CueSplitterError):
    """A decode or encode step exited with a non-zero status"""

    def __init__(self, message, command=None, exit_code=None):
        super().__init__(message)
        self.command = command
        self.exit_code = exit_code


class UnsupportedFormatError(CueSplitterError):
    """Audio file extension is not one of flac, ape or wv"""


class SplitError(CueSplitterError):
    """Splitting ended without a complete set of tracks"""


class PartialSplitError(SplitError):
    """The direct splitter produced a different number of tracks than the CUE lists"""

    def __init__(self, expected, produced):
        super().__init__(f"Only {produced} out of {expected} tracks were created")
        self.expected = expected
        self.produced = produced


class FallbackTrackMissingError(SplitError):
    """A track produced by the fallback transcoder did not materialize"""

    def __init__(self, track_number, start=None, end=None):
        super().__init__(f"Failed to create track {track_number}: start={start}, end={end}")
        self.track_number = track_number
        self.start = start
        self.end = end


class NoMatchingAudioError(CueSplitterError):
    """A CUE file has no audio file it can be paired with"""

    def __init__(self, cue_path, candidates):
        super().__init__(f"No matching audio file found for: {cue_path}")
        self.cue_path = cue_path
        self.candidates = list(candidates)


class EmbeddedCueNotFoundError(CueSplitterError):
    """No extraction method produced cue sheet text from an audio container"""


class ArchiveError(CueSplitterError):
    """Original files could not be moved into _original/"""
