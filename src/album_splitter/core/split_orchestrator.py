"""
Split state machine for one CUE+audio pair.

NORMALIZING -> DIRECT_SPLIT -> VERIFYING -> ACCEPTED | FALLBACK_SPLIT
-> FINALIZING -> DONE, with FAILED reachable from every state.

The direct split runs shnsplit on the (normalized) FLAC. Its output is
counted against the CUE sheet; a short count, an empty result or a splitter
failure sends the pair through the fallback split, which cuts each track
separately with ffmpeg. Fallback runs at most once per pair.
"""
import os
import re
import shutil
from dataclasses import dataclass
from enum import Enum

from .errors import FallbackTrackMissingError, PartialSplitError, SplitError
from .normalizer import normalize_source
from .timestamps import ZERO, format_seconds

_TRACK_NUMBER_PREFIX = re.compile(r'^(\d+)')

OUTPUT_EXTENSION = ".flac"


class SplitState(Enum):
    NORMALIZING = "normalizing"
    DIRECT_SPLIT = "direct_split"
    VERIFYING = "verifying"
    ACCEPTED = "accepted"
    FALLBACK_SPLIT = "fallback_split"
    FINALIZING = "finalizing"
    DONE = "done"
    FAILED = "failed"


TERMINAL_STATES = (SplitState.DONE, SplitState.FAILED)


class Strategy(Enum):
    DIRECT = "direct"
    FALLBACK = "fallback"


class Outcome(Enum):
    SUCCESS = "success"
    PARTIAL = "partial"
    FAILED = "failed"


@dataclass
class SplitAttempt:
    """Result of one splitting strategy applied to a pair"""

    strategy: Strategy
    expected: int
    produced: int = 0
    tool_succeeded: bool = True

    @property
    def outcome(self):
        if self.tool_succeeded and self.produced == self.expected:
            return Outcome.SUCCESS
        if self.produced > 0:
            return Outcome.PARTIAL
        return Outcome.FAILED


def verify_direct_split(attempt, audio_codec):
    """
    Decide what follows a direct split.

    Args:
        attempt: SplitAttempt of the direct strategy
        audio_codec: Codec of the file that was handed to the splitter

    Returns:
        SplitState.ACCEPTED, SplitState.FALLBACK_SPLIT or SplitState.FAILED

    Raises:
        PartialSplitError: If some tracks were produced but not the expected
            number; the caller discards them and falls back
    """
    if attempt.tool_succeeded and attempt.produced == attempt.expected:
        return SplitState.ACCEPTED
    if attempt.produced > 0 and attempt.produced != attempt.expected:
        raise PartialSplitError(attempt.expected, attempt.produced)
    if audio_codec == "flac":
        return SplitState.FALLBACK_SPLIT
    return SplitState.FAILED


def track_metadata(sheet, track):
    """Tags written by the fallback transcoder for one track"""
    return {
        "title": track.raw_title or track.title,
        "track": f"{track.number}/{sheet.track_count}",
        "artist": track.performer or sheet.performer or "",
        "album_artist": sheet.performer or "",
        "album": sheet.title or "",
        "date": sheet.date or "",
    }


class SplitOrchestrator:
    """
    Runs the split state machine for a single pair.

    Args:
        toolchain: Toolchain with splitter, transcoder, decoders and encoder
        log: Function to call for logging messages
        frame_accurate: Keep CUE frames in fallback boundaries instead of
            truncating them to whole seconds
    """

    def __init__(self, toolchain, log, frame_accurate=False):
        self.toolchain = toolchain
        self.log = log
        self.frame_accurate = frame_accurate
        self.attempts = []
        self.history = []
        self.normalized = None
        self.finalized = []
        # (backup, dest) for album files a finalized track replaced
        self.replaced = []
        self._handlers = {
            SplitState.NORMALIZING: self._normalize,
            SplitState.DIRECT_SPLIT: self._direct_split,
            SplitState.VERIFYING: self._verify,
            SplitState.ACCEPTED: self._accept,
            SplitState.FALLBACK_SPLIT: self._fallback_split,
            SplitState.FINALIZING: self._finalize,
        }

    def run(self, source, cue_path, sheet, album_dir, working_dir):
        """
        Split source into tracks and place them in album_dir.

        Args:
            source: SourceAudio being split
            cue_path: UTF-8 CUE file handed to the splitter
            sheet: Parsed CueSheet for the same file
            album_dir: Directory receiving the final track files
            working_dir: Per-pair temporary directory

        Returns:
            List of final track paths in album_dir

        Raises:
            CueSplitterError: On any failure; partial outputs are removed first
        """
        self.source = source
        self.cue_path = cue_path
        self.sheet = sheet
        self.album_dir = album_dir
        self.working_dir = working_dir
        self.tracks_dir = os.path.join(working_dir, "tracks")

        state = SplitState.NORMALIZING
        try:
            while state not in TERMINAL_STATES:
                self.history.append(state)
                state = self._handlers[state]()
        except Exception:
            self.history.append(SplitState.FAILED)
            self._discard_outputs()
            self.rollback()
            raise

        self.history.append(state)
        return list(self.finalized)

    @property
    def state(self):
        return self.history[-1] if self.history else None

    def _normalize(self):
        self.normalized = normalize_source(self.source, self.working_dir, self.toolchain, self.log)
        os.makedirs(self.tracks_dir, exist_ok=True)
        return SplitState.DIRECT_SPLIT

    def _direct_split(self):
        expected = self.sheet.track_count
        self.log(f"ℹ️ Expected tracks from CUE file: {expected}")
        self.log(f"✂️ Splitting {os.path.basename(self.normalized.path)} using CUE sheet...")

        exit_code = self.toolchain.splitter.split(self.normalized.path, self.cue_path, self.tracks_dir)
        attempt = SplitAttempt(
            Strategy.DIRECT, expected,
            produced=len(self._track_files()),
            tool_succeeded=exit_code == 0,
        )
        self.attempts.append(attempt)
        return SplitState.VERIFYING

    def _verify(self):
        attempt = self.attempts[-1]
        try:
            verdict = verify_direct_split(attempt, self.normalized.codec)
        except PartialSplitError as e:
            self.log(f"❌ {e}!")
            self.log("❌ This usually indicates character encoding issues in the CUE file")
            self.log("⚠️ Attempting ffmpeg method instead...")
            self._discard_outputs()
            return SplitState.FALLBACK_SPLIT

        if verdict is SplitState.FALLBACK_SPLIT:
            self.log("⚠️ Direct split failed, using ffmpeg method (preserves original quality)...")
            self._discard_outputs()
        elif verdict is SplitState.FAILED:
            raise SplitError(
                f"Failed to split file: {self.toolchain.splitter.name} produced "
                f"{attempt.produced} of {attempt.expected} tracks"
            )
        return verdict

    def _accept(self):
        attempt = self.attempts[-1]
        self.log(f"✅ Successfully split tracks directly ({attempt.produced}/{attempt.expected} tracks)")
        return SplitState.FINALIZING

    def fallback_boundaries(self):
        """Start position of every track for the fallback split; track 1 always starts at zero"""
        expected = self.sheet.track_count
        breakpoints = self.toolchain.splitter.list_breakpoints(self.cue_path)
        if len(breakpoints) == expected - 1:
            return [ZERO] + list(breakpoints)
        return [ZERO] + [track.start for track in self.sheet.tracks[1:]]

    def _seconds(self, position):
        if self.frame_accurate:
            return format_seconds(position.to_seconds())
        return format_seconds(position.whole_seconds())

    def _fallback_split(self):
        if any(a.strategy is Strategy.FALLBACK for a in self.attempts):
            raise SplitError("Fallback split already attempted for this pair")

        expected = self.sheet.track_count
        attempt = SplitAttempt(Strategy.FALLBACK, expected)
        self.attempts.append(attempt)
        self.log("ℹ️ Using ffmpeg to split tracks preserving exact quality...")

        starts = self.fallback_boundaries()
        if not self.frame_accurate:
            truncated = sum(1 for position in starts if position.frames)
            if truncated:
                self.log(f"⚠️ Track boundaries are cut at whole seconds; frames dropped on {truncated} boundaries")

        for idx, track in enumerate(self.sheet.tracks):
            start = self._seconds(starts[idx])
            end = self._seconds(starts[idx + 1]) if idx + 1 < expected else None
            output_file = os.path.join(self.tracks_dir, track.file_stem + OUTPUT_EXTENSION)

            exit_code = self.toolchain.transcoder.transcode_range(
                self.normalized.path, output_file, start, end, track_metadata(self.sheet, track)
            )
            if not os.path.isfile(output_file):
                attempt.tool_succeeded = False
                self.log(f"❌ Failed to create track {track.number}: start={start}, end={end or ''} "
                         f"(exit code {exit_code})")
                raise FallbackTrackMissingError(track.number, start, end)
            attempt.produced += 1

        produced = len(self._track_files())
        attempt.produced = produced
        if produced != expected:
            attempt.tool_succeeded = False
            raise SplitError(f"Only {produced} out of {expected} tracks were created using ffmpeg!")

        self.log(f"✅ Successfully split tracks using ffmpeg ({produced}/{expected} tracks, quality preserved)")
        return SplitState.FINALIZING

    def _finalize(self):
        planned = []
        seen = set()
        for file_name in self._track_files():
            match = _TRACK_NUMBER_PREFIX.match(file_name)
            track = self.sheet.track(int(match.group(1))) if match else None
            if track is None or track.number in seen:
                raise SplitError(f"Unexpected split output: {file_name}")
            seen.add(track.number)
            final_name = track.file_stem + OUTPUT_EXTENSION
            planned.append((os.path.join(self.tracks_dir, file_name),
                            os.path.join(self.album_dir, final_name)))

        source_path = os.path.abspath(self.source.path)
        for _, dest in planned:
            if os.path.abspath(dest) == source_path:
                raise SplitError(f"Track file would overwrite the source audio: {os.path.basename(dest)}")

        replaced_dir = os.path.join(self.working_dir, "replaced")
        for src, dest in planned:
            if os.path.exists(dest):
                self.log(f"⚠️ Overwriting existing file: {os.path.basename(dest)}")
                os.makedirs(replaced_dir, exist_ok=True)
                backup = os.path.join(replaced_dir, os.path.basename(dest))
                shutil.move(dest, backup)
                self.replaced.append((backup, dest))
            # copy then remove, so moves across filesystems behave the same
            shutil.copy2(src, dest)
            self.finalized.append(dest)
            os.remove(src)
            self.log(f"✅ Created: {os.path.basename(dest)}")

        return SplitState.DONE

    def _track_files(self):
        if not os.path.isdir(self.tracks_dir):
            return []
        return sorted(
            f for f in os.listdir(self.tracks_dir)
            if f.lower().endswith(OUTPUT_EXTENSION) and os.path.isfile(os.path.join(self.tracks_dir, f))
        )

    def _discard_outputs(self):
        for file_name in self._track_files():
            os.remove(os.path.join(self.tracks_dir, file_name))

    def rollback(self):
        """Remove finalized tracks and put back the album files they replaced"""
        for path in self.finalized:
            if os.path.exists(path):
                os.remove(path)
        self.finalized = []

        for backup, dest in reversed(self.replaced):
            if os.path.exists(backup):
                shutil.move(backup, dest)
                self.log(f"↩️ Restored: {os.path.basename(dest)}")
        self.replaced = []
