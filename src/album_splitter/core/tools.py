"""
External audio tools wrapped behind small capability classes.

The pipeline only talks to a Toolchain, so tests can swap every capability
for a fake and no real binary is ever required to exercise the branching.
"""
import json
import re
import shutil

from ..utils.helpers import run_command, capture_command, utf8_environment
from .timestamps import parse_time_position

REQUIRED_TOOLS = ("shnsplit", "cuebreakpoints", "flac", "wvunpack", "mac", "ffmpeg")
OPTIONAL_TOOLS = ("metaflac", "ffprobe")

# Lines a cue sheet can start with; anything above them in tool output is banner text
_CUE_FIRST_LINE = re.compile(
    r'^\s*(REM|PERFORMER|TITLE|FILE|CATALOG|SONGWRITER|CDTEXTFILE|TRACK)\b',
    re.IGNORECASE,
)


class Decoder:
    """Decodes a lossless container into an uncompressed WAV file"""

    name = "decoder"

    def decode(self, source, wav_path):
        raise NotImplementedError


class Encoder:
    """Encodes a WAV file into FLAC at maximum compression"""

    name = "encoder"

    def encode(self, wav_path, flac_path):
        raise NotImplementedError


class Splitter:
    """Breakpoint-based splitter driven by a CUE sheet"""

    name = "splitter"

    def split(self, audio_path, cue_path, output_dir):
        raise NotImplementedError

    def list_breakpoints(self, cue_path):
        return []


class Transcoder:
    """Time-ranged transcoder used by the fallback split"""

    name = "transcoder"

    def transcode_range(self, source, dest, start, end, metadata):
        raise NotImplementedError


class Prober:
    """Reads a cue sheet embedded in an audio container"""

    def flac_cuesheet(self, path):
        return ""

    def wavpack_cuesheet(self, path):
        return ""

    def probe_cuesheet(self, path):
        return ""


class MacDecoder(Decoder):
    name = "mac"

    def __init__(self, logfile=None):
        self.logfile = logfile

    def decode(self, source, wav_path):
        return run_command(["mac", source, wav_path, "-d"], self.logfile)


class WavpackDecoder(Decoder):
    name = "wvunpack"

    def __init__(self, logfile=None):
        self.logfile = logfile

    def decode(self, source, wav_path):
        return run_command(["wvunpack", "-y", source, "-o", wav_path], self.logfile)


class FlacEncoder(Encoder):
    name = "flac"

    def __init__(self, logfile=None):
        self.logfile = logfile

    def encode(self, wav_path, flac_path):
        return run_command(["flac", "-8", "-f", wav_path, "-o", flac_path], self.logfile)


class ShnSplitter(Splitter):
    name = "shnsplit"

    # Output track names are "<n> - <title>", encoded by flac at level 8
    OUTPUT_SPEC = "flac flac -8 -o %f -"
    NAME_TEMPLATE = "%n - %t"

    def __init__(self, logfile=None):
        self.logfile = logfile

    def split(self, audio_path, cue_path, output_dir):
        return run_command(
            ["shnsplit", "-f", cue_path, "-d", output_dir, "-O", "never",
             "-t", self.NAME_TEMPLATE, "-o", self.OUTPUT_SPEC, audio_path],
            self.logfile, env=utf8_environment()
        )

    def list_breakpoints(self, cue_path):
        exit_code, output = capture_command(["cuebreakpoints", cue_path], self.logfile)
        if exit_code != 0:
            return []
        positions = []
        for line in output.splitlines():
            line = line.strip()
            if not re.match(r'^\d+:', line):
                continue
            try:
                positions.append(parse_time_position(line))
            except ValueError:
                return []
        return positions


class FfmpegTranscoder(Transcoder):
    name = "ffmpeg"

    def __init__(self, logfile=None):
        self.logfile = logfile

    def transcode_range(self, source, dest, start, end, metadata):
        cmd = ["ffmpeg", "-hide_banner", "-i", source, "-ss", start]
        if end is not None:
            cmd += ["-to", end]
        # -map_metadata -1 strips everything from the source, embedded cue sheets included
        cmd += ["-map", "0:a", "-c:a", "flac", "-compression_level", "8", "-map_metadata", "-1"]
        for key, value in metadata.items():
            cmd += ["-metadata", f"{key}={value if value is not None else ''}"]
        cmd += [dest, "-y"]
        return run_command(cmd, self.logfile)


class ContainerProber(Prober):
    """Embedded cue sheet reader backed by metaflac, wvunpack and ffprobe"""

    def __init__(self, logfile=None):
        self.logfile = logfile

    def flac_cuesheet(self, path):
        exit_code, output = capture_command(
            ["metaflac", "--export-cuesheet-to=-", path], self.logfile
        )
        if exit_code == 0 and output.strip():
            return output

        # Some rippers store the sheet as a CUESHEET vorbis comment instead of a CUESHEET block
        exit_code, output = capture_command(
            ["metaflac", "--show-tag=CUESHEET", path], self.logfile
        )
        if exit_code != 0:
            return ""
        _, _, text = output.partition("=")
        return text

    def wavpack_cuesheet(self, path):
        exit_code, output = capture_command(
            ["wvunpack", "-c", path], self.logfile, merge_stderr=True
        )
        if exit_code != 0:
            return ""
        return strip_banner(output)

    def probe_cuesheet(self, path):
        exit_code, output = capture_command(
            ["ffprobe", "-v", "quiet", "-print_format", "json", "-show_format", path],
            self.logfile,
        )
        if exit_code != 0:
            return ""
        return cuesheet_from_probe_json(output)


def strip_banner(output):
    """Drop program banner lines printed before the cue sheet"""
    lines = output.splitlines()
    for idx, line in enumerate(lines):
        if _CUE_FIRST_LINE.match(line):
            return "\n".join(lines[idx:])
    return ""


def cuesheet_from_probe_json(output):
    """Return the cuesheet tag from ffprobe -show_format JSON output, or an empty string"""
    try:
        data = json.loads(output)
    except ValueError:
        return ""
    tags = (data.get("format") or {}).get("tags") or {}
    for key, value in tags.items():
        if key.lower() == "cuesheet" and isinstance(value, str):
            return value
    return ""


class Toolchain:
    """Bundle of every capability the pipeline needs"""

    def __init__(self, decoders, encoder, splitter, transcoder, prober):
        self.decoders = decoders
        self.encoder = encoder
        self.splitter = splitter
        self.transcoder = transcoder
        self.prober = prober

    def decoder_for(self, codec):
        return self.decoders.get(codec)


def default_toolchain(logfile=None):
    """Toolchain backed by the real command line tools"""
    return Toolchain(
        decoders={"ape": MacDecoder(logfile), "wavpack": WavpackDecoder(logfile)},
        encoder=FlacEncoder(logfile),
        splitter=ShnSplitter(logfile),
        transcoder=FfmpegTranscoder(logfile),
        prober=ContainerProber(logfile),
    )


def check_dependencies(log_func, which=shutil.which):
    """
    Check that the external tools are installed.

    Args:
        log_func: Function to call for logging messages
        which: Lookup function, shutil.which by default

    Returns:
        List of missing required tools (empty when everything is present)
    """
    missing = [tool for tool in REQUIRED_TOOLS if not which(tool)]
    missing_optional = [tool for tool in OPTIONAL_TOOLS if not which(tool)]

    if missing:
        log_func(f"❌ Missing required tools: {' '.join(missing)}")
        log_func("❌ Install with: apt install flac shntool cuetools monkeys-audio wavpack ffmpeg")
    if missing_optional:
        log_func(f"⚠️ Optional tools not found, embedded cue sheet detection is limited: "
                 f"{' '.join(missing_optional)}")
    return missing
