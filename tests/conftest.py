import os

import pytest

from album_splitter.core.cue import parse_cue
from album_splitter.core.tools import Decoder, Encoder, Prober, Splitter, Toolchain, Transcoder


def make_cue_text(titles, performer="The Artist", album="The Album", date="1999",
                  audio_name="album.flac", starts=None):
    """Build a CUE sheet; track n starts at (n-1)*3 minutes unless starts are given"""
    lines = []
    if date is not None:
        lines.append(f"REM DATE {date}")
    if performer is not None:
        lines.append(f'PERFORMER "{performer}"')
    if album is not None:
        lines.append(f'TITLE "{album}"')
    lines.append(f'FILE "{audio_name}" WAVE')
    for number, title in enumerate(titles, 1):
        start = starts[number - 1] if starts else f"{(number - 1) * 3:02d}:00:00"
        lines.append(f"  TRACK {number:02d} AUDIO")
        lines.append(f'    TITLE "{title}"')
        lines.append(f"    INDEX 01 {start}")
    return "\n".join(lines) + "\n"


def write_file(path, content=b"data"):
    mode = "w" if isinstance(content, str) else "wb"
    kwargs = {"encoding": "utf-8"} if isinstance(content, str) else {}
    with open(path, mode, **kwargs) as f:
        f.write(content)
    return str(path)


class FakeDecoder(Decoder):
    name = "fake-decoder"

    def __init__(self, exit_code=0):
        self.exit_code = exit_code
        self.calls = []

    def decode(self, source, wav_path):
        self.calls.append((source, wav_path))
        write_file(wav_path, b"RIFF")
        return self.exit_code


class FakeEncoder(Encoder):
    name = "fake-encoder"

    def __init__(self, exit_code=0, write_output=True):
        self.exit_code = exit_code
        self.write_output = write_output
        self.calls = []

    def encode(self, wav_path, flac_path):
        self.calls.append((wav_path, flac_path))
        if self.write_output:
            write_file(flac_path, b"fLaC")
        return self.exit_code


class FakeSplitter(Splitter):
    """Writes "<n> - <title>.flac" for the first `produce` tracks of the CUE it is given"""

    name = "fake-splitter"

    def __init__(self, produce=None, exit_code=0, breakpoints=None):
        self.produce = produce
        self.exit_code = exit_code
        self.breakpoints = breakpoints or []
        self.calls = []

    def split(self, audio_path, cue_path, output_dir):
        self.calls.append((audio_path, cue_path, output_dir))
        with open(cue_path, encoding="utf-8") as f:
            sheet = parse_cue(f.read())
        count = sheet.track_count if self.produce is None else self.produce
        for track in sheet.tracks[:count]:
            write_file(os.path.join(output_dir, f"{track.number:02d} - {track.raw_title.replace('/', '-')}.flac"))
        return self.exit_code

    def list_breakpoints(self, cue_path):
        return list(self.breakpoints)


class FakeTranscoder(Transcoder):
    name = "fake-transcoder"

    def __init__(self, fail_on=()):
        self.fail_on = set(fail_on)
        self.calls = []

    def transcode_range(self, source, dest, start, end, metadata):
        self.calls.append({"source": source, "dest": dest, "start": start, "end": end,
                           "metadata": dict(metadata)})
        number = int(metadata["track"].split("/")[0])
        if number in self.fail_on:
            return 1
        write_file(dest, b"fLaC")
        return 0


class FakeProber(Prober):
    def __init__(self, flac=None, wavpack=None, probe=None):
        self.flac = flac or {}
        self.wavpack = wavpack or {}
        self.probe = probe or {}
        self.calls = []

    def flac_cuesheet(self, path):
        self.calls.append(("metaflac", path))
        return self.flac.get(os.path.basename(path), "")

    def wavpack_cuesheet(self, path):
        self.calls.append(("wvunpack", path))
        return self.wavpack.get(os.path.basename(path), "")

    def probe_cuesheet(self, path):
        self.calls.append(("ffprobe", path))
        return self.probe.get(os.path.basename(path), "")


def make_toolchain(splitter=None, transcoder=None, prober=None, decoder=None, encoder=None):
    decoder = decoder or FakeDecoder()
    return Toolchain(
        decoders={"ape": decoder, "wavpack": decoder},
        encoder=encoder or FakeEncoder(),
        splitter=splitter or FakeSplitter(),
        transcoder=transcoder or FakeTranscoder(),
        prober=prober or FakeProber(),
    )


@pytest.fixture
def messages():
    return []


@pytest.fixture
def log(messages):
    return messages.append


@pytest.fixture
def album(tmp_path):
    """Album directory with album.flac and a 5-track album.cue"""
    album_dir = tmp_path / "Album"
    album_dir.mkdir()
    write_file(album_dir / "album.flac", b"fLaC-image")
    write_file(album_dir / "album.cue", make_cue_text(["One", "Two", "Three", "Four", "Five"]))
    return album_dir


def track_files(directory):
    return sorted(f for f in os.listdir(directory) if f.endswith(".flac") and f[:2].isdigit())
