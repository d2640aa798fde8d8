import pytest

from album_splitter.core.audio_processor import process_single_pair
from album_splitter.core.errors import TranscodeError
from album_splitter.core.tools import MacDecoder, ShnSplitter
from album_splitter.utils.helpers import capture_command, create_logger, run_command

from conftest import make_cue_text, make_toolchain, track_files, write_file

MISSING_TOOL = "album-splitter-missing-tool"


@pytest.fixture
def empty_path(tmp_path, monkeypatch):
    """PATH pointing at a directory with no programs in it"""
    bin_dir = tmp_path / "bin"
    bin_dir.mkdir()
    monkeypatch.setenv("PATH", str(bin_dir))
    return bin_dir


def test_run_command_reports_missing_program():
    assert run_command([MISSING_TOOL, "--help"]) == 127


def test_run_command_logs_missing_program(tmp_path):
    logfile = tmp_path / "run.log"
    assert run_command([MISSING_TOOL, "x"], str(logfile)) == 127
    content = logfile.read_text(encoding="utf-8")
    assert f"$ {MISSING_TOOL} x" in content
    assert "[Exit code: 127]" in content


def test_capture_command_reports_missing_program():
    assert capture_command([MISSING_TOOL]) == (127, "")


def test_logger_appends_to_logfile(tmp_path):
    logfile = tmp_path / "run.log"
    log = create_logger(str(logfile))
    log("first")
    log("second")
    lines = logfile.read_text(encoding="utf-8").splitlines()
    assert [line.split("] ", 1)[1] for line in lines] == ["first", "second"]


def test_missing_splitter_falls_back(album, log, empty_path):
    toolchain = make_toolchain(splitter=ShnSplitter())
    created = process_single_pair(str(album / "album.cue"), str(album / "album.flac"), toolchain, log)

    assert len(created) == 5
    assert len(toolchain.transcoder.calls) == 5
    assert track_files(album) == [
        "01 - One.flac", "02 - Two.flac", "03 - Three.flac", "04 - Four.flac", "05 - Five.flac",
    ]


def test_missing_decoder_is_a_transcode_error(tmp_path, log, empty_path):
    write_file(tmp_path / "album.ape")
    write_file(tmp_path / "album.cue", make_cue_text(["A", "B"]))
    toolchain = make_toolchain(decoder=MacDecoder())

    with pytest.raises(TranscodeError) as excinfo:
        process_single_pair(str(tmp_path / "album.cue"), str(tmp_path / "album.ape"), toolchain, log)
    assert excinfo.value.exit_code == 127
    assert (tmp_path / "album.ape").exists()
