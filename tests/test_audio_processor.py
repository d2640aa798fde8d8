import os

import pytest

from album_splitter.core.audio_processor import process_single_pair
from album_splitter.core.errors import (
    ArchiveError,
    FallbackTrackMissingError,
    MalformedCueError,
    TranscodeError,
)

from conftest import FakeDecoder, FakeSplitter, FakeTranscoder, make_cue_text, make_toolchain, track_files, write_file


def leftovers(album_dir):
    return [f for f in os.listdir(album_dir) if f.startswith(".split_temp_")]


def test_success_archives_originals(album, log):
    created = process_single_pair(str(album / "album.cue"), str(album / "album.flac"), make_toolchain(), log)

    assert len(created) == 5
    assert track_files(album) == [
        "01 - One.flac", "02 - Two.flac", "03 - Three.flac", "04 - Four.flac", "05 - Five.flac",
    ]
    assert sorted(os.listdir(album / "_original")) == ["album.cue", "album.flac"]
    assert not (album / "album.flac").exists()
    assert not (album / "album.cue").exists()
    assert leftovers(album) == []


def test_failure_leaves_originals_in_place(album, log):
    toolchain = make_toolchain(splitter=FakeSplitter(produce=2), transcoder=FakeTranscoder(fail_on={3}))
    with pytest.raises(FallbackTrackMissingError):
        process_single_pair(str(album / "album.cue"), str(album / "album.flac"), toolchain, log)

    assert (album / "album.flac").exists()
    assert (album / "album.cue").exists()
    assert not (album / "_original").exists()
    assert track_files(album) == []
    assert leftovers(album) == []


def test_malformed_cue_touches_nothing(tmp_path, log):
    write_file(tmp_path / "album.flac")
    write_file(tmp_path / "album.cue", 'PERFORMER "x"\nTITLE "y"\n')
    toolchain = make_toolchain()
    with pytest.raises(MalformedCueError):
        process_single_pair(str(tmp_path / "album.cue"), str(tmp_path / "album.flac"), toolchain, log)
    assert sorted(os.listdir(tmp_path)) == ["album.cue", "album.flac"]
    assert toolchain.splitter.calls == []


def test_ape_temporary_flac_is_removed(tmp_path, log):
    write_file(tmp_path / "album.ape", b"monkey")
    write_file(tmp_path / "album.cue", make_cue_text(["A", "B"]))
    toolchain = make_toolchain()
    process_single_pair(str(tmp_path / "album.cue"), str(tmp_path / "album.ape"), toolchain, log)

    assert sorted(os.listdir(tmp_path)) == ["01 - A.flac", "02 - B.flac", "_original"]
    assert sorted(os.listdir(tmp_path / "_original")) == ["album.ape", "album.cue"]
    assert len(toolchain.decoders["ape"].calls) == 1


def test_transcode_failure_is_reported(tmp_path, log):
    write_file(tmp_path / "album.wv")
    write_file(tmp_path / "album.cue", make_cue_text(["A", "B"]))
    toolchain = make_toolchain(decoder=FakeDecoder(exit_code=1))
    with pytest.raises(TranscodeError):
        process_single_pair(str(tmp_path / "album.cue"), str(tmp_path / "album.wv"), toolchain, log)
    assert sorted(os.listdir(tmp_path)) == ["album.cue", "album.wv"]


def test_archive_failure_removes_created_tracks(album, log, monkeypatch):
    def broken_archive(*args, **kwargs):
        raise ArchiveError("cannot move")

    monkeypatch.setattr("album_splitter.core.audio_processor.archive_originals", broken_archive)
    with pytest.raises(ArchiveError):
        process_single_pair(str(album / "album.cue"), str(album / "album.flac"), make_toolchain(), log)

    assert track_files(album) == []
    assert (album / "album.flac").exists()
    assert (album / "album.cue").exists()
    assert leftovers(album) == []


def test_temporary_cue_is_not_archived(tmp_path, log):
    album_dir = tmp_path / "Album"
    album_dir.mkdir()
    write_file(album_dir / "album.flac")
    cue = write_file(tmp_path / "extracted.cue", make_cue_text(["A"]))
    process_single_pair(cue, str(album_dir / "album.flac"), make_toolchain(), log, archive_cue=False)

    assert os.listdir(album_dir / "_original") == ["album.flac"]
    assert os.path.exists(cue)


def test_log_prefix_is_applied(album, messages, log):
    process_single_pair(str(album / "album.cue"), str(album / "album.flac"), make_toolchain(), log,
                        log_prefix="[Pair 1/1]")
    assert messages
    assert all(m.startswith("[Pair 1/1] ") for m in messages)


def test_archive_failure_restores_replaced_tracks(album, log, monkeypatch):
    write_file(album / "02 - Two.flac", b"earlier rip")

    def broken_archive(*args, **kwargs):
        raise ArchiveError("cannot move")

    monkeypatch.setattr("album_splitter.core.audio_processor.archive_originals", broken_archive)
    with pytest.raises(ArchiveError):
        process_single_pair(str(album / "album.cue"), str(album / "album.flac"), make_toolchain(), log)

    assert track_files(album) == ["02 - Two.flac"]
    assert (album / "02 - Two.flac").read_bytes() == b"earlier rip"
    assert leftovers(album) == []


def test_success_replaces_existing_tracks(album, log, messages):
    write_file(album / "02 - Two.flac", b"earlier rip")
    process_single_pair(str(album / "album.cue"), str(album / "album.flac"), make_toolchain(), log)

    assert len(track_files(album)) == 5
    assert (album / "02 - Two.flac").read_bytes() == b"data"
    assert any("Overwriting existing file: 02 - Two.flac" in m for m in messages)
    assert leftovers(album) == []
