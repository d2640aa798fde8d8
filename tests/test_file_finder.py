import os

import pytest

from album_splitter.core.errors import NoMatchingAudioError
from album_splitter.core.file_finder import find_cue_files, is_excluded_dir, match_audio_file

from conftest import make_cue_text, write_file


def test_find_cue_files_recursively(tmp_path, log):
    (tmp_path / "A").mkdir()
    (tmp_path / "B" / "CD1").mkdir(parents=True)
    write_file(tmp_path / "A" / "a.cue", make_cue_text(["x"]))
    write_file(tmp_path / "B" / "CD1" / "b.CUE", make_cue_text(["x"]))
    write_file(tmp_path / "B" / "notes.txt", "hello")

    found = find_cue_files(str(tmp_path), log)
    assert found == [
        str(tmp_path / "A" / "a.cue"),
        str(tmp_path / "B" / "CD1" / "b.CUE"),
    ]


def test_original_and_working_dirs_are_skipped(tmp_path):
    (tmp_path / "_original").mkdir()
    (tmp_path / ".split_temp_123_abc").mkdir()
    write_file(tmp_path / "_original" / "old.cue", make_cue_text(["x"]))
    write_file(tmp_path / ".split_temp_123_abc" / "sheet.utf8.cue", make_cue_text(["x"]))
    assert find_cue_files(str(tmp_path)) == []


def test_is_excluded_dir():
    assert is_excluded_dir("_original")
    assert is_excluded_dir(".split_temp_42_xyz")
    assert not is_excluded_dir("CD1")


def test_match_same_base_name(tmp_path, log):
    write_file(tmp_path / "album.cue", make_cue_text(["x"]))
    write_file(tmp_path / "album.ape")
    write_file(tmp_path / "aaa.flac")
    assert match_audio_file(str(tmp_path / "album.cue"), log) == str(tmp_path / "album.ape")


def test_match_prefers_flac_then_ape_then_wavpack(tmp_path, log):
    write_file(tmp_path / "album.cue", make_cue_text(["x"]))
    write_file(tmp_path / "album.wv")
    write_file(tmp_path / "album.flac")
    assert match_audio_file(str(tmp_path / "album.cue"), log) == str(tmp_path / "album.flac")


def test_match_is_case_insensitive(tmp_path, log):
    write_file(tmp_path / "Album.cue", make_cue_text(["x"]))
    write_file(tmp_path / "album.FLAC")
    assert match_audio_file(str(tmp_path / "Album.cue"), log) == str(tmp_path / "album.FLAC")


def test_match_file_directive(tmp_path, log):
    write_file(tmp_path / "disc.cue", make_cue_text(["x"], audio_name="Real Album.wav"))
    write_file(tmp_path / "Aaa distractor.flac")
    write_file(tmp_path / "Real Album.flac")
    assert match_audio_file(str(tmp_path / "disc.cue"), log) == str(tmp_path / "Real Album.flac")


def test_match_cue_named_after_audio(tmp_path, log):
    write_file(tmp_path / "album.wv.cue", make_cue_text(["x"], audio_name="missing.wav"))
    write_file(tmp_path / "album.wv")
    write_file(tmp_path / "aaa.flac")
    assert match_audio_file(str(tmp_path / "album.wv.cue"), log) == str(tmp_path / "album.wv")


def test_match_any_audio_in_directory(tmp_path, log):
    write_file(tmp_path / "sheet.cue", make_cue_text(["x"], audio_name="gone.wav"))
    write_file(tmp_path / "image.ape")
    assert match_audio_file(str(tmp_path / "sheet.cue"), log) == str(tmp_path / "image.ape")


def test_no_match_lists_candidates(tmp_path, log):
    write_file(tmp_path / "sheet.cue", make_cue_text(["x"], audio_name="gone.wav"))
    write_file(tmp_path / "image.wav")
    write_file(tmp_path / "cover.jpg")
    with pytest.raises(NoMatchingAudioError) as excinfo:
        match_audio_file(str(tmp_path / "sheet.cue"), log)
    assert excinfo.value.candidates == ["image.wav"]
    assert excinfo.value.cue_path == str(tmp_path / "sheet.cue")


def test_directories_are_not_matched(tmp_path, log):
    write_file(tmp_path / "album.cue", make_cue_text(["x"]))
    os.mkdir(tmp_path / "album.flac")
    with pytest.raises(NoMatchingAudioError):
        match_audio_file(str(tmp_path / "album.cue"), log)


def test_match_file_directive_in_legacy_encoding(tmp_path, log, monkeypatch):
    monkeypatch.setattr(
        "album_splitter.utils.encoding.chardet.detect",
        lambda raw: {"encoding": "windows-1251", "confidence": 0.99},
    )
    text = make_cue_text(["Звезда"], performer="Кино", audio_name="Кино - Звезда.wav")
    write_file(tmp_path / "disc.cue", text.encode("cp1251"))
    write_file(tmp_path / "Another Album.flac")
    write_file(tmp_path / "Кино - Звезда.flac")

    assert match_audio_file(str(tmp_path / "disc.cue"), log) == str(tmp_path / "Кино - Звезда.flac")


def test_match_unquoted_file_directive(tmp_path, log):
    text = make_cue_text(["x"], audio_name="Real.wav").replace('FILE "Real.wav"', "FILE Real.wav")
    write_file(tmp_path / "disc.cue", text)
    write_file(tmp_path / "Aaa distractor.flac")
    write_file(tmp_path / "Real.ape")

    assert match_audio_file(str(tmp_path / "disc.cue"), log) == str(tmp_path / "Real.ape")
