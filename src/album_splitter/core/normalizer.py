"""Lossless transcode of APE and WavPack images to FLAC"""
import os
from collections import namedtuple

from .errors import TranscodeError, UnsupportedFormatError

CODEC_BY_EXTENSION = {
    ".flac": "flac",
    ".ape": "ape",
    ".wv": "wavpack",
}

AUDIO_EXTENSIONS = tuple(CODEC_BY_EXTENSION)

SourceAudio = namedtuple("SourceAudio", ["path", "codec"])

# path is the FLAC handed to the splitter; is_temporary marks a derived file to delete afterwards
NormalizedAudio = namedtuple("NormalizedAudio", ["path", "codec", "is_temporary"])


def codec_for_path(path):
    """Return the codec name for an audio file path, or None if unsupported"""
    return CODEC_BY_EXTENSION.get(os.path.splitext(path)[1].lower())


def source_audio(path):
    """
    Build a SourceAudio for a file path.

    Raises:
        UnsupportedFormatError: If the extension is not flac, ape or wv
    """
    codec = codec_for_path(path)
    if codec is None:
        raise UnsupportedFormatError(f"Unsupported format: {os.path.splitext(path)[1] or path}")
    return SourceAudio(path, codec)


def _remove_quietly(path):
    if path and os.path.exists(path):
        os.remove(path)


def normalize_source(source, working_dir, toolchain, log):
    """
    Make sure the audio handed to the splitter is FLAC.

    APE and WavPack sources are decoded to WAV and re-encoded to FLAC at
    level 8 inside working_dir. The source file itself is never touched.

    Args:
        source: SourceAudio to normalize
        working_dir: Per-pair temporary directory receiving intermediates
        toolchain: Toolchain providing decoders and the FLAC encoder
        log: Function to call for logging messages

    Returns:
        NormalizedAudio

    Raises:
        TranscodeError: If decoding or encoding exits with a non-zero status
    """
    if source.codec == "flac":
        return NormalizedAudio(source.path, "flac", False)

    decoder = toolchain.decoder_for(source.codec)
    if decoder is None:
        raise UnsupportedFormatError(f"No decoder available for {source.codec}")

    base_name = os.path.splitext(os.path.basename(source.path))[0]
    wav_path = os.path.join(working_dir, base_name + ".temp.wav")
    flac_path = os.path.join(working_dir, base_name + ".flac")

    log(f"🔄 Converting {source.codec.upper()} to FLAC: {os.path.basename(source.path)}")
    try:
        exit_code = decoder.decode(source.path, wav_path)
        if exit_code != 0 or not os.path.isfile(wav_path):
            raise TranscodeError(
                f"{decoder.name} decode failed with exit code {exit_code}",
                command=decoder.name, exit_code=exit_code,
            )

        exit_code = toolchain.encoder.encode(wav_path, flac_path)
        if exit_code != 0 or not os.path.isfile(flac_path):
            _remove_quietly(flac_path)
            raise TranscodeError(
                f"{toolchain.encoder.name} encode failed with exit code {exit_code}",
                command=toolchain.encoder.name, exit_code=exit_code,
            )
    finally:
        _remove_quietly(wav_path)

    log(f"✅ Conversion completed: {os.path.basename(flac_path)}")
    return NormalizedAudio(flac_path, "flac", True)
