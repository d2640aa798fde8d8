"""Encoding detection and conversion utilities"""
import codecs

import chardet


def _lookup_encoding(name):
    try:
        return codecs.lookup(name).name
    except LookupError:
        return None


def decode_cue_bytes(raw_data, log_func):
    """
    Decode raw CUE sheet bytes using the encoding detected by chardet.

    Falls back to UTF-8 with replacement characters when detection fails or
    names a codec Python does not know.

    Args:
        raw_data: Raw bytes of the CUE file
        log_func: Function to call for logging messages

    Returns:
        Decoded text without a byte order mark
    """
    if raw_data.startswith(codecs.BOM_UTF8):
        return raw_data[len(codecs.BOM_UTF8):].decode('utf-8', errors='replace')

    result = chardet.detect(raw_data) if raw_data else None
    detected_encoding = result.get('encoding') if result else None
    confidence = result.get('confidence', 0) if result else 0

    encoding = _lookup_encoding(detected_encoding) if detected_encoding else None
    if not encoding:
        log_func("⚠️ Could not detect CUE encoding, assuming UTF-8")
        encoding = 'utf-8'
    elif encoding not in ('utf-8', 'ascii'):
        log_func(f"📝 CUE file encoding detected: {detected_encoding} (confidence: {confidence:.2%})")
        log_func(f"🔄 Converting CUE text from {detected_encoding} to UTF-8...")

    return raw_data.decode(encoding, errors='replace').lstrip('\ufeff')


def read_cue_text(cue_path, log_func):
    """
    Read a CUE file in whatever encoding it was written in.

    Args:
        cue_path: Path to the CUE file
        log_func: Function to call for logging messages

    Returns:
        CUE sheet text as a str
    """
    with open(cue_path, 'rb') as f:
        raw_data = f.read()
    return decode_cue_bytes(raw_data, log_func)


def write_utf8_cue(text, dest_path):
    """
    Write CUE text as UTF-8 with Unix line endings.

    The splitter is run against this copy so encoding problems in the
    original sheet cannot drop tracks.

    Args:
        text: CUE sheet text
        dest_path: Path of the UTF-8 copy to create

    Returns:
        dest_path
    """
    lines = text.replace('\r\n', '\n').replace('\r', '\n')
    with open(dest_path, 'w', encoding='utf-8', newline='\n') as f:
        f.write(lines)
    return dest_path
