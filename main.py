#!/usr/bin/env python3
"""
CUE Sheet Audio Splitter - Main Entry Point

Splits single-file FLAC, APE and WavPack album images into per-track FLAC files.
Features:
- Recursive search for CUE+audio pairs, or embedded cue sheets when no .cue exists
- Lossless conversion of APE/WavPack to FLAC before splitting
- shnsplit split verified against the CUE track count, with an ffmpeg fallback
- Originals archived to _original/ only after a complete split
"""
import os
import sys

# Add src directory to Python path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), 'src'))

from album_splitter.cli import main


if __name__ == "__main__":
    sys.exit(main())
