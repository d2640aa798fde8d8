"""
Album Splitter - split single-file lossless album images into tracks

This package provides functionality to:
- Recursively search for CUE+audio pairs (or embedded cue sheets) in directory trees
- Convert APE and WavPack images to FLAC without loss
- Split with shnsplit, verify the track count and fall back to ffmpeg when tracks go missing
- Move the original image and CUE to _original/ only after a complete split
"""

__version__ = "1.0.0"
__author__ = "Album Splitter Project"
