"""
clipscribe.extract - Audio segmentation of source recordings.

Pipeline Stage 1: Probe a video or audio file with ffprobe and cut its
audio into fixed-length WAV segments with FFmpeg.
"""

from __future__ import annotations
