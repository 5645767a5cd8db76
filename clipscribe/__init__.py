"""
Clipscribe - segmented transcription for long recordings.

Cuts an audio or video recording into fixed-length slices and turns them
into one ordered transcript through a two-stage pipeline: audio
segmentation → per-segment speech-to-text (remote batches or local
sequential inference).
"""

__version__ = "0.1.0"
