"""Audio decoding, batch loading and offline rendering."""

from auto_dj.audio.decoder import DecodeError, DecodedAudio, decode_file, decode_wav_bytes
from auto_dj.audio.loader import LoadFailure, LoadReport, TrackLoader
from auto_dj.audio.render import OfflineMixRenderer

__all__ = [
    "DecodeError",
    "DecodedAudio",
    "LoadFailure",
    "LoadReport",
    "OfflineMixRenderer",
    "TrackLoader",
    "decode_file",
    "decode_wav_bytes",
]
