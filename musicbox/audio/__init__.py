"""Audio side of musicbox.

Kept lightweight: samples are decoded with the stdlib wave module, and
anything else shells out to system tools:
- ffmpeg to decode mp3/ogg/flac samples and to compress offline bounces
- ffplay for live playback through the shared compressor
"""
