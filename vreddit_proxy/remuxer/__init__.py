"""
Media remuxer package.

- artifact: temporary output files and their release
- ffmpeg_muxer: lossless audio/video muxing through an ffmpeg subprocess
"""
