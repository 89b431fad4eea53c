"""
Montage configuration.

Centralized FFmpeg settings and output parameters. Every segment and the
final artifact share these values so the concat demuxer sees uniform streams.
"""

# Video output settings
OUTPUT_WIDTH = 1280
OUTPUT_HEIGHT = 720
OUTPUT_FPS = 30
OUTPUT_PIX_FMT = "yuv420p"
OUTPUT_VIDEO_CODEC = "libx264"
OUTPUT_AUDIO_CODEC = "aac"
OUTPUT_AUDIO_BITRATE = "192k"

# Still images are looped into clips of this length
IMAGE_SEGMENT_SECONDS = 3

# Name of the delivered attachment
DOWNLOAD_FILENAME = "final-video.mp4"


def scale_filter(width: int = OUTPUT_WIDTH, height: int = OUTPUT_HEIGHT) -> str:
    """
    Build the -vf chain shared by image and video normalization.

    Returns:
        Filter string, e.g. "scale=1280:720,format=yuv420p"
    """
    return f"scale={width}:{height},format={OUTPUT_PIX_FMT}"
