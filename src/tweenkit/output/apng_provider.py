"""Animated PNG output provider."""

from .video_provider import VideoOutputProvider


class ApngOutputProvider(VideoOutputProvider):
    """Output provider for APNG format."""

    output_format = "apng"
    media_type = "image/apng"
    container = "apng"
