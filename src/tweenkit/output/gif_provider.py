"""GIF output provider."""

from .video_provider import VideoOutputProvider


class GifOutputProvider(VideoOutputProvider):
    """Output provider for GIF format."""

    output_format = "gif"
    media_type = "image/gif"
    container = "gif"
