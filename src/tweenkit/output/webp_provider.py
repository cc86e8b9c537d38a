"""WebP output provider."""

from .video_provider import VideoOutputProvider


class WebPOutputProvider(VideoOutputProvider):
    """Output provider for animated WebP format."""

    output_format = "webp"
    media_type = "image/webp"
    container = "webp"
