"""Global constants for the application."""

# Timeline defaults
DEFAULT_FPS = 24  # Default frames per second for a scene
DEFAULT_TOTAL_FRAMES = 60  # Default scene duration in frames
DEFAULT_EASING = "linear"  # Easing recorded on new keyframes

# Artboard defaults
DEFAULT_WIDTH = 800
DEFAULT_HEIGHT = 600
DEFAULT_BACKGROUND = "FFFFFF"  # Hex without leading '#'

# Evaluator
LEFT_LIMIT_EPSILON = 1e-6  # Frame offset used to probe a value just before or after a keyframe

# Markup output
SVG_NAMESPACE = "http://www.w3.org/2000/svg"
KEY_TIME_PRECISION = 1e6  # keyTimes are rounded to 1/KEY_TIME_PRECISION

# Lottie output
LOTTIE_VERSION = "5.7.0"
LOTTIE_DOCUMENT_NAME = "tweenkit export"
JUMP_FRAME_OFFSET = 1e-3  # Lottie key placed just after a keyframe where the value jumps

# Raster/video output
PREFERRED_VIDEO_FORMATS = ("webp", "apng", "gif")  # Tried in order during negotiation
DEFAULT_VIDEO_FORMAT = "gif"  # Container used when no preferred format is available
DEFAULT_VIDEO_BITRATE = 8_000_000  # Bits per second
LOSSLESS_BITRATE_THRESHOLD = 16_000_000  # Bitrates at or above this encode lossless WebP
DEFAULT_VIDEO_QUALITY = 90  # Lossy encoder quality (0-100)
DEFAULT_SEEK_TIMEOUT = 0.5  # Seconds to wait for a media seek before drawing anyway
RSVG_CONVERT_BINARY = "rsvg-convert"  # Rasterizer used by the markup strategy
RSVG_CONVERT_ENV = "TWEENKIT_RSVG_CONVERT"  # Overrides the rasterizer binary path

# Drawing
CURVE_FLATTEN_STEPS = 16  # Line segments per bezier curve when drawing paths
FALLBACK_LINE_WIDTH = 2  # Stroke width for lines/paths without a visible stroke
