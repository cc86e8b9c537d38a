"""Tests for raster animation export: negotiation, frame loop and media handling."""

import asyncio
import threading
import time
from io import BytesIO

import pytest
from PIL import Image

from tweenkit.errors import EncoderUnavailableError, ExportCancelledError, InvalidExportOptionsError
from tweenkit.model import Element, ElementType, FillEntry, Keyframe, PropertyPatch, Scene
from tweenkit.output import ApngOutputProvider, GifOutputProvider, VideoOutputProvider
from tweenkit.output.encoders import FrameEncoder, frame_durations, negotiate_encoder
from tweenkit.output.options import VideoExportOptions
from tweenkit.output.video_provider import MEDIA_MISSING
from tweenkit.render.media import AnimatedImageSource, MediaSource, media_local_time


class RecordingEncoder(FrameEncoder):
    """Keeps copies of every frame instead of encoding them."""

    name = "fake"
    extension = ".fake"
    media_type = "application/x-fake"
    instances: list["RecordingEncoder"] = []

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.frames: list[Image.Image] = []
        RecordingEncoder.instances.append(self)

    @classmethod
    def available(cls) -> bool:
        return True

    def add_frame(self, frame):
        self.frames.append(frame.copy())

    def finish(self) -> bytes:
        return str(len(self.frames)).encode()


class UnavailableEncoder(RecordingEncoder):
    name = "missing"

    @classmethod
    def available(cls) -> bool:
        return False


class ColorRasterizer:
    """Paints each frame a distinct solid color and fails on chosen frames."""

    def __init__(self, context, fail_on=()):
        self.context = context
        self.fail_on = set(fail_on)

    def render_frame(self, sample, media_frames=None):
        if sample.frame in self.fail_on:
            raise RuntimeError("boom")
        return Image.new("RGBA", self.context.size, (int(sample.frame) * 40, 0, 0, 255))


def color_rasterizer(fail_on=()):
    def factory(options, context, warn):
        return ColorRasterizer(context, fail_on)

    return factory


class FakeMediaSource(MediaSource):
    def __init__(self):
        self.seeks: list[float] = []
        self.closed = False

    @property
    def duration(self) -> float:
        return 1.0

    async def seek(self, seconds):
        self.seeks.append(seconds)

    def current_frame(self):
        return Image.new("RGBA", (2, 2), "blue")

    def close(self):
        self.closed = True


def _scene(total_frames=4, elements=None) -> Scene:
    if elements is None:
        elements = [Element(id="box", width=10, height=10, fills=[FillEntry(color="00FF00")])]
    return Scene(elements=elements, width=20, height=10, fps=10, total_frames=total_frames)


def _fake_provider(**kwargs) -> VideoOutputProvider:
    kwargs.setdefault("rasterizer_factory", color_rasterizer())
    return VideoOutputProvider(encoders={"fake": RecordingEncoder}, **kwargs)


FAKE = VideoExportOptions(formats=("fake",))


def test_frame_durations_track_the_timeline():
    """Rounded per-frame durations never drift from the ideal timeline."""
    assert frame_durations(3, 30) == [33, 34, 33]
    assert frame_durations(4, 24) == [42, 41, 42, 42]
    assert sum(frame_durations(90, 30)) == 3000


def test_negotiation_takes_first_available_format():
    registry = {"webp": UnavailableEncoder, "apng": RecordingEncoder, "gif": RecordingEncoder}
    assert negotiate_encoder(("webp", "apng", "gif"), registry) is RecordingEncoder


def test_negotiation_falls_back_to_default_container():
    registry = {"webp": UnavailableEncoder, "gif": RecordingEncoder}
    assert negotiate_encoder(("webp",), registry) is RecordingEncoder


def test_negotiation_fails_when_nothing_is_usable():
    registry = {"webp": UnavailableEncoder, "gif": UnavailableEncoder}

    with pytest.raises(EncoderUnavailableError, match="webp, apng, gif"):
        negotiate_encoder(("webp", "apng"), registry)
    with pytest.raises(EncoderUnavailableError):
        negotiate_encoder(("webp",), registry, fallback=None)


def test_pinned_container_does_not_fall_back():
    provider = GifOutputProvider(encoders={"gif": UnavailableEncoder, "webp": RecordingEncoder})

    with pytest.raises(EncoderUnavailableError):
        provider.export(_scene())


def test_failed_frame_is_replaced_by_background():
    """A frame that fails to render still occupies its slot in the output."""
    RecordingEncoder.instances.clear()
    provider = _fake_provider(rasterizer_factory=color_rasterizer(fail_on={2}))

    result = provider.export(_scene(total_frames=4), FAKE)

    (encoder,) = RecordingEncoder.instances
    assert result.data == b"5"
    assert result.output_format == "fake"
    assert encoder.frames[2].getpixel((0, 0)) == (255, 255, 255, 255)
    assert encoder.frames[3].getpixel((0, 0)) == (120, 0, 0, 255)
    assert result.warnings == (
        "Frame 2 failed to render and was replaced with the background: boom",
    )


def test_failed_frame_is_transparent_without_background():
    RecordingEncoder.instances.clear()
    provider = _fake_provider(rasterizer_factory=color_rasterizer(fail_on={0}))

    provider.export(_scene(total_frames=1), VideoExportOptions(formats=("fake",), transparent_background=True))

    assert RecordingEncoder.instances[0].frames[0].getpixel((0, 0)) == (0, 0, 0, 0)


def test_gif_output_has_one_frame_per_timeline_frame():
    provider = GifOutputProvider(rasterizer_factory=color_rasterizer(fail_on={2}))

    result = provider.export(_scene(total_frames=4))

    assert result.media_type == "image/gif"
    assert result.data.startswith(b"GIF89")
    with Image.open(BytesIO(result.data)) as image:
        assert image.n_frames == 5
        assert image.size == (20, 10)


def test_resolution_scales_the_canvas():
    provider = GifOutputProvider(rasterizer_factory=color_rasterizer())

    result = provider.export(_scene(total_frames=1), VideoExportOptions(resolution=2))

    with Image.open(BytesIO(result.data)) as image:
        assert image.size == (40, 20)


def test_default_renderer_produces_animated_png():
    """End to end through the direct renderer and the APNG encoder."""
    scene = _scene(
        total_frames=2,
        elements=[Element(id="box", width=5, height=5, fills=[FillEntry(color="FF0000")])],
    )
    scene.keyframes.upsert(Keyframe("k0", "box", 0, PropertyPatch(x=0)))
    scene.keyframes.upsert(Keyframe("k1", "box", 2, PropertyPatch(x=10)))

    result = ApngOutputProvider().export(scene)

    assert result.media_type == "image/apng"
    with Image.open(BytesIO(result.data)) as image:
        assert image.n_frames == 3
        assert image.convert("RGB").getpixel((1, 1)) == (255, 0, 0)


def test_progress_phases_in_order():
    events = []
    provider = _fake_provider()

    asyncio.run(provider.export_async(_scene(total_frames=2), FAKE, on_progress=events.append))

    assert [event.phase for event in events] == [
        "preparing", "rendering", "rendering", "rendering", "encoding", "complete",
    ]
    assert [event.current_frame for event in events if event.phase == "rendering"] == [1, 2, 3]
    assert events[-1].percent == 100


def test_cancel_before_first_frame():
    cancel = asyncio.Event()
    cancel.set()

    with pytest.raises(ExportCancelledError):
        asyncio.run(_fake_provider().export_async(_scene(), FAKE, cancel_event=cancel))


def test_cancel_between_frames_stops_rendering():
    RecordingEncoder.instances.clear()
    cancel = asyncio.Event()

    def on_progress(event):
        if event.phase == "rendering" and event.current_frame == 2:
            cancel.set()

    with pytest.raises(ExportCancelledError, match="frame 2"):
        asyncio.run(
            _fake_provider().export_async(_scene(), FAKE, on_progress=on_progress, cancel_event=cancel)
        )
    assert len(RecordingEncoder.instances[0].frames) == 2


def test_media_is_seeked_per_frame_and_closed():
    source = FakeMediaSource()
    clip = Element(id="clip", type=ElementType.VIDEO, href="clip.gif", trim_start=0.5)
    provider = _fake_provider(media_factory=lambda element: source)

    provider.export(_scene(total_frames=2, elements=[clip]), FAKE)

    assert source.seeks == pytest.approx([0.5, 0.6, 0.7])
    assert source.closed


def test_media_is_closed_when_export_is_cancelled():
    source = FakeMediaSource()
    clip = Element(id="clip", type=ElementType.VIDEO, href="clip.gif")
    cancel = asyncio.Event()
    cancel.set()
    provider = _fake_provider(media_factory=lambda element: source)

    with pytest.raises(ExportCancelledError):
        asyncio.run(provider.export_async(_scene(elements=[clip]), FAKE, cancel_event=cancel))
    assert source.closed


def test_unopenable_media_is_skipped_with_warning():
    def broken(element):
        raise OSError("no such file")

    clip = Element(id="clip", type=ElementType.VIDEO, href="missing.gif")
    result = _fake_provider(media_factory=broken).export(_scene(total_frames=0, elements=[clip]), FAKE)

    assert result.warnings == ("Media for video element 'clip' could not be opened: no such file",)


def test_video_without_href_warns():
    clip = Element(id="clip", type=ElementType.VIDEO)
    result = _fake_provider().export(_scene(total_frames=0, elements=[clip]), FAKE)

    assert MEDIA_MISSING in result.warnings


def test_media_local_time_respects_trim_and_rate():
    clip = Element(id="clip", type=ElementType.VIDEO, trim_start=1, trim_end=2, playback_rate=2)

    assert media_local_time(clip, 0, 10) == 1
    assert media_local_time(clip, 3, 10) == pytest.approx(1.6)
    assert media_local_time(clip, 30, 10) == 2


@pytest.mark.parametrize(
    "options",
    [
        VideoExportOptions(formats=()),
        VideoExportOptions(resolution=0),
        VideoExportOptions(quality=101),
        VideoExportOptions(strategy="vector"),
        VideoExportOptions(background="not-a-color"),
    ],
)
def test_invalid_options_are_rejected_before_rendering(options):
    with pytest.raises(InvalidExportOptionsError):
        _fake_provider().export(_scene(), options)


class StalledMediaSource(FakeMediaSource):
    """A source whose seeks never complete."""

    def __init__(self):
        super().__init__()
        self.never = asyncio.Event()

    async def seek(self, seconds):
        self.seeks.append(seconds)
        await self.never.wait()

    def current_frame(self):
        return None


def test_stalled_seek_does_not_hang_the_export():
    """Each seek gives up after the timeout and the frame is still rendered."""
    RecordingEncoder.instances.clear()
    source = StalledMediaSource()
    clip = Element(id="clip", type=ElementType.VIDEO, href="clip.gif")
    provider = _fake_provider(media_factory=lambda element: source)

    result = provider.export(
        _scene(total_frames=3, elements=[clip]),
        VideoExportOptions(formats=("fake",), seek_timeout=0.01),
    )

    assert result.data == b"4"
    assert len(RecordingEncoder.instances[0].frames) == 4
    assert len(source.seeks) == 4
    assert source.closed


class SlowImageSource(AnimatedImageSource):
    """Records overlapping decodes and whether close ran while one was active."""

    def __init__(self, path):
        super().__init__(path)
        self.active = 0
        self.max_active = 0
        self.closed_while_decoding = False
        self.counter_lock = threading.Lock()

    def _decode(self, index):
        with self.counter_lock:
            self.active += 1
            self.max_active = max(self.max_active, self.active)
        time.sleep(0.1)
        frame = super()._decode(index)
        with self.counter_lock:
            self.active -= 1
        return frame

    def close(self):
        super().close()
        self.closed_while_decoding = self.active > 0


def test_timed_out_seeks_never_overlap_on_one_image(tmp_path):
    path = tmp_path / "clip.gif"
    frames = [Image.new("RGB", (4, 4), color) for color in ("red", "green", "blue", "white")]
    frames[0].save(path, save_all=True, append_images=frames[1:], duration=100)
    sources = []

    def open_slow(element):
        sources.append(SlowImageSource(element.href))
        return sources[-1]

    clip = Element(id="clip", type=ElementType.VIDEO, href=str(path))
    provider = _fake_provider(media_factory=open_slow)

    result = provider.export(
        _scene(total_frames=3, elements=[clip]),
        VideoExportOptions(formats=("fake",), seek_timeout=0.02),
    )

    (source,) = sources
    assert result.data == b"4"
    assert source.max_active == 1
    assert not source.closed_while_decoding
