import numpy as np
import pytest
from PIL import Image

from conftest import FakeFrameSource, solid_frame
from webcam_overlay.services.compositing.compositor import FrameCompositor
from webcam_overlay.services.events import OverlayEvents
from webcam_overlay.services.image_library import ImageLibrary
from webcam_overlay.services.overlay_config import BlendMode, OverlayConfigStore
from webcam_overlay.services.render_loop import RenderLoop


class FakeScheduler:
    """Collects scheduled callbacks instead of arming a timer"""

    def __init__(self):
        self.pending = []

    def __call__(self, delay_ms, callback):
        self.pending.append((delay_ms, callback))

    def fire(self):
        delay_ms, callback = self.pending.pop(0)
        callback()


@pytest.fixture
def library(tmp_path, silent_logger):
    Image.new("RGBA", (4, 2), (255, 255, 255, 255)).save(tmp_path / "white.png")
    (tmp_path / "bad.png").write_bytes(b"nope")
    return ImageLibrary(tmp_path, logger=silent_logger)


@pytest.fixture
def presented():
    return []


@pytest.fixture
def make_loop(silent_logger, library, presented):
    def factory(frame=None, sink=None):
        source = FakeFrameSource(frame)
        store = OverlayConfigStore(logger=silent_logger)
        loop = RenderLoop(source, FrameCompositor(), store, sink or presented.append,
                          image_library=library, interval_ms=33, logger=silent_logger)
        return loop, source, store
    return factory


class TestRenderLoopTick:

    def test_missing_frame_drops_tick(self, make_loop, presented):
        loop, source, _ = make_loop(frame=None)

        assert loop.tick() is False
        assert presented == []
        assert loop.stats['dropped'] == 1
        assert source.reads == 1

    def test_without_overlay_presents_base_frame(self, make_loop, presented):
        frame = solid_frame(8, 6, (1, 2, 3, 255))
        loop, _, _ = make_loop(frame=frame)

        for _ in range(3):
            assert loop.tick() is True

        assert all(output is frame for output in presented)
        assert loop.stats['presented'] == 3

    def test_selected_image_is_composited(self, make_loop, presented):
        loop, _, store = make_loop(frame=solid_frame(8, 6, (0, 0, 0, 255)))
        store.set_opacity(1.0)
        store.set_blend_mode(BlendMode.NORMAL)

        assert loop.select_image("white.png")
        loop.tick()

        output = presented[-1]
        assert np.all(output[2:4, 2:6] == 255)
        assert np.all(output[0, :, :3] == 0)

    def test_failed_load_keeps_previous_overlay(self, make_loop):
        loop, _, _ = make_loop()
        loop.select_image("white.png")
        previous = loop.compositor.overlay_image

        assert loop.select_image("bad.png") is False
        assert loop.compositor.overlay_image is previous

    def test_empty_selection_clears_overlay(self, make_loop, clean_broker):
        cleared = []
        clean_broker.subscribe(OverlayEvents.IMAGE_CLEARED, lambda: cleared.append(True))
        loop, _, _ = make_loop()
        loop.select_image("white.png")

        loop.select_image(None)

        assert not loop.compositor.has_overlay
        assert cleared == [True]

    def test_image_request_event_loads_image(self, make_loop, clean_broker):
        loop, _, _ = make_loop()

        clean_broker.publish(OverlayEvents.IMAGE_REQUESTED, "white.png")

        assert loop.compositor.overlay_image.name == "white.png"

    def test_sink_error_is_logged_and_counted(self, make_loop, silent_logger):
        def broken_sink(frame):
            raise RuntimeError("display gone")

        loop, _, _ = make_loop(frame=solid_frame(4, 4), sink=broken_sink)

        assert loop.tick() is False
        assert loop.stats['errors'] == 1
        assert any("display gone" in message for message, _ in silent_logger.messages)

    def test_config_read_once_per_tick(self, make_loop):
        loop, _, store = make_loop(frame=solid_frame(4, 4))
        reads = []
        original = store.snapshot

        def counting_snapshot():
            reads.append(True)
            return original()

        store.snapshot = counting_snapshot
        loop.tick()

        assert len(reads) == 1


class TestRenderLoopScheduling:

    def test_start_ticks_and_reschedules(self, make_loop, presented):
        loop, _, _ = make_loop(frame=solid_frame(4, 4))
        scheduler = FakeScheduler()

        loop.start(scheduler)

        assert loop.is_running
        assert len(presented) == 1
        assert scheduler.pending[0][0] == 33

        scheduler.fire()
        assert len(presented) == 2

    def test_stop_takes_effect_at_next_tick(self, make_loop, presented):
        loop, _, _ = make_loop(frame=solid_frame(4, 4))
        scheduler = FakeScheduler()
        loop.start(scheduler)

        loop.stop()
        scheduler.fire()

        assert not loop.is_running
        assert len(presented) == 1
        assert scheduler.pending == []

    def test_loop_survives_missing_frames(self, make_loop, presented):
        loop, source, _ = make_loop(frame=None)
        scheduler = FakeScheduler()
        loop.start(scheduler)

        scheduler.fire()
        source.frame = solid_frame(4, 4)
        scheduler.fire()

        assert loop.stats['dropped'] == 2
        assert len(presented) == 1
        assert loop.is_running
