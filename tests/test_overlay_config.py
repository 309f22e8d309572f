import dataclasses
import threading

import pytest

from webcam_overlay.services.events import OverlayEvents
from webcam_overlay.services.overlay_config import (BlendMode, MIN_SCALE, OverlayConfig, OverlayConfigStore)


@pytest.fixture
def store(silent_logger):
    return OverlayConfigStore(logger=silent_logger)


class TestBlendModeLabels:

    @pytest.mark.parametrize("label, mode", [
        ("Normal", BlendMode.NORMAL),
        ("multiply", BlendMode.MULTIPLY),
        ("ADD", BlendMode.ADD),
        (" Screen ", BlendMode.SCREEN),
    ])
    def test_parse(self, label, mode):
        assert BlendMode.parse(label) is mode

    def test_unknown_label_falls_back_to_normal(self):
        assert BlendMode.parse("Overlay") is None
        assert BlendMode.from_label("Overlay") is BlendMode.NORMAL

    def test_labels_in_menu_order(self):
        assert BlendMode.labels() == ["Normal", "Multiply", "Add", "Screen"]


class TestOverlayConfigStore:

    def test_defaults(self, store):
        assert store.snapshot() == OverlayConfig(opacity=0.5, scale=1.0, rotation=0.0,
                                                 blend_mode=BlendMode.NORMAL)

    def test_snapshot_is_immutable(self, store):
        with pytest.raises(dataclasses.FrozenInstanceError):
            store.snapshot().scale = 3.0

    def test_zero_scale_is_clamped(self, store):
        store.set_scale(0.0)
        assert store.snapshot().scale == MIN_SCALE

    def test_initial_config_is_clamped(self, silent_logger):
        store = OverlayConfigStore(OverlayConfig(opacity=4.0, scale=-1.0), logger=silent_logger)
        assert store.snapshot().opacity == 1.0
        assert store.snapshot().scale == MIN_SCALE

    @pytest.mark.parametrize("requested, expected", [(-0.5, 0.0), (0.3, 0.3), (1.7, 1.0)])
    def test_opacity_is_clamped(self, store, requested, expected):
        store.set_opacity(requested)
        assert store.snapshot().opacity == pytest.approx(expected)

    def test_zoom_steps_and_floor(self, store):
        store.zoom_in()
        assert store.snapshot().scale == pytest.approx(1.1)

        for _ in range(20):
            store.zoom_out()
        assert store.snapshot().scale == MIN_SCALE

    def test_rotation_is_unbounded(self, store):
        for _ in range(80):
            store.rotate_cw()
        assert store.snapshot().rotation == pytest.approx(400.0)

        store.rotate_ccw()
        assert store.snapshot().rotation == pytest.approx(395.0)

    def test_mutation_replaces_single_field(self, store):
        store.set_rotation(30.0)
        before = store.snapshot()

        store.set_blend_mode(BlendMode.SCREEN)
        after = store.snapshot()

        assert before is not after
        assert before.blend_mode is BlendMode.NORMAL
        assert after == dataclasses.replace(before, blend_mode=BlendMode.SCREEN)

    def test_blend_mode_from_label(self, store):
        store.set_blend_mode("Multiply")
        assert store.snapshot().blend_mode is BlendMode.MULTIPLY

    def test_unknown_blend_mode_logs_warning(self, store, silent_logger):
        store.set_blend_mode("Dissolve")

        assert store.snapshot().blend_mode is BlendMode.NORMAL
        assert any(level == "warning" for _, level in silent_logger.messages)

    def test_config_changed_published(self, store, clean_broker):
        received = []
        clean_broker.subscribe(OverlayEvents.CONFIG_CHANGED, received.append)

        store.set_opacity(0.9)
        store.set_opacity(0.9)

        assert len(received) == 1
        assert received[0].opacity == pytest.approx(0.9)

    def test_requests_from_broker_are_applied(self, store, clean_broker):
        clean_broker.publish(OverlayEvents.OPACITY_REQUESTED, 0.25)
        clean_broker.publish(OverlayEvents.ZOOM_IN_REQUESTED)
        clean_broker.publish(OverlayEvents.ROTATE_BY_REQUESTED, -5.0)
        clean_broker.publish(OverlayEvents.BLEND_MODE_REQUESTED, "Add")
        clean_broker.publish(OverlayEvents.SCALE_REQUESTED, 0.01)

        config = store.snapshot()
        assert config.opacity == pytest.approx(0.25)
        assert config.scale == MIN_SCALE
        assert config.rotation == pytest.approx(-5.0)
        assert config.blend_mode is BlendMode.ADD

    def test_concurrent_zoom_keeps_every_step(self, store):
        def zoom():
            for _ in range(50):
                store.zoom_in()

        threads = [threading.Thread(target=zoom) for _ in range(4)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert store.snapshot().scale == pytest.approx(1.0 + 200 * 0.1)
