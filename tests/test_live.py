"""Tests for live preview: seed ownership, queueing and result publication."""

import numpy as np
import pytest

from filmlook.capture.frame_buffer import ResultSlot
from filmlook.core.contracts import EffectParameters, PipelineOutput
from filmlook.core.seed import SeedClock
from filmlook.pipeline.live import LivePreview, PipelineProfiler

from conftest import solid


def _fixed_clock(initial=0.0, step=0.2):
    return SeedClock(initial=initial, step_min=step, step_max=step)


class TestResultSlot:

    def test_publishes_newer(self):
        slot = ResultSlot()
        assert slot.publish(PipelineOutput(seed=0.0, frame_id=1))
        assert slot.publish(PipelineOutput(seed=0.0, frame_id=2))
        assert slot.latest().frame_id == 2
        assert slot.published_count == 2

    def test_drops_stale(self):
        slot = ResultSlot()
        slot.publish(PipelineOutput(seed=0.0, frame_id=5))
        assert not slot.publish(PipelineOutput(seed=0.0, frame_id=3))
        assert not slot.publish(PipelineOutput(seed=0.0, frame_id=5))
        assert slot.latest().frame_id == 5
        assert slot.dropped_count == 2

    def test_clear(self):
        slot = ResultSlot()
        slot.publish(PipelineOutput(seed=0.0, frame_id=1))
        slot.clear()
        assert slot.latest() is None
        assert slot.published_count == 0


class TestPipelineProfiler:

    def test_averages(self):
        profiler = PipelineProfiler(window_size=3)
        for value in (1.0, 2.0, 3.0, 4.0):
            profiler.record("engine", value)
        averages = profiler.averages()
        assert averages["engine"] == pytest.approx(3.0)
        assert averages["publish"] == 0.0

    def test_logs_after_interval(self):
        profiler = PipelineProfiler(interval=0.0)
        assert profiler.log_if_ready()
        assert profiler.frame_count == 0


class TestLivePreviewSync:

    def test_seed_advances_once_per_frame(self):
        clock = _fixed_clock()
        preview = LivePreview(seed_clock=clock)
        seeds = [preview.render(solid(0.5, 8, 8)).seed for _ in range(3)]
        assert seeds == pytest.approx([0.2, 0.4, 0.6])
        assert clock.advances == 3

    def test_request_ids_increase(self):
        preview = LivePreview(seed_clock=_fixed_clock())
        first = preview.render(solid(0.5, 8, 8))
        second = preview.render(solid(0.5, 8, 8))
        assert second.frame_id > first.frame_id
        assert preview.latest().frame_id == second.frame_id

    def test_parameter_change_without_frame_advances_seed(self):
        clock = _fixed_clock()
        preview = LivePreview(seed_clock=clock)
        assert preview.update_parameters(EffectParameters(sepia=1.0)) is None
        assert clock.advances == 1
        assert preview.parameters.sepia == 1.0

    def test_failed_frame_is_still_published(self):
        preview = LivePreview(seed_clock=_fixed_clock())
        empty = solid(0.5, 8, 8).with_pixels(np.zeros((0, 8, 4), dtype=np.float32))
        output = preview.render(empty)
        assert not output.success
        assert preview.latest() is output

    def test_queue_drops_oldest(self):
        preview = LivePreview(seed_clock=_fixed_clock(), queue_size=2)
        for _ in range(5):
            preview.submit(solid(0.5, 8, 8))
        assert preview.dropped_frames == 3

    def test_dropped_frames_still_advance_seed(self):
        clock = _fixed_clock()
        with LivePreview(seed_clock=clock, queue_size=1) as preview:
            last = 0
            for _ in range(6):
                last = preview.submit(solid(0.5, 8, 8))
            assert preview.wait_for(last, timeout=5.0)
            output = preview.latest()

        assert clock.advances == 6
        assert output.frame_id == last
        assert output.seed == pytest.approx(1.2)

    def test_invalid_queue_size(self):
        with pytest.raises(ValueError):
            LivePreview(queue_size=0)


class TestLivePreviewWorker:

    def test_submit_publishes(self):
        with LivePreview(seed_clock=_fixed_clock()) as preview:
            assert preview.is_running
            request_id = preview.submit(solid(0.5, 16, 16))
            assert preview.wait_for(request_id, timeout=5.0)
            output = preview.latest()

        assert not preview.is_running
        assert output.success
        assert output.frame_id == request_id

    def test_update_parameters_rerenders_last_frame(self):
        image = solid(0.5, 16, 16)
        clock = _fixed_clock()
        with LivePreview(seed_clock=clock) as preview:
            first = preview.submit(image)
            assert preview.wait_for(first, timeout=5.0)
            plain = preview.latest()

            second = preview.update_parameters(EffectParameters(sepia=1.0))
            assert second is not None and second > first
            assert preview.wait_for(second, timeout=5.0)
            toned = preview.latest()

        assert toned.frame_id == second
        assert toned.seed > plain.seed
        r, g, b = toned.buffer[0, 0, :3].astype(int)
        assert r > g > b
        assert clock.advances == 2

    def test_published_ids_never_decrease(self):
        with LivePreview(seed_clock=_fixed_clock(), queue_size=1) as preview:
            seen = []
            last = 0
            for _ in range(20):
                last = preview.submit(solid(0.3, 16, 16))
                output = preview.latest()
                if output is not None:
                    seen.append(output.frame_id)
            assert preview.wait_for(last, timeout=5.0)
            seen.append(preview.latest().frame_id)

        assert seen == sorted(seen)
        assert seen[-1] == last
