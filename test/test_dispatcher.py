from __future__ import annotations

import pytest

from core.channel_registry import ChannelRegistry
from core.dispatcher import FeedDispatcher
from core.pause_controller import PauseController
from shared.sample_window import SampleWindow
from test.fixtures.fakes import FakeClock, ManualScheduler, RecordingSink

CHANNELS = [True, True, True, True, False, False]


def _make_dispatcher(scheduler=None, clock=None, channels=CHANNELS, throttle_ms=100, bind=True):
    scheduler = scheduler or ManualScheduler()
    clock = clock or FakeClock(scheduler=scheduler)
    registry = ChannelRegistry(channels)
    windows = {idx: SampleWindow(retention_ms=60_000, capacity=1024) for idx in registry.enabled_indices}
    pause = PauseController(registry)
    dispatcher = FeedDispatcher(registry, windows, pause, scheduler, throttle_ms=throttle_ms, clock=clock)
    if bind:
        dispatcher.bind_channels(registry.enabled_indices)
    return dispatcher, windows, pause, scheduler, clock


def _counts(windows):
    return {idx: len(w) for idx, w in windows.items()}


class TestDispatchLine:
    def test_well_formed_line_fans_out_to_enabled_channels(self):
        d, windows, _, _, clock = _make_dispatcher()
        clock.offset = 1234

        d.dispatch_line("0,1.5,2.5,3.5,4.5,5.5,6.5")

        assert set(windows) == {0, 1, 2, 3}
        for idx, expected in zip(range(4), (1.5, 2.5, 3.5, 4.5)):
            latest = windows[idx].latest()
            assert latest.value == expected
            # ingestion time, not the "0" sequence field
            assert latest.timestamp_ms == clock()
        assert _counts(windows) == {0: 1, 1: 1, 2: 1, 3: 1}

    @pytest.mark.parametrize("line", ["", "   ", "\t"])
    def test_blank_line_appends_nothing(self, line):
        d, windows, _, _, _ = _make_dispatcher()
        d.dispatch_line(line)
        assert _counts(windows) == {0: 0, 1: 0, 2: 0, 3: 0}

    def test_non_numeric_field_skips_only_that_channel(self):
        d, windows, _, _, _ = _make_dispatcher()

        d.dispatch_line("1,abc,2.5,3.5,4.5")

        assert _counts(windows) == {0: 0, 1: 1, 2: 1, 3: 1}
        assert windows[1].latest().value == 2.5
        assert d.snapshot()["invalid"] == {0: 1}

    def test_infinity_and_separator_tokens_are_no_sample(self):
        d, windows, _, _, _ = _make_dispatcher()

        d.dispatch_line("0,inf,1_000,-Infinity,4.5")

        assert _counts(windows) == {0: 0, 1: 0, 2: 0, 3: 1}
        assert d.snapshot()["invalid"] == {0: 1, 1: 1, 2: 1}
        assert d.snapshot()["errors"] == 0

    def test_short_record_is_no_sample_not_error(self):
        d, windows, _, _, _ = _make_dispatcher()

        d.dispatch_line("1,10,20")

        assert _counts(windows) == {0: 1, 1: 1, 2: 0, 3: 0}
        assert d.snapshot()["errors"] == 0

    def test_paused_channel_is_parsed_but_discarded(self):
        d, windows, pause, _, _ = _make_dispatcher()
        pause.toggle(2)

        d.dispatch_line("0,1,2,3,4")

        assert _counts(windows) == {0: 1, 1: 1, 2: 0, 3: 1}
        assert d.snapshot()["paused_drops"] == {2: 1}

    def test_unbound_channel_is_silent_noop(self):
        d, windows, _, _, _ = _make_dispatcher(bind=False)
        d.bind_channels([0, 1, 3, 4])

        d.dispatch_line("0,1,2,3,4,5,6")

        assert _counts(windows) == {0: 1, 1: 1, 2: 0, 3: 1}
        assert d.snapshot()["missing_target"] == {2: 1}

    def test_router_error_is_logged_and_swallowed(self, caplog):
        d, windows, _, _, _ = _make_dispatcher()

        class Exploding(SampleWindow):
            def append(self, sample):
                raise RuntimeError("disk on fire")

        d._windows[0] = Exploding()
        d.dispatch_line("0,1,2,3,4")

        assert d.snapshot()["errors"] == 1
        assert "skipped bad line" in caplog.text

    def test_tick_callbacks_receive_stats(self):
        d, _, _, _, _ = _make_dispatcher()
        ticks = []
        unsubscribe = d.add_tick_callback(ticks.append)

        d.dispatch_line("0,1,2,3,4")
        unsubscribe()
        d.dispatch_line("1,1,2,3,4")

        assert len(ticks) == 1
        assert ticks[0]["dispatched"] == 1
        assert ticks[0]["appended"] == {0: 1, 1: 1, 2: 1, 3: 1}

    def test_missing_window_for_enabled_channel_raises(self):
        registry = ChannelRegistry([True, True])
        with pytest.raises(ValueError, match="no window"):
            FeedDispatcher(registry, {0: SampleWindow()}, PauseController(registry), ManualScheduler())


class TestIngest:
    def test_blank_only_frame_appends_nothing(self):
        d, windows, _, scheduler, _ = _make_dispatcher()

        d.ingest("\n   \n\t\n")
        scheduler.advance(1000)

        assert _counts(windows) == {0: 0, 1: 0, 2: 0, 3: 0}
        assert d.snapshot()["blank_lines"] == 4

    def test_burst_is_coalesced_to_latest_line(self):
        d, windows, _, scheduler, _ = _make_dispatcher()
        frame = "\n".join(f"{i},{i},{i + 0.5},{i + 1},{i + 2}" for i in range(50)) + "\n"

        d.ingest(frame)
        # leading edge delivered the first line right away
        assert _counts(windows) == {0: 1, 1: 1, 2: 1, 3: 1}
        assert windows[0].latest().value == 0.0

        scheduler.advance(100)

        assert d.throttle.invocations == 2
        assert _counts(windows) == {0: 2, 1: 2, 2: 2, 3: 2}
        assert windows[0].latest().value == 49.0
        assert windows[1].latest().value == 49.5
        assert d.snapshot()["coalesced"] == 48

    def test_trailing_newline_does_not_mask_last_line(self):
        d, windows, _, scheduler, _ = _make_dispatcher()

        d.ingest("0,1,1,1,1\n1,7,7,7,7\n")
        scheduler.advance(100)

        assert windows[0].latest().value == 7.0

    def test_replaying_a_burst_gives_same_latest_values(self):
        frame = "\n".join(f"{i},{i * 2},{i * 3},{i * 4},{i * 5}" for i in range(20))

        results = []
        for _ in range(2):
            d, windows, _, scheduler, _ = _make_dispatcher()
            d.ingest(frame)
            scheduler.advance(100)
            results.append({idx: (w.latest().timestamp_ms, w.latest().value) for idx, w in windows.items()})

        assert results[0] == results[1]
        assert results[0][3][1] == 19 * 5

    def test_frames_faster_than_interval_keep_only_later_frame(self):
        d, windows, _, scheduler, _ = _make_dispatcher()

        d.ingest("0,1,1,1,1")
        scheduler.advance(20)
        d.ingest("1,2,2,2,2")
        scheduler.advance(20)
        d.ingest("2,3,3,3,3")
        scheduler.advance(100)

        np_values = windows[0].values().tolist()
        assert np_values == [1.0, 3.0]

    def test_frames_slower_than_interval_are_all_delivered(self):
        d, windows, _, scheduler, _ = _make_dispatcher()

        for i in range(5):
            d.ingest(f"{i},{i},0,0,0")
            scheduler.advance(150)

        assert windows[0].values().tolist() == [0.0, 1.0, 2.0, 3.0, 4.0]

    def test_spectral_sinks_get_raw_frame_and_ceiling(self):
        d, _, _, _, _ = _make_dispatcher()
        sink = RecordingSink()
        d.add_spectral_sink(sink)

        d.ingest("0,1,2\n\n1,2,3\n")

        assert sink.frames == [("0,1,2\n\n1,2,3\n", 100.0)]

    def test_failing_sink_does_not_stop_feed(self):
        d, windows, _, _, _ = _make_dispatcher()

        class Broken:
            def on_frame(self, frame, max_freq_hz):
                raise RuntimeError("fft view gone")

        d.add_spectral_sink(Broken())
        d.ingest("0,1,2,3,4")

        assert _counts(windows) == {0: 1, 1: 1, 2: 1, 3: 1}

    def test_flush_delivers_pending_line(self):
        d, windows, _, _, _ = _make_dispatcher()

        d.ingest("0,1,1,1,1\n1,5,5,5,5")
        d.flush()

        assert windows[0].latest().value == 5.0

    def test_cancel_pending_drops_line(self):
        d, windows, _, scheduler, _ = _make_dispatcher()

        d.ingest("0,1,1,1,1\n1,5,5,5,5")
        d.cancel_pending()
        scheduler.advance(500)

        assert windows[0].values().tolist() == [1.0]
