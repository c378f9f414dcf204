import json
import os
import tempfile
import threading
import unittest

from fret_coach.core.config import ConfigManager, PracticeConfig, TunerConfig
from fret_coach.core.context import AppContext
from fret_coach.core.events import EventEmitter, QueueSink, TunerEvents
from fret_coach.core.factory import ComponentFactory
from fret_coach.core.frame_loop import FrameLoop
from fret_coach.core.snapshot import SnapshotCell
from fret_coach.mock_pitch_source import ScriptedPitchSource
from fret_coach.note_types import PitchSample, ScoreSnapshot, TuningPreset
from fret_coach.tuning.presets import build_preset


class TestTunerConfig(unittest.TestCase):
    def test_defaults(self):
        config = TunerConfig()
        self.assertEqual(config.sample_rate, 44100)
        self.assertEqual(config.hop_size, 1024)
        self.assertEqual(config.min_confidence, 0.80)
        self.assertEqual(config.max_gap_ms, 250.0)

    def test_out_of_range_values_are_clamped(self):
        with self.assertLogs("fret_coach.core.config", level="WARNING"):
            config = TunerConfig(min_confidence=1.5, cents_tolerance=0.1, buffer_size=10)
        self.assertEqual(config.min_confidence, 1.0)
        self.assertEqual(config.cents_tolerance, 1.0)
        self.assertEqual(config.buffer_size, 256)

    def test_max_frequency_never_below_min(self):
        with self.assertLogs("fret_coach.core.config", level="WARNING"):
            config = TunerConfig(min_frequency=500.0, max_frequency=100.0)
        self.assertEqual(config.max_frequency, 500.0)


class TestPracticeConfig(unittest.TestCase):
    def test_speed_factor_clamped(self):
        with self.assertLogs("fret_coach.core.config", level="WARNING"):
            self.assertEqual(PracticeConfig(speed_factor=5.0).speed_factor, 2.0)
        with self.assertLogs("fret_coach.core.config", level="WARNING"):
            self.assertEqual(PracticeConfig(speed_factor=0.1).speed_factor, 0.25)

    def test_unknown_match_mode_falls_back(self):
        with self.assertLogs("fret_coach.core.config", level="WARNING"):
            config = PracticeConfig(match_mode="fuzzy")
        self.assertEqual(config.match_mode, "pitch_class")

    def test_grade_thresholds_from_json_lists(self):
        config = PracticeConfig(grade_thresholds=[[90, "A"], [50, "B"]])
        self.assertEqual(config.grade_thresholds, [(90.0, "A"), (50.0, "B")])


class TestConfigManager(unittest.TestCase):
    def test_defaults_without_directory(self):
        manager = ConfigManager()
        self.assertEqual(manager.get_config("tuner")["cents_tolerance"], 5.0)
        self.assertEqual(manager.practice_config().match_window_ms, 100.0)

    def test_loads_overrides_from_directory(self):
        with tempfile.TemporaryDirectory() as config_dir:
            with open(os.path.join(config_dir, "tuner.json"), "w") as f:
                json.dump({"cents_tolerance": 3.0, "not_a_setting": 1}, f)
            manager = ConfigManager(config_dir)

        tuner = manager.tuner_config()
        self.assertEqual(tuner.cents_tolerance, 3.0)
        self.assertNotIn("not_a_setting", manager.get_config("tuner"))

    def test_broken_file_keeps_defaults(self):
        with tempfile.TemporaryDirectory() as config_dir:
            with open(os.path.join(config_dir, "practice.json"), "w") as f:
                f.write("{not json")
            manager = ConfigManager(config_dir)
        self.assertEqual(manager.practice_config().speed_factor, 1.0)

    def test_update_and_reset(self):
        manager = ConfigManager()
        self.assertTrue(manager.update_config("practice", {"speed_factor": 0.5}))
        self.assertEqual(manager.practice_config().speed_factor, 0.5)
        self.assertFalse(manager.update_config("missing", {}))
        self.assertTrue(manager.reset_config("practice"))
        self.assertEqual(manager.practice_config().speed_factor, 1.0)

    def test_overrides_win_over_section(self):
        manager = ConfigManager()
        self.assertEqual(manager.tuner_config(hold_duration_ms=200).hold_duration_ms, 200.0)
        # The stored section is untouched
        self.assertEqual(manager.get_config("tuner")["hold_duration_ms"], 500.0)


class TestAppContext(unittest.TestCase):
    def test_preset_lookup_is_case_insensitive(self):
        context = AppContext()
        self.assertEqual(context.get_preset("Drop D").name, "Drop D")
        self.assertEqual(len(context.get_preset(" STANDARD ")), 6)

    def test_unknown_preset(self):
        with self.assertRaises(KeyError):
            AppContext().get_preset("nashville")

    def test_add_preset_is_local(self):
        context = AppContext()
        context.add_preset(build_preset("Open E", ["E2", "B2", "E3", "G#3", "B3", "E4"]))
        self.assertIsInstance(context.get_preset("open e"), TuningPreset)
        with self.assertRaises(KeyError):
            AppContext().get_preset("open e")


class TestComponentFactory(unittest.TestCase):
    def test_unknown_implementations(self):
        factory = ComponentFactory()
        with self.assertRaises(ValueError):
            factory.create_audio_input("carrier-pigeon")
        with self.assertRaises(ValueError):
            factory.create_pitch_detector(44100, implementation="yin-by-hand")


class TestSnapshotCell(unittest.TestCase):
    def test_publish_and_get(self):
        cell = SnapshotCell()
        self.assertIsNone(cell.get())
        snapshot = ScoreSnapshot(correct=1)
        cell.publish(snapshot)
        self.assertIs(cell.get(), snapshot)
        self.assertEqual(cell.version, 1)
        cell.clear()
        self.assertIsNone(cell.get())
        self.assertEqual(cell.version, 2)

    def test_concurrent_readers_see_whole_snapshots(self):
        cell = SnapshotCell(ScoreSnapshot())
        seen = []

        def reader():
            for _ in range(2000):
                value = cell.get()
                seen.append(value.correct == value.max_streak)

        thread = threading.Thread(target=reader)
        thread.start()
        for i in range(2000):
            cell.publish(ScoreSnapshot(correct=i, max_streak=i))
        thread.join()
        self.assertTrue(all(seen))


class TestEventEmitter(unittest.TestCase):
    def test_emit_reaches_listeners(self):
        emitter = EventEmitter()
        received = []
        emitter.on("ping", received.append)
        emitter.on("ping", received.append)  # Duplicate registration ignored
        emitter.emit("ping", 1)
        self.assertEqual(received, [1])
        self.assertEqual(emitter.listener_count("ping"), 1)

    def test_failing_listener_does_not_stop_others(self):
        emitter = EventEmitter()
        received = []

        def broken(_):
            raise RuntimeError("listener bug")

        emitter.on("ping", broken)
        emitter.on("ping", received.append)
        with self.assertLogs("fret_coach.core.events", level="ERROR"):
            emitter.emit("ping", 7)
        self.assertEqual(received, [7])

    def test_off_and_clear(self):
        emitter = EventEmitter()
        received = []
        emitter.on("ping", received.append)
        emitter.off("ping", received.append)
        emitter.emit("ping", 1)
        emitter.on("ping", received.append)
        emitter.clear()
        emitter.emit("ping", 2)
        self.assertEqual(received, [])

    def test_tuner_events_attach_sink(self):
        events = TunerEvents()
        sink = QueueSink()
        events.attach(sink)
        events.emit_tuning_update("update")
        self.assertEqual(sink.drain(), ["update"])


class TestQueueSink(unittest.TestCase):
    def test_drops_when_full(self):
        sink = QueueSink(maxsize=2)
        for i in range(5):
            sink.on_score_update(i)
        self.assertEqual(sink.dropped, 3)
        self.assertEqual(sink.drain(), [0, 1])
        self.assertEqual(sink.drain(), [])


class TestFrameLoop(unittest.TestCase):
    def test_processes_every_sample_then_finishes(self):
        source = ScriptedPitchSource.steady(110.0, 25, 10.0)
        handled = []
        finished = threading.Event()
        loop = FrameLoop(source, handled.append, on_finished=finished.set)
        self.assertTrue(loop.start())
        self.assertTrue(loop.wait(timeout=5.0))
        self.assertTrue(finished.is_set())
        self.assertEqual(len(handled), 25)
        self.assertEqual(loop.frames_processed, 25)
        self.assertFalse(loop.is_running())
        self.assertIsNone(loop.error)

    def test_handler_error_is_recorded(self):
        source = ScriptedPitchSource([PitchSample(110.0, 1.0)] * 3)

        def handler(sample):
            raise ValueError("bad frame")

        loop = FrameLoop(source, handler)
        with self.assertLogs("fret_coach.core.frame_loop", level="ERROR"):
            loop.start()
            loop.wait(timeout=5.0)
        self.assertIsInstance(loop.error, ValueError)
        self.assertEqual(loop.frames_processed, 0)

    def test_stop_cancels_endless_source(self):
        class EndlessSource(ScriptedPitchSource):
            def next_sample(self):
                return PitchSample.silence()

        loop = FrameLoop(EndlessSource(), lambda sample: None)
        loop.start()
        self.assertTrue(loop.is_running())
        self.assertTrue(loop.stop(timeout=5.0))
        self.assertFalse(loop.is_running())

    def test_stop_before_start(self):
        loop = FrameLoop(ScriptedPitchSource(), lambda sample: None)
        self.assertTrue(loop.stop())


if __name__ == "__main__":
    unittest.main()
