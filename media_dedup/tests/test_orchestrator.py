#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Integration tests for the detection orchestrator: run lifecycle, progress,
cancellation, and end-to-end duplicate and similarity detection.
"""

import threading

import pytest

from media_dedup.errors import InvalidWeightsError, RunAlreadyActiveError
from media_dedup.models.results import SimilarityOptions
from media_dedup.orchestrator import DetectionMode, DetectionOrchestrator, RunState
from media_dedup.tests.fixtures.fakes import FakeExtractor, flip_bits, make_descriptor

BASE_HASH = 0x0F0F_F0F0_3C3C_C3C3


def _similar_pair_files():
    a = make_descriptor("/v/a.mp4", size=1_000_000, duration=100.0, width=1920, height=1080)
    b = make_descriptor("/v/b.mp4", size=1_020_000, duration=101.0, width=1920, height=1078)
    return a, b


class TestDuplicateDetection:

    def test_finds_single_duplicate_pair(self, write_file, describe):
        """Two identical 1 KB files out of three: one group, 1024 bytes reclaimable."""
        a = describe(write_file("a.mp4", b"A" * 1024, mtime=1000))
        b = describe(write_file("b.mp4", b"A" * 1024, mtime=500))
        c = describe(write_file("c.mp4", b"C" * 1024, mtime=800))
        result = DetectionOrchestrator().run_duplicate_detection([a, b, c])

        assert len(result.groups) == 1
        group = result.groups[0]
        assert {f.path for f in group.files} == {a.path, b.path}
        assert group.representative == b
        assert group.waste_size == 1024
        assert result.total_duplicates == 2
        assert result.total_waste_size == 1024
        assert result.cancelled is False
        assert result.scan_time_ms >= 0

    def test_empty_and_repeated_entries_ignored(self, write_file, describe):
        e1 = describe(write_file("e1.mp4", b""))
        e2 = describe(write_file("e2.mp4", b""))
        a = describe(write_file("a.mp4", b"data"))
        result = DetectionOrchestrator().run_duplicate_detection([e1, e2, a, a])
        assert result.groups == []

    def test_progress_messages(self, write_file, describe):
        files = [describe(write_file(f"{n}.mp4", b"same")) for n in "ab"]
        events = []
        DetectionOrchestrator().run_duplicate_detection(files, events.append)
        messages = [e.message for e in events]
        assert messages[0] == "Quick scan... (0%)"
        assert messages[1] == "Quick scan... (25%)"
        assert messages[2] == "Verifying... (50%)"
        assert messages[3] == "Verifying... (75%)"
        assert events[0].current_item == str(files[0].path)

    def test_empty_input(self):
        result = DetectionOrchestrator().run_duplicate_detection([])
        assert result.groups == []
        assert result.total_duplicates == 0


class TestSimilarityDetection:

    def test_near_identical_videos_grouped(self):
        a, b = _similar_pair_files()
        extractor = FakeExtractor({
            a.path: (BASE_HASH,) * 5,
            b.path: (flip_bits(BASE_HASH, 3),) * 5,
        })
        result = DetectionOrchestrator(extractor=extractor).run_similarity_detection([a, b])

        assert len(result.groups) == 1
        group = result.groups[0]
        assert {f.path for f in group.files} == {a.path, b.path}
        score = group.pairs[0].similarity
        assert score.duration == 1.0
        assert score.file_size == 1.0
        assert score.visual == pytest.approx(1 - 3 / 64)
        assert score.overall >= 0.8
        assert result.total_similar_files == 2
        assert result.threshold == 0.8

    def test_prefilter_skips_extraction(self):
        """Wildly different durations never reach fingerprinting."""
        a = make_descriptor("/v/short.mp4", duration=10.0)
        b = make_descriptor("/v/long.mp4", duration=1000.0)
        extractor = FakeExtractor({a.path: (BASE_HASH,), b.path: (BASE_HASH,)})
        events = []
        result = DetectionOrchestrator(extractor=extractor).run_similarity_detection(
            [a, b], on_progress=events.append)
        assert extractor.calls == []
        assert result.groups == []
        assert "Prefilter complete, 0 candidate pairs" in [e.message for e in events]

    def test_empty_fingerprint_skips_pair(self):
        a, b = _similar_pair_files()
        extractor = FakeExtractor({a.path: (BASE_HASH,) * 5})
        result = DetectionOrchestrator(extractor=extractor).run_similarity_detection([a, b])
        assert sorted(extractor.calls) == sorted([a.path, b.path])
        assert result.groups == []

    def test_threshold_is_inclusive(self):
        """A pair scoring exactly the threshold is accepted."""
        a = make_descriptor("/v/a.mp4", duration=100.0)
        b = make_descriptor("/v/b.mp4", duration=120.0)
        exact = 1 - 20 / 110
        options = SimilarityOptions(threshold=exact, check_resolution=False,
                                    check_file_size=False, check_visual=False)
        orchestrator = DetectionOrchestrator(extractor=FakeExtractor({}))
        result = orchestrator.run_similarity_detection([a, b], options)
        assert len(result.groups) == 1
        assert result.groups[0].pairs[0].similarity.overall == exact

    def test_visual_disabled_needs_no_fingerprints(self):
        a, b = _similar_pair_files()
        extractor = FakeExtractor({})
        options = SimilarityOptions(check_visual=False)
        result = DetectionOrchestrator(extractor=extractor).run_similarity_detection([a, b], options)
        assert extractor.calls == []
        assert len(result.groups) == 1
        assert result.groups[0].pairs[0].similarity.visual == 0.0

    def test_fingerprint_concurrency_bounded(self):
        files = [make_descriptor(f"/v/{i}.mp4") for i in range(6)]
        extractor = FakeExtractor({f.path: (BASE_HASH,) for f in files}, delay=0.02)
        orchestrator = DetectionOrchestrator(extractor=extractor, fingerprint_concurrency=2)
        result = orchestrator.run_similarity_detection(files)
        assert 1 <= extractor.max_in_flight <= 2
        assert len(extractor.calls) == 6
        assert len(result.groups) == 1
        assert len(result.groups[0].files) == 6

    def test_prefilter_progress_labels_each_row(self):
        files = [make_descriptor(f"/v/{i}.mp4") for i in range(3)]
        events = []
        DetectionOrchestrator(extractor=FakeExtractor({})).run_similarity_detection(
            files, SimilarityOptions(check_visual=False), events.append)
        rows = [(e.current, e.total, e.current_item) for e in events
                if e.message == "Prefiltering..."]
        assert rows == [(0, 3, "0.mp4"), (1, 3, "1.mp4"), (2, 3, "2.mp4")]

    def test_progress_delivered_on_calling_thread(self):
        files = [make_descriptor(f"/v/{i}.mp4") for i in range(4)]
        extractor = FakeExtractor({f.path: (BASE_HASH,) for f in files}, delay=0.01)
        threads = set()
        labels = []

        def on_progress(p):
            threads.add(threading.current_thread())
            if p.message == "Scoring similarity...":
                labels.append(p.current_item)
            assert 0 <= p.percentage <= 100

        DetectionOrchestrator(extractor=extractor).run_similarity_detection(
            files, on_progress=on_progress)
        assert threads == {threading.current_thread()}
        assert labels[0] == "0.mp4 vs 1.mp4"


class TestRunLifecycle:

    def test_cancel_during_fingerprinting(self):
        """Cancelling on the first extracted fingerprint lets only in-flight units finish."""
        files = [make_descriptor(f"/v/{i}.mp4") for i in range(8)]
        extractor = FakeExtractor({f.path: (BASE_HASH,) for f in files}, delay=0.05)
        orchestrator = DetectionOrchestrator(extractor=extractor, fingerprint_concurrency=2)
        calls_at_cancel = []
        messages = []

        def on_progress(p):
            messages.append(p.message)
            if p.message == "Extracting video fingerprints..." and not calls_at_cancel:
                orchestrator.cancel()
                calls_at_cancel.append(len(extractor.calls))

        result = orchestrator.run_similarity_detection(files, on_progress=on_progress)

        assert result.cancelled is True
        # Each worker may have passed its token check just before the cancel
        assert len(extractor.calls) <= calls_at_cancel[0] + 2
        assert len(extractor.calls) < len(files)
        assert result.groups == []
        assert "Scoring similarity..." not in messages

    def test_cancel_after_first_pair(self):
        """Cancelling mid-scoring stops further pairs and flags the result."""
        files = [make_descriptor(f"/v/{i}.mp4") for i in range(4)]
        extractor = FakeExtractor({f.path: (BASE_HASH,) for f in files})
        orchestrator = DetectionOrchestrator(extractor=extractor)
        runs = []

        def on_progress(p):
            if p.message == "Scoring similarity..." and not runs:
                runs.append(orchestrator.current_run(DetectionMode.SIMILARITY))
                orchestrator.cancel()

        result = orchestrator.run_similarity_detection(files, on_progress=on_progress)
        assert result.cancelled is True
        assert sum(len(g.pairs) for g in result.groups) <= 1
        assert runs[0].state is RunState.CANCELLED
        assert not orchestrator.is_detecting()

    def test_concurrent_run_same_mode_rejected(self, write_file, describe):
        files = [describe(write_file(f"{n}.mp4", b"same")) for n in "ab"]
        orchestrator = DetectionOrchestrator(extractor=FakeExtractor({}))
        errors = []
        other_mode = []

        def on_progress(p):
            if errors:
                return
            with pytest.raises(RunAlreadyActiveError) as exc:
                orchestrator.run_duplicate_detection(files)
            errors.append(exc.value)
            other_mode.append(orchestrator.run_similarity_detection([]))

        result = orchestrator.run_duplicate_detection(files, on_progress)
        assert errors[0].mode is DetectionMode.DUPLICATE
        assert other_mode[0].groups == []
        assert len(result.groups) == 1
        assert not orchestrator.is_detecting(DetectionMode.DUPLICATE)

    def test_cancel_when_idle_is_noop(self):
        orchestrator = DetectionOrchestrator(extractor=FakeExtractor({}))
        orchestrator.cancel()
        orchestrator.cancel(DetectionMode.SIMILARITY)
        assert not orchestrator.is_detecting()
        assert orchestrator.current_run(DetectionMode.DUPLICATE) is None

    def test_next_run_starts_fresh_after_cancel(self, write_file, describe):
        files = [describe(write_file(f"{n}.mp4", b"same")) for n in "ab"]
        orchestrator = DetectionOrchestrator()
        first = orchestrator.run_duplicate_detection(files, lambda p: orchestrator.cancel())
        second = orchestrator.run_duplicate_detection(files)
        assert first.cancelled is True
        assert first.groups == []
        assert second.cancelled is False
        assert len(second.groups) == 1

    def test_failure_marks_run_failed_and_releases_mode(self):
        class BrokenExtractor:
            def fingerprint(self, path, frame_count=None):
                raise RuntimeError("decoder exploded")

        a, b = _similar_pair_files()
        orchestrator = DetectionOrchestrator(extractor=BrokenExtractor())
        runs = []

        def on_progress(p):
            if not runs:
                runs.append(orchestrator.current_run(DetectionMode.SIMILARITY))

        with pytest.raises(RuntimeError):
            orchestrator.run_similarity_detection([a, b], on_progress=on_progress)
        assert runs[0].state is RunState.FAILED
        assert not orchestrator.is_detecting(DetectionMode.SIMILARITY)

    def test_invalid_weights_rejected_at_construction(self):
        with pytest.raises(InvalidWeightsError):
            DetectionOrchestrator(weights={"duration": 1.0, "resolution": 1.0,
                                           "file_size": 0.0, "visual": 0.0})

    def test_invalid_concurrency_rejected(self):
        with pytest.raises(ValueError):
            DetectionOrchestrator(fingerprint_concurrency=0)
