#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Unit tests for video file discovery and descriptor construction.
"""

from media_dedup.scanning.discovery import describe_file, discover_video_files
from media_dedup.scanning.media import MediaInfo
from media_dedup.tests.fixtures.fakes import FakeProbe


class TestDiscovery:

    def test_finds_videos_recursively(self, write_file, tmp_path):
        a = write_file("a.mp4", b"1")
        b = write_file("sub/b.MKV", b"22")
        write_file("notes.txt", b"skip me")
        files = discover_video_files(tmp_path)
        assert [f.path for f in files] == sorted([a, b])
        assert files[1].extension == ".mkv"
        assert files[1].size == 2

    def test_non_recursive(self, write_file, tmp_path):
        a = write_file("a.mp4", b"1")
        write_file("sub/b.mp4", b"2")
        assert [f.path for f in discover_video_files(tmp_path, recursive=False)] == [a]

    def test_probe_metadata_applied(self, write_file):
        path = write_file("clip.mov", b"x" * 10, mtime=1234)
        probe = FakeProbe({path: MediaInfo(width=1280, height=720, duration=42.5)})
        f = describe_file(path, probe)
        assert (f.width, f.height, f.duration_seconds) == (1280, 720, 42.5)
        assert f.modified_time == 1234
        assert f.to_dict()["width"] == 1280

    def test_probe_failure_leaves_metadata_unknown(self, write_file):
        path = write_file("broken.mp4", b"x")
        f = describe_file(path, FakeProbe({}))
        assert f.width is None
        assert f.duration_seconds is None
        assert f.size == 1
