#!/usr/bin/env python3
# -*- coding: utf-8 -*-

"""
Adapters for the external media tools (ffprobe metadata, ffmpeg frame grabs).

The engine only depends on the two narrow interfaces below, so tests can swap
in deterministic fakes without spawning any process.
"""

import json
import logging
import subprocess
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Sequence, Tuple

from ..config import FFMPEG_BIN, FFPROBE_BIN, TOOL_TIMEOUT_SECONDS
from ..errors import FrameDecodeError, ProbeError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MediaInfo:
    """Stream metadata for one media file."""
    codec: Optional[str] = None
    container: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    duration: Optional[float] = None
    bitrate: Optional[int] = None


class MediaProbe(Protocol):
    def probe(self, path: Path) -> MediaInfo:
        """Return stream metadata or raise ProbeError."""
        ...


class FrameDecoder(Protocol):
    def decode_frames(self, path: Path, count: int, out_dir: Path,
                      size: Tuple[int, int]) -> List[Path]:
        """Write `count` evenly spaced frames into out_dir, in time order."""
        ...


def _run_tool(cmd: Sequence[str], timeout: float) -> subprocess.CompletedProcess:
    return subprocess.run(
        list(cmd),
        capture_output=True,
        timeout=timeout if timeout and timeout > 0 else None,
    )


def _positive_int(value: Any) -> Optional[int]:
    try:
        n = int(value)
    except (TypeError, ValueError):
        return None
    return n if n > 0 else None


def _positive_float(value: Any) -> Optional[float]:
    try:
        x = float(value)
    except (TypeError, ValueError):
        return None
    return x if x > 0 else None


def parse_ffprobe_output(data: Dict[str, Any]) -> MediaInfo:
    """Reduce ffprobe's JSON document to a MediaInfo."""
    fmt = data.get("format") or {}
    video = next(
        (s for s in data.get("streams") or [] if s.get("codec_type", "video") == "video"),
        {},
    )
    return MediaInfo(
        codec=video.get("codec_name"),
        container=fmt.get("format_name"),
        width=_positive_int(video.get("width")),
        height=_positive_int(video.get("height")),
        duration=_positive_float(fmt.get("duration")),
        bitrate=_positive_int(fmt.get("bit_rate")),
    )


class FFprobeMediaProbe:
    """MediaProbe backed by the ffprobe command-line tool."""

    def __init__(self, binary: str = FFPROBE_BIN, timeout: float = TOOL_TIMEOUT_SECONDS):
        self.binary = binary
        self.timeout = timeout

    def probe(self, path: Path) -> MediaInfo:
        cmd = [
            self.binary, "-v", "error",
            "-select_streams", "v:0",
            "-show_entries", "stream=width,height,codec_name,codec_type",
            "-show_entries", "format=duration,format_name,bit_rate",
            "-of", "json",
            str(path),
        ]
        try:
            result = _run_tool(cmd, self.timeout)
        except subprocess.TimeoutExpired as e:
            raise ProbeError(f"ffprobe timed out after {self.timeout}s: {path}") from e
        except OSError as e:
            raise ProbeError(f"Could not run {self.binary}: {e}") from e

        if result.returncode != 0:
            stderr = result.stderr.decode(errors="replace").strip()
            raise ProbeError(f"ffprobe exited with {result.returncode} for {path}: {stderr}")
        try:
            data = json.loads(result.stdout or b"{}")
        except json.JSONDecodeError as e:
            raise ProbeError(f"ffprobe returned invalid JSON for {path}") from e
        return parse_ffprobe_output(data)


def frame_timestamps(duration: float, count: int) -> List[float]:
    """Evenly spaced timestamps at (i+1)/(count+1) of the duration."""
    return [duration * (i + 1) / (count + 1) for i in range(count)]


class FFmpegFrameDecoder:
    """FrameDecoder that seeks with ffmpeg and writes one scaled JPEG per timestamp."""

    def __init__(self, probe: Optional[MediaProbe] = None, binary: str = FFMPEG_BIN,
                 timeout: float = TOOL_TIMEOUT_SECONDS):
        self.probe = probe or FFprobeMediaProbe()
        self.binary = binary
        self.timeout = timeout

    def _frame_cmd(self, path: Path, ts: float, size: Tuple[int, int], out: Path) -> List[str]:
        width, height = size
        return [
            self.binary, "-hide_banner", "-loglevel", "error", "-y",
            "-ss", f"{ts:.3f}", "-i", str(path),
            "-frames:v", "1",
            "-vf", f"scale={width}:{height}",
            str(out),
        ]

    def decode_frames(self, path: Path, count: int, out_dir: Path,
                      size: Tuple[int, int]) -> List[Path]:
        try:
            duration = self.probe.probe(path).duration
        except ProbeError as e:
            raise FrameDecodeError(f"Cannot determine duration of {path}: {e}") from e
        if not duration:
            raise FrameDecodeError(f"Unknown duration for {path}")

        frames: List[Path] = []
        for i, ts in enumerate(frame_timestamps(duration, count), start=1):
            out = out_dir / f"frame-{i}.jpg"
            try:
                result = _run_tool(self._frame_cmd(path, ts, size, out), self.timeout)
            except subprocess.TimeoutExpired as e:
                raise FrameDecodeError(f"ffmpeg timed out at {ts:.3f}s in {path}") from e
            except OSError as e:
                raise FrameDecodeError(f"Could not run {self.binary}: {e}") from e
            if result.returncode != 0 or not out.exists():
                stderr = result.stderr.decode(errors="replace").strip()
                raise FrameDecodeError(f"ffmpeg failed at {ts:.3f}s in {path}: {stderr}")
            frames.append(out)

        logger.debug("Decoded %d frames from %s", len(frames), path)
        return frames
