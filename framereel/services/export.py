"""Export pipeline: project timeline -> numbered PNG frames -> ffmpeg -> video.

Flow (one blocking call, meant for a background thread):
 1. Read the movie configuration and the scenes in sort order.
 2. Sum the used-frame count of every scene; that is the output length.
 3. Create ``<project>/.render_frames``.
 4. For every scene, for every frame of that scene: report progress, resolve
    the visible image, decode + resample it to the output size (or use an
    all-zero buffer), write ``frame_%05d.png``. The first failed write aborts.
 5. Hand the sequence to ffmpeg at the configured frame rate.
 6. Remove the frame files and the directory whatever happened.

Failures raise a ``RenderError`` subclass. Nothing is retried or resumed; the
caller starts a new export from scratch.

The pipeline opens its own store connection and decodes sources itself; it never
touches the GUI thread's store or thumbnail cache.
"""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Callable, List, Optional

import numpy as np
from PIL import Image

from ..config import DB_FILENAME, RENDER_DIR_NAME, ffmpeg_binary
from ..core.store import ProjectStore, StoreError
from ..core.timeline import TimelineModel, resolve_layers, used_frame_count
from ..media.compositor import blank_frame, load_rgba, resample

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float], None]  # 0.0 - 1.0
Encoder = Callable[[Path, float, Path], int]  # (frame pattern, fps, output) -> exit code

FRAME_PATTERN = "frame_%05d.png"


class RenderError(Exception):
    """Base class for export failures."""


class NoScenesError(RenderError):
    pass


class EmptyTimelineError(RenderError):
    pass


class RenderIOError(RenderError):
    """Working directory could not be prepared."""


class FrameWriteError(RenderError):
    pass


class EncodeError(RenderError):
    pass


def frame_filename(index: int) -> str:
    return FRAME_PATTERN % index


class FFmpegEncoder:
    """Encode a numbered PNG sequence to H.264 with the ffmpeg CLI."""

    def __init__(
        self,
        binary: str | None = None,
        codec: str = "libx264",
        pix_fmt: str = "yuv420p",
    ):
        self.binary = binary
        self.codec = codec
        self.pix_fmt = pix_fmt

    def command(self, pattern: Path, frame_rate: float, output: Path) -> List[str]:
        return [
            self.binary or ffmpeg_binary(),
            "-y",
            "-loglevel",
            "error",
            "-framerate",
            f"{frame_rate:g}",
            "-i",
            str(pattern),
            "-c:v",
            self.codec,
            # yuv420p needs even dimensions
            "-vf",
            "scale=trunc(iw/2)*2:trunc(ih/2)*2",
            "-pix_fmt",
            self.pix_fmt,
            str(output),
        ]

    def __call__(self, pattern: Path, frame_rate: float, output: Path) -> int:
        cmd = self.command(pattern, frame_rate, output)
        logger.debug("running encoder: %s", " ".join(cmd))
        result = subprocess.run(cmd, capture_output=True, text=True)
        if result.returncode != 0:
            logger.warning(
                "ffmpeg exited with %d: %s", result.returncode, result.stderr.strip()[-2000:]
            )
        return result.returncode


def _write_frame(pixels: np.ndarray, path: Path) -> None:
    Image.fromarray(pixels, "RGBA").save(path, format="PNG")


def _prepare_work_dir(project_root: Path) -> Path:
    work_dir = project_root / RENDER_DIR_NAME
    try:
        work_dir.mkdir(parents=True, exist_ok=True)
        # leftovers from a crashed run would be picked up by the encoder
        for stale in work_dir.glob("frame_*.png"):
            stale.unlink()
    except OSError as e:
        raise RenderIOError(f"cannot prepare {work_dir}: {e}") from e
    return work_dir


def _cleanup(work_dir: Path, written: List[Path]) -> None:
    for p in written:
        try:
            p.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("could not remove frame %s: %s", p, e)
    try:
        work_dir.rmdir()
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.warning("could not remove %s: %s", work_dir, e)


def render_frames(
    timeline: TimelineModel,
    project_root: Path,
    progress: Optional[ProgressCallback] = None,
) -> List[Path]:
    """Write every output frame of the timeline into ``<project>/.render_frames``.

    Returns the written files in order. Raises ``FrameWriteError`` (after
    removing whatever was written) if any frame could not be written.
    """
    config = timeline.store.movie_config()
    scenes = timeline.scenes()
    if not scenes:
        raise NoScenesError("project has no scenes")

    # One read of each scene's layers; resolution then runs in memory with the
    # same (start_frame, id) ordering the store returns.
    snapshots = [timeline.layers(scene.id) for scene in scenes]
    counts = [used_frame_count(layers) for layers in snapshots]
    total_frames = sum(counts)
    if total_frames == 0:
        raise EmptyTimelineError("no scene has any layer")

    work_dir = _prepare_work_dir(project_root)
    width, height = config.width, config.height
    written: List[Path] = []
    frame_index = 0
    last_path: Optional[str] = None
    last_pixels: Optional[np.ndarray] = None
    failed = False

    for scene, layers, count in zip(scenes, snapshots, counts):
        for frame in range(count):
            if progress:
                progress(frame_index / total_frames)
            rel = resolve_layers(layers, frame)
            if rel is not None and rel == last_path and last_pixels is not None:
                pixels = last_pixels
            elif rel is not None:
                src = load_rgba(project_root / rel)
                if src is not None:
                    pixels = resample(src, width, height)
                    last_path, last_pixels = rel, pixels
                else:
                    logger.debug("scene %d frame %d: %s unreadable, black frame", scene.id, frame, rel)
                    pixels = blank_frame(width, height)
                    last_path, last_pixels = None, None
            else:
                pixels = blank_frame(width, height)
            target = work_dir / frame_filename(frame_index)
            try:
                _write_frame(pixels, target)
            except (OSError, ValueError) as e:
                logger.warning("writing %s failed: %s", target, e)
                written.append(target)  # may exist half-written; cleanup removes it
                failed = True
                break
            written.append(target)
            frame_index += 1
        if failed:
            break

    if progress:
        progress(1.0)
    if failed or frame_index != total_frames:
        _cleanup(work_dir, written)
        raise FrameWriteError(f"wrote {frame_index} of {total_frames} frames")
    return written


def export_project(
    project_root: str | Path,
    output_path: str | Path,
    progress: Optional[ProgressCallback] = None,
    *,
    encoder: Optional[Encoder] = None,
) -> None:
    """Render the project's full timeline to ``output_path``.

    Parameters
    ----------
    project_root: Project directory (holds ``project.db`` and ``media/``).
    output_path: Destination video file; overwritten if present.
    progress: Optional callback receiving a non-decreasing fraction in [0, 1].
    encoder: Callable turning the frame sequence into the video; defaults to ffmpeg.

    The store is read through its own connection, closed again before encoding.

    Raises
    ------
    NoScenesError, EmptyTimelineError, RenderIOError, FrameWriteError, EncodeError
    """
    root = Path(project_root)
    output = Path(output_path)
    encode = encoder or FFmpegEncoder()
    try:
        store = ProjectStore.open(root / DB_FILENAME)
    except StoreError as e:
        raise RenderIOError(str(e)) from e
    try:
        timeline = TimelineModel(store)
        frame_rate = store.movie_config().frame_rate
        written = render_frames(timeline, root, progress)
    finally:
        store.close()

    work_dir = root / RENDER_DIR_NAME
    logger.info("encoding %d frames at %g fps to %s", len(written), frame_rate, output)
    try:
        code = encode(work_dir / FRAME_PATTERN, frame_rate, output)
    except OSError as e:
        raise EncodeError(f"encoder could not run: {e}") from e
    finally:
        _cleanup(work_dir, written)
    if code != 0:
        raise EncodeError(f"encoder exited with status {code}")


__all__ = [
    "RenderError",
    "NoScenesError",
    "EmptyTimelineError",
    "RenderIOError",
    "FrameWriteError",
    "EncodeError",
    "FFmpegEncoder",
    "FRAME_PATTERN",
    "frame_filename",
    "render_frames",
    "export_project",
]
