"""Plain value records handed out by the project store.

The store never returns live ORM objects; callers get these immutable snapshots
and re-query for fresh state.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, replace

from ..config import MAX_HEIGHT, MAX_WIDTH, MIN_FRAME_RATE

MIN_DURATION = 0.1  # smallest value the configuration panel lets through


@dataclass(frozen=True)
class MovieConfig:
    duration_sec: float = 10.0
    frame_rate: float = 24.0
    width: int = 1920
    height: int = 1080

    def total_frames(self) -> int:
        """round(duration * fps) with half-up rounding."""
        return int(math.floor(self.duration_sec * self.frame_rate + 0.5))

    def is_valid(self) -> bool:
        return (
            self.duration_sec > 0
            and self.frame_rate >= MIN_FRAME_RATE
            and 1 <= self.width <= MAX_WIDTH
            and 1 <= self.height <= MAX_HEIGHT
        )

    def clamped(self) -> "MovieConfig":
        """Return a copy pulled into the valid ranges (used by the config panel)."""
        return replace(
            self,
            duration_sec=max(MIN_DURATION, float(self.duration_sec)),
            frame_rate=max(MIN_FRAME_RATE, float(self.frame_rate)),
            width=min(max(1, int(self.width)), MAX_WIDTH),
            height=min(max(1, int(self.height)), MAX_HEIGHT),
        )


@dataclass(frozen=True)
class SceneRow:
    id: int
    sort_order: int
    name: str


@dataclass(frozen=True)
class LayerRow:
    id: int
    scene_id: int
    image_path: str
    start_frame: int
    frame_span: int

    @property
    def end_frame(self) -> int:
        return self.start_frame + self.frame_span

    def covers(self, frame: int) -> bool:
        return self.start_frame <= frame < self.end_frame


__all__ = ["MovieConfig", "SceneRow", "LayerRow"]
