"""Frame semantics over the project store.

A scene's timeline is a set of layers, each covering the half-open frame
interval ``[start_frame, start_frame + frame_span)``. Layers may overlap; at a
given frame exactly one image is visible, namely the covering layer that sorts
last by ``(start_frame, id)``.

Scenes play back to back in sort order, each contributing its used-frame count
(the end of its last layer) rather than the movie's configured duration. The
configured duration only bounds editing: drops, drags, right-edge resizes and
pastes never run past ``MovieConfig.total_frames()``.

Every call re-reads the store; no scene/layer graph is kept between calls.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional

from .records import LayerRow, SceneRow
from .store import ProjectStore

logger = logging.getLogger(__name__)


def resolve_layers(layers: Iterable[LayerRow], frame: int) -> Optional[str]:
    """Image path visible at ``frame`` for layers already ordered by (start, id)."""
    winner: Optional[str] = None
    for layer in layers:
        if layer.covers(frame):
            winner = layer.image_path
    return winner


def used_frame_count(layers: Iterable[LayerRow]) -> int:
    return max((layer.end_frame for layer in layers), default=0)


@dataclass(frozen=True)
class Clipboard:
    image_path: str
    frame_span: int


class TimelineModel:
    def __init__(self, store: ProjectStore):
        self._store = store

    @property
    def store(self) -> ProjectStore:
        return self._store

    # --- queries ---
    def resolve(self, scene_id: int, frame: int) -> Optional[str]:
        return resolve_layers(self._store.list_layers(scene_id), frame)

    def used_frames(self, scene_id: int) -> int:
        return used_frame_count(self._store.list_layers(scene_id))

    def total_frames(self) -> int:
        """Frame count of the configured movie duration."""
        return self._store.movie_config().total_frames()

    def scenes(self) -> List[SceneRow]:
        return self._store.list_scenes()

    def layers(self, scene_id: int) -> List[LayerRow]:
        return self._store.list_layers(scene_id)

    # --- scene ordering ---
    def move_scene_up(self, scene_id: int) -> bool:
        return self._swap_with_neighbour(scene_id, before=True)

    def move_scene_down(self, scene_id: int) -> bool:
        return self._swap_with_neighbour(scene_id, before=False)

    def _swap_with_neighbour(self, scene_id: int, before: bool) -> bool:
        order = self._store.scene_sort_order(scene_id)
        if order is None:
            return False
        other = self._store.neighbour_scene(order, before=before)
        if other is None:
            return False
        return self._store.swap_scene_orders(scene_id, other)

    # --- layer mutation ---
    def add_layer(
        self, scene_id: int, image_path: str, start_frame: int, frame_span: int = 1
    ) -> Optional[int]:
        if start_frame < 0 or frame_span < 1:
            return None
        return self._store.add_layer(scene_id, image_path, start_frame, frame_span)

    def drop_media(self, scene_id: int, image_path: str, frame: int) -> Optional[int]:
        """Place a one-frame layer where media was dropped, clamped into the movie."""
        total = self.total_frames()
        if total <= 0 or not image_path:
            return None
        frame = max(0, min(frame, total - 1))
        return self.add_layer(scene_id, image_path, frame)

    def move_layer(self, layer_id: int, start_frame: int) -> bool:
        if start_frame < 0:
            return False
        return self._store.update_layer(layer_id, start_frame=start_frame)

    def drag_layer(self, layer_id: int, frame: int) -> bool:
        """Move a layer under the pointer, keeping it inside the movie."""
        layer = self._store.get_layer(layer_id)
        if layer is None:
            return False
        total = self.total_frames()
        new_start = max(0, min(frame, total - layer.frame_span))
        if new_start == layer.start_frame:
            return True
        return self.move_layer(layer_id, new_start)

    def resize_layer_left(self, layer_id: int, frame: int) -> bool:
        """Drag the left edge to ``frame``; the end frame never moves."""
        layer = self._store.get_layer(layer_id)
        if layer is None:
            return False
        end = layer.end_frame
        new_start = max(0, min(frame, end - 1))
        new_span = end - new_start
        if new_span < 1:
            return False
        return self._store.update_layer(
            layer_id, start_frame=new_start, frame_span=new_span
        )

    def resize_layer_right(self, layer_id: int, frame: int) -> bool:
        """Drag the right edge to ``frame``; the end never passes the movie end."""
        layer = self._store.get_layer(layer_id)
        if layer is None:
            return False
        limit = self.total_frames() - layer.start_frame
        new_span = min(max(1, frame - layer.start_frame), limit)
        if new_span < 1:
            return False
        return self._store.update_layer(layer_id, frame_span=new_span)

    def delete_layer(self, layer_id: int) -> bool:
        return self._store.delete_layer(layer_id)

    # --- copy / paste ---
    def copy_layer(self, layer_id: int) -> Optional[Clipboard]:
        layer = self._store.get_layer(layer_id)
        if layer is None:
            return None
        return Clipboard(layer.image_path, layer.frame_span)

    def paste(
        self, scene_id: int, clipboard: Clipboard, selected_layer_id: Optional[int]
    ) -> Optional[int]:
        """Insert the clipboard right after the selected layer (frame 0 without one)."""
        paste_at = 0
        if selected_layer_id is not None:
            selected = self._store.get_layer(selected_layer_id)
            if selected is not None and selected.scene_id == scene_id:
                paste_at = selected.end_frame
        if paste_at >= self.total_frames():
            logger.debug("paste refused at frame %d: past movie end", paste_at)
            return None
        return self.add_layer(scene_id, clipboard.image_path, paste_at, clipboard.frame_span)


__all__ = ["TimelineModel", "Clipboard", "resolve_layers", "used_frame_count"]
