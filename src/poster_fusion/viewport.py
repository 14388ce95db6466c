"""Pan/zoom state for the displayed poster.

The controller is pure state: it never touches pixels. Clients send pointer and
wheel input in viewport coordinates (origin at the viewport's top-left) and
apply the resulting transform as ``translate(offset) scale(scale)``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from poster_fusion.config import settings


@dataclass(frozen=True)
class ViewportTransform:
    scale: float = 1.0
    offset_x: float = 0.0
    offset_y: float = 0.0


IDENTITY = ViewportTransform()


@dataclass(frozen=True)
class Idle:
    pass


@dataclass(frozen=True)
class Panning:
    # Pointer position minus offset at the moment the gesture began.
    anchor_x: float
    anchor_y: float


PanGesture = Idle | Panning


class ViewportController:
    def __init__(
        self,
        sensitivity: float | None = None,
        min_scale: float | None = None,
        max_scale: float | None = None,
    ) -> None:
        self.sensitivity = settings.zoom_sensitivity if sensitivity is None else sensitivity
        self.min_scale = settings.min_scale if min_scale is None else min_scale
        self.max_scale = settings.max_scale if max_scale is None else max_scale
        self.transform: ViewportTransform = IDENTITY
        self.gesture: PanGesture = Idle()
        self.busy = False
        self._image: Any = None

    @property
    def has_image(self) -> bool:
        return self._image is not None

    @property
    def is_panning(self) -> bool:
        return isinstance(self.gesture, Panning)

    def show(self, image: Any) -> None:
        """Display `image`; a different object (by identity) resets the view."""
        if image is not self._image:
            self._image = image
            self.reset()

    def set_busy(self, busy: bool) -> None:
        self.busy = busy
        if busy:
            self.gesture = Idle()

    def reset(self) -> None:
        self.transform = IDENTITY
        self.gesture = Idle()

    def wheel(self, delta_y: float, cursor_x: float, cursor_y: float) -> ViewportTransform:
        """
        Zoom toward the cursor: the image point under the cursor stays put while
        the scale changes. Ignored with no image or while busy.
        """
        if not self.has_image or self.busy:
            return self.transform

        t = self.transform
        new_scale = min(max(self.min_scale, t.scale - delta_y * self.sensitivity), self.max_scale)
        factor = new_scale / t.scale
        self.transform = ViewportTransform(
            scale=new_scale,
            offset_x=cursor_x - (cursor_x - t.offset_x) * factor,
            offset_y=cursor_y - (cursor_y - t.offset_y) * factor,
        )
        return self.transform

    def pointer_down(self, x: float, y: float) -> None:
        if not self.has_image or self.busy:
            return
        t = self.transform
        self.gesture = Panning(anchor_x=x - t.offset_x, anchor_y=y - t.offset_y)

    def pointer_move(self, x: float, y: float) -> ViewportTransform:
        gesture = self.gesture
        if not isinstance(gesture, Panning) or not self.has_image:
            return self.transform
        # Free panning: no bounds, the poster may leave the viewport entirely.
        self.transform = ViewportTransform(
            scale=self.transform.scale,
            offset_x=x - gesture.anchor_x,
            offset_y=y - gesture.anchor_y,
        )
        return self.transform

    def pointer_up(self) -> None:
        self.gesture = Idle()

    pointer_leave = pointer_up

    def snapshot(self) -> dict[str, Any]:
        t = self.transform
        return {
            "scale": t.scale,
            "offset_x": t.offset_x,
            "offset_y": t.offset_y,
            "panning": self.is_panning,
            "has_image": self.has_image,
        }
