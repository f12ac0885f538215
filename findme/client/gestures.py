# findme/client/gestures.py
"""Horizontal drag handling for swipe cards: right is like, left is pass."""
from typing import Dict, Optional

MAX_OFFSET = 100
SWIPE_THRESHOLD = 50
HINT_THRESHOLD = 20


def clamp_offset(dx: float) -> float:
    return max(-MAX_OFFSET, min(MAX_OFFSET, dx))


def classify_release(offset: float) -> Optional[str]:
    if abs(offset) <= SWIPE_THRESHOLD:
        return None
    return "like" if offset > 0 else "pass"


def overlay_for(offset: float) -> Dict[str, object]:
    if abs(offset) < HINT_THRESHOLD:
        return {"decision": None, "opacity": 0.0}
    return {
        "decision": "like" if offset > 0 else "pass",
        "opacity": min(0.8, abs(offset) / MAX_OFFSET),
    }


def card_style(offset: float) -> Dict[str, float]:
    return {
        "translate_x": offset,
        "rotation": offset * 0.1,
        "opacity": max(0.7, 1 - abs(offset) / MAX_OFFSET),
    }


class DragGesture:
    def __init__(self, disabled: bool = False):
        self.disabled = disabled
        self.dragging = False
        self.offset = 0.0

    def start(self) -> None:
        if not self.disabled:
            self.dragging = True

    def move(self, pointer_x: float, card_center_x: float) -> float:
        if self.dragging:
            self.offset = clamp_offset(pointer_x - card_center_x)
        return self.offset

    def release(self) -> Optional[str]:
        """End the drag; returns the decision it produced, if any."""
        if not self.dragging:
            return None
        decision = classify_release(self.offset)
        self.dragging = False
        self.offset = 0.0
        return decision
