"""EventBus for decoupled publish/subscribe communication."""

from enum import Enum, auto
from typing import Any, Callable
from collections import defaultdict


class EventType(Enum):
    # Scene loading
    SCENE_LOADED = auto()        # data: name (str), bone_count (int)
    SCENE_REQUESTED = auto()     # data: name (str)

    # Pose editing
    BONE_HIGHLIGHTED = auto()    # data: index (int | None)
    BONE_ROTATED = auto()        # data: index (int), rotation (Quat)
    POSE_RESET = auto()

    # Editor state machine
    MODE_CHANGED = auto()        # data: mode (EditorMode)

    # Camera
    CAMERA_CHANGED = auto()


class EventBus:
    """Simple publish/subscribe event system."""

    def __init__(self):
        self._handlers: dict[EventType, list[Callable]] = defaultdict(list)

    def subscribe(self, event_type: EventType, handler: Callable) -> None:
        self._handlers[event_type].append(handler)

    def unsubscribe(self, event_type: EventType, handler: Callable) -> None:
        handlers = self._handlers[event_type]
        if handler in handlers:
            handlers.remove(handler)

    def publish(self, event_type: EventType, **data: Any) -> None:
        for handler in list(self._handlers[event_type]):
            handler(**data)

    def clear(self) -> None:
        self._handlers.clear()
