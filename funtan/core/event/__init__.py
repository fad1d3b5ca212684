from funtan.core.event.bus import EventBus, EventListener, EventPayload, ListenerPriority

__all__ = ["EventBus", "EventListener", "EventPayload", "ListenerPriority"]
