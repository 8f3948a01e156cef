from typing import Callable
from blinker import Signal


def _signal_for(target, event_name: str) -> Signal:
    signals = getattr(target, "signals", None)
    if not signals or event_name not in signals:
        raise ValueError(
            f"{type(target).__name__} has no '{event_name}' event"
        )
    return signals[event_name]


def bind(target, event_name: str, handler: Callable) -> Callable:
    """
    Attaches handler to the named event of target and returns the handler.
    The target keeps a strong reference until unbind() is called.
    """
    _signal_for(target, event_name).connect(handler, sender=target,
                                            weak=False)
    return handler


def unbind(target, event_name: str, handler: Callable) -> Callable:
    _signal_for(target, event_name).disconnect(handler, sender=target)
    return handler
