"""Default capability gate and event sinks."""

import logging
from dataclasses import asdict
from typing import Iterable, List

from .protocols import EventSink

log = logging.getLogger("synthvault.events")


class StaticCapabilityGate:
    """Capability check backed by a fixed set of administrator addresses."""

    def __init__(self, addresses: Iterable[str]):
        self.addresses = frozenset(addresses)

    def has_capability(self, address: str) -> bool:
        return address in self.addresses


class LoggingEventSink:
    """Writes ledger events to the ``synthvault.events`` logger."""

    def publish(self, event: object) -> None:
        log.info("%s %s", type(event).__name__, asdict(event))


class MemoryEventSink:
    """Keeps published events in a list (inspection and tests)."""

    def __init__(self):
        self.events: List[object] = []

    def publish(self, event: object) -> None:
        self.events.append(event)


class FanoutEventSink:
    """Forwards each event to several sinks in order."""

    def __init__(self, *sinks: EventSink):
        self.sinks = sinks

    def publish(self, event: object) -> None:
        for sink in self.sinks:
            sink.publish(event)
