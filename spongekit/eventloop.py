"""A poll-based event loop that runs callbacks when file descriptors become ready."""

from __future__ import annotations

import enum
import errno
import select
from collections.abc import Callable
from dataclasses import dataclass

from spongekit.file_descriptor import FileDescriptor
from spongekit.util import UnixError, system_call

Callback = Callable[[], object]
Interest = Callable[[], bool]


class Direction(enum.Enum):
    """Whether a rule waits for its descriptor to become readable or writable."""

    IN = select.POLLIN
    OUT = select.POLLOUT


class Result(enum.Enum):
    """The outcome of one call to EventLoop.wait_next_event."""

    SUCCESS = enum.auto()
    TIMEOUT = enum.auto()
    EXIT = enum.auto()


def _always_interested() -> bool:
    return True


def _do_nothing() -> None:
    return None


@dataclass(eq=False)
class _Rule:
    fd: FileDescriptor
    direction: Direction
    callback: Callback
    interest: Interest
    cancel: Callback

    def service_count(self) -> int:
        if self.direction is Direction.IN:
            return self.fd.read_count()
        return self.fd.write_count()


class EventLoop:
    """Waits for events on file descriptors and runs the matching callbacks.

    Every callback must read from or write to its descriptor, or its interest
    function must stop returning True; otherwise a busy wait is reported.
    """

    def __init__(self) -> None:
        self._rules: list[_Rule] = []

    def add_rule(
        self,
        fd: FileDescriptor,
        direction: Direction,
        callback: Callback,
        interest: Interest = _always_interested,
        cancel: Callback = _do_nothing,
    ) -> None:
        """Run ``callback`` whenever ``fd`` is ready in ``direction`` and ``interest()`` is true."""
        self._rules.append(_Rule(fd.duplicate(), direction, callback, interest, cancel))

    def _drop(self, rule: _Rule) -> None:
        rule.cancel()
        if rule in self._rules:
            self._rules.remove(rule)

    def wait_next_event(self, timeout_ms: int) -> Result:
        """Poll every rule's descriptor once and run the callbacks of those that are ready.

        Returns EXIT when nothing is left to poll or poll was interrupted, TIMEOUT
        when nothing became ready in time, and SUCCESS otherwise. Raises
        RuntimeError on a descriptor error or a detected busy wait.
        """
        polled: list[tuple[_Rule, int]] = []
        for rule in list(self._rules):
            if (rule.direction is Direction.IN and rule.fd.eof()) or rule.fd.closed():
                self._drop(rule)
                continue
            events = rule.direction.value if rule.interest() else 0
            polled.append((rule, events))

        if not any(events for _rule, events in polled):
            return Result.EXIT

        masks: dict[int, int] = {}
        for rule, events in polled:
            fd_num = rule.fd.fd_num()
            masks[fd_num] = masks.get(fd_num, 0) | events
        poller = select.poll()
        for fd_num, mask in masks.items():
            poller.register(fd_num, mask)

        try:
            ready = system_call("poll", lambda: poller.poll(timeout_ms))
            if not ready:
                return Result.TIMEOUT
        except UnixError as exc:
            if exc.errno == errno.EINTR:
                return Result.EXIT
            ready = []

        revents_by_fd: dict[int, int] = {}
        for fd_num, revents in ready:
            revents_by_fd[fd_num] = revents_by_fd.get(fd_num, 0) | revents

        for rule, events in polled:
            if rule not in self._rules:
                continue
            revents = revents_by_fd.get(rule.fd.fd_num(), 0)
            if revents & (select.POLLERR | select.POLLNVAL):
                raise RuntimeError("EventLoop: error on polled file descriptor")

            poll_ready = bool(revents & events)
            poll_hup = bool(revents & select.POLLHUP)
            if poll_hup and events and not poll_ready:
                # Only a hangup: nothing more will ever be readable or writable.
                self._drop(rule)
                continue

            if poll_ready:
                count_before = rule.service_count()
                rule.callback()
                if count_before == rule.service_count() and rule.interest():
                    raise RuntimeError(
                        "EventLoop: busy wait detected: callback did not read/write fd and is still interested"
                    )

        return Result.SUCCESS