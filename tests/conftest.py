"""
Shared pytest fixtures and utilities for testing.

No broker is needed: amqpstorm connections, channels and messages are
replaced with ``unittest.mock.Mock`` objects shaped like the real ones.

### Helpers

- `make_channel()`: Open channel mock; `queue.declare` echoes the queue name
  and `basic.consume` returns a consumer tag
- `make_connection(channel)`: Open connection mock whose `channel()` returns
  `channel`
- `make_message(body)`: Delivered message mock with `ack`/`nack`/`reject`
- `RecordingListener`: Lifecycle listener that records every call

### Fixtures

- `channel`, `connection`: Fresh mocks from the helpers above
- `notifier`: Fresh LifecycleNotifier
"""

from typing import Any, List, Optional, Tuple
from unittest.mock import Mock

import pytest

from rabbitclient.lifecycle import LifecycleNotifier


def make_channel(is_open: bool = True) -> Mock:
    channel = Mock()
    channel.is_open = is_open
    channel.queue.declare.side_effect = lambda queue, **kwargs: {"queue": queue}
    channel.basic.consume.return_value = "consumer-tag-123"
    # returns immediately, as if the consumer was cancelled
    channel.start_consuming.return_value = None
    return channel


def make_connection(channel: Optional[Mock] = None, is_open: bool = True) -> Mock:
    connection = Mock()
    connection.is_open = is_open
    connection.check_for_errors = Mock()
    connection.channel.return_value = channel if channel is not None else make_channel()
    return connection


def make_message(body: Any, delivery_tag: int = 1) -> Mock:
    message = Mock()
    message.body = body
    message.delivery_tag = delivery_tag
    return message


class RecordingListener:
    """Lifecycle listener that remembers the arguments of every call."""

    def __init__(self):
        self.calls: List[Tuple[Any, ...]] = []

    def __call__(self, *args) -> None:
        self.calls.append(args)

    @property
    def call_count(self) -> int:
        return len(self.calls)

    @property
    def last_args(self) -> Tuple[Any, ...]:
        if not self.calls:
            raise ValueError("Listener was never called")
        return self.calls[-1]


@pytest.fixture
def channel() -> Mock:
    return make_channel()


@pytest.fixture
def connection(channel) -> Mock:
    return make_connection(channel)


@pytest.fixture
def notifier() -> LifecycleNotifier:
    return LifecycleNotifier()
