"""
RabbitMQ messaging implementation.

This module provides the broker-facing parts of the client: a connection
manager that keeps separate publish and subscribe connections alive, and a
publisher and subscriber that derive their topology from event names.

Public API:
    - ConnectionManager: Owns and reconnects the two broker connections
    - RabbitPublisher: Publishes one message per call on a short-lived channel
    - RabbitSubscriber, Subscription: Consume an event's queue on a dedicated channel
    - Settlement: Ack/nack/reject controls for one delivered message
    - ExchangeType, PublishOptions, SubscribeOptions: Configuration types
    - construct_exchange_name: Exchange naming for events
"""

from .config import ExchangeType, PublishOptions, SubscribeOptions, merge_options
from .connection import ConnectionManager
from .publisher import RabbitPublisher
from .subscriber import RabbitSubscriber, Settlement, SettlementState, Subscription
from .util import construct_exchange_name

__all__ = [
    # Config
    "ExchangeType",
    "PublishOptions",
    "SubscribeOptions",
    "merge_options",
    # Connection
    "ConnectionManager",
    # Publisher/Subscriber
    "RabbitPublisher",
    "RabbitSubscriber",
    "Settlement",
    "SettlementState",
    "Subscription",
    # Utilities
    "construct_exchange_name",
]
