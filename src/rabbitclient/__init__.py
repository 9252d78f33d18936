"""
Resilient publish/subscribe client for RabbitMQ.

Public API:
    - Client: Connects, publishes and subscribes; one instance per broker
    - ClientSettings: Validated client configuration
    - ExchangeType, PublishOptions, SubscribeOptions: Per-call options
    - LifecycleEvent: Events reported to ``Client.on`` listeners
    - Settlement: Ack/nack/reject controls passed to subscribe handlers
    - construct_exchange_name: Exchange naming for events
"""

from .client import Client
from .config import ClientSettings
from .exceptions import (
    BrokerConnectionError,
    CloseError,
    OperationError,
    PayloadError,
    RabbitClientError,
    ValidationError,
)
from .lifecycle import LifecycleEvent, LifecycleNotifier
from .rabbitmq import (
    ExchangeType,
    PublishOptions,
    Settlement,
    SettlementState,
    SubscribeOptions,
    Subscription,
    construct_exchange_name,
)

__all__ = [
    "Client",
    "ClientSettings",
    # Options
    "ExchangeType",
    "PublishOptions",
    "SubscribeOptions",
    # Lifecycle
    "LifecycleEvent",
    "LifecycleNotifier",
    # Messages
    "Settlement",
    "SettlementState",
    "Subscription",
    "construct_exchange_name",
    # Errors
    "BrokerConnectionError",
    "CloseError",
    "OperationError",
    "PayloadError",
    "RabbitClientError",
    "ValidationError",
]
