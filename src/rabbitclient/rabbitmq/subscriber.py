"""
RabbitMQ subscriber implementation.

Each subscribe call declares the event's exchange and a durable queue named
after the event, then consumes on a dedicated channel in its own thread.
Handlers settle every delivery explicitly through a Settlement.
"""

import logging
import threading
from enum import Enum
from typing import Any, Callable, Mapping, Optional, Union

from amqpstorm import AMQPError, Channel, Connection, Message

from rabbitclient.exceptions import OperationError, PayloadError, ValidationError
from rabbitclient.lifecycle import LifecycleEvent, LifecycleNotifier

from ..message.abstract_interface import MessageSubscriberInterface
from .config import SubscribeOptions, merge_options
from .util import bind_queue, construct_exchange_name, declare_exchange, declare_queue, decode_payload

logger = logging.getLogger(__name__)

# handler(data, message, settlement)
MessageHandler = Callable[[Any, Message, "Settlement"], None]

# set by the subscriber itself on every basic.consume
RESERVED_CONSUME_ARGUMENTS = frozenset({"callback", "queue"})


class SettlementState(Enum):
    PENDING = "pending"
    ACKED = "acked"
    NACKED = "nacked"
    REJECTED = "rejected"


class Settlement:
    """
    Settlement controls for one delivered message.

    Only the first of ``ack``, ``nack`` or ``reject`` reaches the broker.
    Later calls are ignored and return False.
    """

    def __init__(self, message: Message, data: Any = None) -> None:
        self.message = message
        self.data = data
        self._state = SettlementState.PENDING
        self._lock = threading.Lock()

    @property
    def state(self) -> SettlementState:
        return self._state

    @property
    def is_settled(self) -> bool:
        return self._state is not SettlementState.PENDING

    def ack(self) -> bool:
        return self._settle(SettlementState.ACKED, self.message.ack)

    def nack(self, requeue: bool = True) -> bool:
        return self._settle(
            SettlementState.NACKED, lambda: self.message.nack(requeue=requeue)
        )

    def reject(self) -> bool:
        return self._settle(
            SettlementState.REJECTED, lambda: self.message.reject(requeue=False)
        )

    def _settle(self, state: SettlementState, action: Callable[[], None]) -> bool:
        with self._lock:
            if self._state is not SettlementState.PENDING:
                logger.debug(
                    "Message %s already %s, ignoring %s",
                    self.message.delivery_tag,
                    self._state.value,
                    state.value,
                )
                return False

            try:
                action()
            except AMQPError as e:
                raise OperationError(
                    f"Failed to settle message {self.message.delivery_tag}: {e}", e
                ) from e
            self._state = state
        return True


class Subscription:
    """A running consumer for one event, bound to its own channel."""

    def __init__(
        self,
        event: str,
        queue: str,
        channel: Channel,
        handler: Optional[MessageHandler],
        notifier: Optional[LifecycleNotifier] = None,
    ) -> None:
        self.event = event
        self.queue = queue
        self.consumer_tag: Optional[str] = None
        self._channel = channel
        self._handler = handler
        self._notifier = notifier

        self._consumer_thread: Optional[threading.Thread] = None
        self._lock = threading.RLock()
        self._is_cancelled = False

    @property
    def is_cancelled(self) -> bool:
        return self._is_cancelled

    @property
    def is_active(self) -> bool:
        return (
            not self._is_cancelled
            and self._consumer_thread is not None
            and self._consumer_thread.is_alive()
        )

    def start(self, consumer_tag: str) -> None:
        self.consumer_tag = consumer_tag
        self._consumer_thread = threading.Thread(
            target=self._consuming_loop,
            name=f"rmq-subscriber-{self.queue}",
            daemon=True,
        )
        self._consumer_thread.start()

    def _consuming_loop(self) -> None:
        logger.info("Starting to consume from queue %s", self.queue)
        try:
            # blocks until the consumer is cancelled or the channel closes
            self._channel.start_consuming()
        except AMQPError as e:
            if self._is_cancelled or not self._channel.is_open:
                logger.info("Consuming from queue %s stopped: %s", self.queue, e)
                return
            logger.exception("Consuming from queue %s failed: %s", self.queue, e)
            self._notify_error(e)
        except Exception as e:
            logger.exception("Unexpected error consuming from queue %s: %s", self.queue, e)
            self._notify_error(e)

    def _notify_error(self, error: Exception) -> None:
        if self._notifier is not None:
            self._notifier.emit(LifecycleEvent.ERROR, error)

    def _message_handler(self, message: Message) -> None:
        """Decode a delivery and pass it to the handler with its settlement controls."""
        try:
            data = decode_payload(message.body)
        except PayloadError as e:
            logger.warning(
                "Malformed payload on queue %s (delivery %s): %s",
                self.queue,
                message.delivery_tag,
                e,
            )
            data = None

        settlement = Settlement(message, data)
        if self._handler is None:
            return

        try:
            self._handler(data, message, settlement)
        except Exception as e:
            # Don't settle the message if the handler failed
            logger.exception("Error handling '%s' message: %s", self.event, e)

    def cancel(self) -> None:
        """Stop consuming and close the subscription's channel."""
        with self._lock:
            if self._is_cancelled:
                return
            self._is_cancelled = True

        logger.info("Cancelling subscription to '%s'", self.event)
        if self._channel.is_open:
            try:
                self._channel.stop_consuming()
            except Exception as e:
                logger.debug("Error stopping consuming: %s", e)
            try:
                self._channel.close()
            except Exception as e:
                logger.debug("Error closing channel: %s", e)

        if (
            self._consumer_thread
            and self._consumer_thread is not threading.current_thread()
            and self._consumer_thread.is_alive()
        ):
            self._consumer_thread.join(timeout=5.0)


class RabbitSubscriber(MessageSubscriberInterface):
    """Creates subscriptions on the subscribe connection."""

    def __init__(
        self,
        connection_provider: Callable[[], Optional[Connection]],
        default_options: Optional[SubscribeOptions] = None,
        notifier: Optional[LifecycleNotifier] = None,
    ) -> None:
        self._connection_provider = connection_provider
        self.default_options = default_options or SubscribeOptions()
        self._notifier = notifier

    def subscribe(
        self,
        event: str,
        options: Union[SubscribeOptions, Mapping[str, Any], None],
        handler: Optional[MessageHandler],
    ) -> Optional[Subscription]:
        """
        Subscribe to an event.

        :param event: The event name; also the queue name and binding key.
        :param options: Overrides for the default subscribe options.
        :param handler: Called as ``handler(data, message, settlement)`` for
            every delivery, from the subscription's consumer thread.
        :return: The running subscription, or None if there is no connection.
        :raises OperationError: If declaring, binding or consuming fails.
        :raises ValidationError: If ``consume_overrides`` sets ``callback`` or ``queue``.
        """
        connection = self._connection_provider()
        if connection is None:
            logger.debug("No subscribe connection, not subscribing to '%s'", event)
            return None

        options = merge_options(self.default_options, options)
        reserved = RESERVED_CONSUME_ARGUMENTS.intersection(options.consume_overrides)
        if reserved:
            raise ValidationError(
                f"consume_overrides cannot set {', '.join(sorted(reserved))}"
            )
        exchange = construct_exchange_name(event, options.exchange_type)

        channel: Optional[Channel] = None
        try:
            channel = connection.channel()
            if options.prefetch_count is not None:
                channel.basic.qos(prefetch_count=options.prefetch_count)

            declare_exchange(
                channel,
                exchange,
                options.exchange_type,
                options.exchange_declare_overrides,
            )
            queue = declare_queue(channel, event, durable=True)
            bind_queue(channel, queue, exchange, event)

            subscription = Subscription(event, queue, channel, handler, self._notifier)
            consumer_tag = channel.basic.consume(
                callback=subscription._message_handler,
                queue=queue,
                **options.consume_overrides,
            )
        except AMQPError as e:
            logger.error("Failed to subscribe to '%s' event: %s", event, e)
            if channel is not None:
                self._close_channel(channel)
            raise OperationError(f"Failed to subscribe to '{event}' event: {e}", e) from e

        subscription.start(consumer_tag)
        logger.info("Subscribed to '%s' event on queue %s via %s", event, queue, exchange)
        return subscription

    @staticmethod
    def _close_channel(channel: Channel) -> None:
        try:
            if channel.is_open:
                channel.close()
        except Exception as e:
            logger.debug("Error closing subscribe channel: %s", e)
