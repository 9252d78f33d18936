"""
RabbitMQ publisher implementation.

Each publish opens its own channel on the publish connection, declares the
event's exchange, sends one message and closes the channel again.
"""

import logging
from typing import Any, Callable, Mapping, Optional, Union

from amqpstorm import AMQPError, Channel, Connection

from rabbitclient.exceptions import OperationError

from ..message.abstract_interface import MessagePublisherInterface
from .config import PERSISTENT_DELIVERY_MODE, PublishOptions, merge_options
from .util import construct_exchange_name, declare_exchange, encode_payload

logger = logging.getLogger(__name__)


class RabbitPublisher(MessagePublisherInterface):
    """
    Publishes events to exchanges derived from the event name.

    Messages published while there is no connection are dropped.
    """

    def __init__(
        self,
        connection_provider: Callable[[], Optional[Connection]],
        default_options: Optional[PublishOptions] = None,
    ) -> None:
        """
        :param connection_provider: Returns the current publish connection, or None
        :param default_options: Options used when a publish does not override them
        """
        self._connection_provider = connection_provider
        self.default_options = default_options or PublishOptions()

    def publish(
        self,
        event: str,
        data: Any,
        options: Union[PublishOptions, Mapping[str, Any], None] = None,
    ) -> bool:
        """
        Publish a message for an event.

        :param event: The event name, used as routing key.
        :param data: JSON serializable message data.
        :param options: Overrides for the default publish options.
        :return: True if the message was handed to the broker, False if it was
            dropped because there is no connection.
        :raises OperationError: If declaring the exchange or publishing fails,
            or if ``data`` is not JSON serializable.
        """
        connection = self._connection_provider()
        if connection is None:
            logger.debug("No publish connection, dropping '%s' event", event)
            return False

        options = merge_options(self.default_options, options)
        exchange = construct_exchange_name(event, options.exchange_type)
        try:
            body = encode_payload(data)
        except (TypeError, ValueError) as e:
            raise OperationError(f"Unable to encode '{event}' payload: {e}", e) from e
        properties = {
            "delivery_mode": PERSISTENT_DELIVERY_MODE,
            "content_type": "application/json",
        }
        properties.update(options.publish_overrides)

        channel: Optional[Channel] = None
        try:
            channel = connection.channel()
            declare_exchange(
                channel,
                exchange,
                options.exchange_type,
                options.exchange_declare_overrides,
            )
            channel.basic.publish(
                body=body,
                routing_key=event,
                exchange=exchange,
                properties=properties,
            )
        except AMQPError as e:
            logger.error("Failed to publish '%s' event to %s: %s", event, exchange, e)
            raise OperationError(f"Failed to publish '{event}' event: {e}", e) from e
        finally:
            if channel is not None:
                self._close_channel(channel)

        logger.debug("Published '%s' event to exchange %s", event, exchange)
        return True

    @staticmethod
    def _close_channel(channel: Channel) -> None:
        try:
            if channel.is_open:
                channel.close()
        except Exception as e:
            logger.debug("Error closing publish channel: %s", e)
