import errno
import json
import logging
from typing import Any, Optional

from amqpstorm import AMQPConnectionError

from rabbitclient.exceptions import PayloadError, ValidationError

from .config import DELAYED_EXCHANGE_ROUTING, ExchangeType

logger = logging.getLogger(__name__)

_EXCHANGE_SUFFIXES = {
    ExchangeType.TOPIC: "tx",
    ExchangeType.DIRECT: "dx",
    ExchangeType.FANOUT: "fx",
    ExchangeType.DELAYED: "xdx",
}

INVALID_EXCHANGE_TYPE_MESSAGE = (
    "Only 'topic', 'direct', 'fanout', and 'x-delayed-message' type are available"
)


def construct_exchange_name(event: str, exchange_type: ExchangeType) -> str:
    """
    Construct the exchange name for an event.

    The name is the part of the event before its first dot, followed by a
    suffix for the exchange type, e.g. ``order.created`` on a topic
    exchange becomes ``order.tx``.

    :param event: The event name, e.g. ``order.created``.
    :param exchange_type: The kind of exchange.
    :return: The exchange name.
    :raises ValidationError: If ``exchange_type`` is not an ExchangeType.
    """
    if not isinstance(exchange_type, ExchangeType):
        raise ValidationError(INVALID_EXCHANGE_TYPE_MESSAGE)

    prefix = event.split(".", 1)[0]
    return f"{prefix}.{_EXCHANGE_SUFFIXES[exchange_type]}"


def build_exchange_declare_kwargs(
    exchange_type: ExchangeType, overrides: Optional[dict] = None
) -> dict[str, Any]:
    """
    Build the keyword arguments for ``exchange.declare``.

    :param exchange_type: The kind of exchange being declared.
    :param overrides: Caller supplied values that win over the defaults.
    :return: Keyword arguments for ``channel.exchange.declare``.
    """
    arguments = {}
    if exchange_type is ExchangeType.DELAYED:
        arguments["x-delayed-type"] = DELAYED_EXCHANGE_ROUTING.value

    kwargs = {
        "exchange_type": exchange_type.value,
        "durable": True,
        "auto_delete": True,
        "arguments": arguments,
    }
    kwargs.update(overrides or {})
    return kwargs


def declare_exchange(
    channel,
    exchange_name: str,
    exchange_type: ExchangeType,
    overrides: Optional[dict] = None,
) -> None:
    """
    Declare an exchange with the client's default settings.

    :param channel: The AMQP channel to use for declaration.
    :param exchange_name: Name of the exchange to declare.
    :param exchange_type: The kind of exchange.
    :param overrides: Keyword arguments that win over the defaults.
    """
    kwargs = build_exchange_declare_kwargs(exchange_type, overrides)
    channel.exchange.declare(exchange=exchange_name, **kwargs)
    logger.debug("Exchange declared: %s (%s)", exchange_name, kwargs["exchange_type"])


def declare_queue(channel, queue_name: str, durable: bool = True) -> str:
    """
    Declare a queue.

    :param channel: The AMQP channel to use for declaration.
    :param queue_name: Name of the queue.
    :param durable: Whether the queue should survive broker restarts.
    :return: The name of the declared queue.
    """
    result = channel.queue.declare(queue=queue_name, durable=durable)
    declared_queue_name = (result or {}).get("queue") or queue_name
    logger.debug("Queue declared: %s", declared_queue_name)
    return declared_queue_name


def bind_queue(channel, queue_name: str, exchange_name: str, routing_key: str) -> None:
    channel.queue.bind(queue=queue_name, exchange=exchange_name, routing_key=routing_key)
    logger.debug(
        "Queue %s bound to exchange %s with routing key '%s'",
        queue_name,
        exchange_name,
        routing_key,
    )


def encode_payload(data: Any) -> str:
    return json.dumps(data)


def decode_payload(body) -> Any:
    """
    Decode a message body.

    :param body: The raw body, str or bytes. Empty bodies decode to None.
    :return: The parsed JSON value.
    :raises PayloadError: If the body is not valid JSON.
    """
    if body is None or len(body) == 0:
        return None

    try:
        if isinstance(body, (bytes, bytearray)):
            body = body.decode("utf-8")
        return json.loads(body)
    except ValueError as e:
        raise PayloadError(body, e) from e


def is_connection_refused(error: BaseException) -> bool:
    """
    Check whether an error means the broker was already unreachable.

    Follows the ``__cause__``/``__context__`` chain, since amqpstorm wraps
    socket errors in AMQPConnectionError.
    """
    seen = set()
    current: Optional[BaseException] = error
    while current is not None and id(current) not in seen:
        seen.add(id(current))

        if isinstance(current, ConnectionRefusedError):
            return True
        if isinstance(current, OSError) and current.errno == errno.ECONNREFUSED:
            return True
        if isinstance(current, AMQPConnectionError) and (
            "connection refused" in str(current).lower()
        ):
            return True

        current = current.__cause__ or current.__context__
    return False
