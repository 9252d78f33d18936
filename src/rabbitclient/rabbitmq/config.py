from dataclasses import dataclass, field, fields, replace
from enum import Enum
from typing import Any, Mapping, Optional, TypeVar, Union

from rabbitclient.exceptions import ValidationError


class ExchangeType(Enum):
    # NOTE: values are the exchange types understood by the broker
    TOPIC = "topic"
    DIRECT = "direct"
    FANOUT = "fanout"
    DELAYED = "x-delayed-message"


# inner routing algorithm used by the delayed message exchange plugin
DELAYED_EXCHANGE_ROUTING = ExchangeType.TOPIC

# 1 for transient, 2 for persistent
PERSISTENT_DELIVERY_MODE = 2


@dataclass
class PublishOptions:
    exchange_type: ExchangeType = ExchangeType.TOPIC
    # message properties, merged over the persistent json defaults
    publish_overrides: dict[str, Any] = field(default_factory=dict)
    # keyword arguments for exchange.declare, merged over the durable defaults
    exchange_declare_overrides: dict[str, Any] = field(default_factory=dict)


@dataclass
class SubscribeOptions:
    exchange_type: ExchangeType = ExchangeType.TOPIC
    # keyword arguments for basic.consume
    consume_overrides: dict[str, Any] = field(default_factory=dict)
    exchange_declare_overrides: dict[str, Any] = field(default_factory=dict)
    prefetch_count: Optional[int] = None


OptionsT = TypeVar("OptionsT", PublishOptions, SubscribeOptions)


def merge_options(
    defaults: OptionsT, options: Union[OptionsT, Mapping[str, Any], None]
) -> OptionsT:
    """
    Merge caller supplied options over the defaults.

    Mappings are applied key by key, so only the keys present override the
    defaults. A full options object replaces the defaults outright.

    :param defaults: The default options of the client.
    :param options: None, a mapping of field names, or an options instance.
    :return: A new options instance; ``defaults`` is never mutated.
    """
    if options is None:
        return replace(defaults)
    if isinstance(options, type(defaults)):
        return options
    if not isinstance(options, Mapping):
        raise ValidationError(
            f"Options must be a mapping or {type(defaults).__name__}, "
            f"got {type(options).__name__}"
        )

    allowed = {f.name for f in fields(defaults)}
    unknown = set(options) - allowed
    if unknown:
        raise ValidationError(
            f"Unknown option(s): {', '.join(sorted(unknown))}. "
            f"Valid options are: {', '.join(sorted(allowed))}"
        )
    return replace(defaults, **options)
