import abc
from typing import Any, Callable, Optional


class MessagePublisherInterface(abc.ABC):
    @abc.abstractmethod
    def publish(self, event: str, data: Any, options=None) -> bool:
        """
        Publish one message for ``event``.

        Returns False when the message was dropped because there is no
        connection.
        """
        pass


class MessageSubscriberInterface(abc.ABC):
    @abc.abstractmethod
    def subscribe(
        self, event: str, options, handler: Callable[..., None]
    ) -> Optional[Any]:
        """
        Start delivering messages for ``event`` to ``handler``.

        Non-blocking. Returns a subscription handle, or None when there is no
        connection.
        """
        pass
