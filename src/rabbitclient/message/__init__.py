from .abstract_interface import MessagePublisherInterface, MessageSubscriberInterface

__all__ = ["MessagePublisherInterface", "MessageSubscriberInterface"]
