"""Handlers module."""

from .consumer import ConsumerHandler, IConsumerHandler
from .producer import IProducerHandler, ProducerHandler, ProducerResponse

__all__ = [
    "ConsumerHandler",
    "IConsumerHandler",
    "IProducerHandler",
    "ProducerHandler",
    "ProducerResponse",
]
