"""Core data models for tracebridge."""

from .messages import Message, build_payload, encode_payload

__all__ = [
    "Message",
    "build_payload",
    "encode_payload",
]
