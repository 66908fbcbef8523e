"""Shared state store: the abstract contract and its backends."""

from .base import RemoteStore, PartitionedStore, Subscription, split_path, get_in, set_in
from .memory import InMemoryStore

__all__ = [
    'RemoteStore',
    'PartitionedStore',
    'Subscription',
    'InMemoryStore',
    'split_path',
    'get_in',
    'set_in',
]
