"""Contracts shared by the server modules: middleware, registry, resources."""

from .middleware import Middleware
from .registry import Registry
from .resource import ResourceFactory, ResourcePool

__all__ = ["Middleware", "Registry", "ResourceFactory", "ResourcePool"]
