"""Registry facades: Fizz nodes (with resources and leases) and providers."""

from .fizz import FizzModule
from .provider import ProviderModule

__all__ = ["FizzModule", "ProviderModule"]
