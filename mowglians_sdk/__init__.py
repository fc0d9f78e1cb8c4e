"""Mowglians SDK - client-side data synchronization for the pet adoption app."""

from .application.context import MowgliansApp
from .application.query_cache import QueryCache
from .domain.patterns import QueryKeys
from .domain.value_objects import QueryKey
from .infrastructure.bootstrap import create_app

__all__ = ["MowgliansApp", "QueryCache", "QueryKey", "QueryKeys", "create_app"]
__version__ = "0.1.0"
