"""Application layer - query cache, mutations, session lifecycle and use cases."""

from .admin_use_cases import FundraisingProgress, FundsManager, GalleryManager, UsersManager
from .adoption_use_cases import AdoptionsManager, DonationsManager, PetDonationForm
from .context import MowgliansApp
from .mutation_executor import MutationExecutor, MutationOptions, MutationStep, MutationTask
from .query_cache import QueryCache, Subscription
from .routing import RouteDecision, RouteTable
from .session import SessionManager
from .use_cases import PetCatalog, ProfileManager

__all__ = [
    "AdoptionsManager",
    "DonationsManager",
    "FundraisingProgress",
    "FundsManager",
    "GalleryManager",
    "MowgliansApp",
    "MutationExecutor",
    "MutationOptions",
    "MutationStep",
    "MutationTask",
    "PetCatalog",
    "PetDonationForm",
    "ProfileManager",
    "QueryCache",
    "RouteDecision",
    "RouteTable",
    "SessionManager",
    "Subscription",
    "UsersManager",
]
