"""Query key pattern management for cached reads."""

from .value_objects import QueryKey


class QueryKeys:
    """Centralized query key patterns following DDD principles."""

    # Admin console
    @staticmethod
    def admin_adoptions() -> QueryKey:
        """All adoption requests, newest first."""
        return QueryKey.of("admin-adoptions")

    @staticmethod
    def admin_donations() -> QueryKey:
        """All donation requests, newest first."""
        return QueryKey.of("admin-donations")

    @staticmethod
    def admin_users() -> QueryKey:
        """All user profiles with their roles."""
        return QueryKey.of("admin-users")

    # Identity
    @staticmethod
    def user_role(identity_id: str | None = None) -> QueryKey:
        """Admin role lookup for an identity, or the whole family when no id is given."""
        if identity_id is None:
            return QueryKey.of("user-role")
        return QueryKey.of("user-role", identity_id)

    @staticmethod
    def user_profile(user_id: str) -> QueryKey:
        """Profile of one user."""
        return QueryKey.of("user-profile", user_id)

    @staticmethod
    def user_adoptions(user_id: str) -> QueryKey:
        """Adoption requests submitted by one user."""
        return QueryKey.of("user-adoptions", user_id)

    # Public pages
    @staticmethod
    def available_pets() -> QueryKey:
        """Pets that can currently be adopted."""
        return QueryKey.of("available-pets")

    @staticmethod
    def pet(pet_id: str) -> QueryKey:
        """A single pet."""
        return QueryKey.of("pet", pet_id)

    @staticmethod
    def gallery_images(page: int | None = None) -> QueryKey:
        """A page of gallery images, or the whole family when no page is given."""
        if page is None:
            return QueryKey.of("gallery-images")
        return QueryKey.of("gallery-images", page)

    @staticmethod
    def site_metrics() -> QueryKey:
        """Public counters."""
        return QueryKey.of("site-metrics")

    @staticmethod
    def transactions() -> QueryKey:
        """Fundraising transactions, newest first."""
        return QueryKey.of("transactions")
