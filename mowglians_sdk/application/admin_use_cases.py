"""Admin console use cases - users and roles, fundraising, gallery."""

from __future__ import annotations

import math
import mimetypes
import uuid
from collections import defaultdict
from collections.abc import Callable
from pathlib import PurePath

from pydantic import BaseModel, ConfigDict, Field

from ..domain.enums import Role
from ..domain.exceptions import ValidationError
from ..domain.models import (
    CacheEntry,
    GalleryItem,
    ManagedUser,
    MutationResult,
    SiteMetrics,
    Tables,
    Transaction,
    UserProfile,
    UserRoleRecord,
)
from ..domain.patterns import QueryKeys
from ..domain.queries import SelectQuery
from .mutation_executor import MutationOptions, MutationStep
from .query_cache import Subscription
from .use_cases import UseCase, require_text

DEFAULT_FUND_GOAL = 100000.0
DEFAULT_GALLERY_PAGE_SIZE = 12


class UsersManager(UseCase):
    """Registered users and their admin role."""

    async def fetch_users(self) -> list[ManagedUser]:
        """Load all profiles with their granted roles, newest first."""
        profiles = await self._select(
            Tables.USERS_PROFILE,
            UserProfile,
            SelectQuery().ordered_by("created_at", ascending=False),
        )
        grants = await self._select(Tables.USER_ROLES, UserRoleRecord)

        roles: dict[str, list[Role]] = defaultdict(list)
        for grant in grants:
            if grant.role not in roles[grant.user_id]:
                roles[grant.user_id].append(grant.role)
        return [ManagedUser(profile=p, roles=roles.get(p.user_id, [])) for p in profiles]

    async def list_users(self, force: bool = False) -> CacheEntry:
        """Users through the cache."""
        return await self._read(QueryKeys.admin_users(), self.fetch_users, force)

    def subscribe(self, listener: Callable[[CacheEntry], None]) -> Subscription:
        """Keep a consumer updated with the users."""
        return self._subscribe(QueryKeys.admin_users(), self.fetch_users, listener)

    async def set_admin(self, user_id: str, grant: bool) -> MutationResult:
        """Grant or revoke the admin role.

        Granting an already granted role and revoking a role that is not
        granted succeed without writing. Revoked grants are downgraded to the
        user role.
        """

        async def operation() -> int:
            query = SelectQuery().where("user_id", user_id).where("role", Role.ADMIN.value)
            admin_grants = await self._remote.select(Tables.USER_ROLES, query)
            if grant:
                if admin_grants:
                    return 0
                await self._remote.insert(
                    Tables.USER_ROLES, {"user_id": user_id, "role": Role.ADMIN.value}
                )
                return 1
            for row in admin_grants:
                await self._remote.update(
                    Tables.USER_ROLES, str(row["id"]), {"role": Role.USER.value}
                )
            return len(admin_grants)

        return await self._executor.run(
            operation,
            MutationOptions(
                name="set_admin",
                invalidates=[QueryKeys.admin_users(), QueryKeys.user_role(user_id)],
                success_title="Role updated successfully",
                success_description="Admin role added" if grant else "Admin role removed",
                error_title="Error updating role",
            ),
        )


class FundraisingProgress(BaseModel):
    """Progress of the fundraising campaign towards its goal."""

    model_config = ConfigDict(frozen=True)

    total_funds: float = Field(..., ge=0)
    goal: float = Field(..., gt=0)

    @property
    def percentage(self) -> float:
        """Share of the goal reached, capped at 100."""
        return min(self.total_funds / self.goal * 100, 100.0)


class FundsManager(UseCase):
    """Fundraising transactions and the public counters."""

    async def fetch_transactions(self) -> list[Transaction]:
        """Load transactions, newest first."""
        return await self._select(
            Tables.FUND_TRANSACTIONS,
            Transaction,
            SelectQuery().ordered_by("transaction_time", ascending=False),
        )

    async def list_transactions(self, force: bool = False) -> CacheEntry:
        """Transactions through the cache."""
        return await self._read(QueryKeys.transactions(), self.fetch_transactions, force)

    def subscribe_transactions(self, listener: Callable[[CacheEntry], None]) -> Subscription:
        """Keep a consumer updated with the transactions."""
        return self._subscribe(QueryKeys.transactions(), self.fetch_transactions, listener)

    async def fetch_site_metrics(self) -> SiteMetrics | None:
        """Load the public counters row."""
        rows = await self._select(Tables.SITE_METRICS, SiteMetrics, SelectQuery(limit=1))
        return rows[0] if rows else None

    async def get_site_metrics(self, force: bool = False) -> CacheEntry:
        """Public counters through the cache."""
        return await self._read(QueryKeys.site_metrics(), self.fetch_site_metrics, force)

    def subscribe_site_metrics(self, listener: Callable[[CacheEntry], None]) -> Subscription:
        """Keep a consumer updated with the public counters."""
        return self._subscribe(QueryKeys.site_metrics(), self.fetch_site_metrics, listener)

    async def total_funds(self) -> float:
        """Total raised: the public counter when present, else the sum of transactions."""
        metrics = (await self.get_site_metrics()).data
        if metrics is not None and metrics.total_funds is not None:
            return float(metrics.total_funds)
        transactions = (await self.list_transactions()).data or []
        return float(sum(t.amount for t in transactions))

    async def progress(self, goal: float = DEFAULT_FUND_GOAL) -> FundraisingProgress:
        """Progress towards the fundraising goal."""
        return FundraisingProgress(total_funds=await self.total_funds(), goal=goal)

    async def record_donation(
        self, donor_name: str, amount: float | str | None, utr_id: str
    ) -> MutationResult:
        """Record a captured payment and add it to the public total.

        Args:
            donor_name: Name shown in the transaction list
            amount: Positive amount (numeric strings from form input are accepted)
            utr_id: Payment reference returned by the gateway
        """
        donor = (donor_name or "").strip()
        value = self._parse_amount(amount)

        async def insert_transaction() -> str:
            if not donor or value is None:
                raise ValidationError(
                    "Please enter your name and amount",
                    field="amount" if donor else "donor_name",
                    title="Missing Information",
                )
            if not math.isfinite(value) or value <= 0:
                raise ValidationError(
                    "Amount must be greater than zero", field="amount", title="Invalid amount"
                )
            reference = require_text(
                utr_id, "utr_id", "Payment reference is required", "Missing Information"
            )
            return await self._remote.insert(
                Tables.FUND_TRANSACTIONS,
                {
                    "donor_name": donor,
                    "amount": value,
                    "utr_id": reference,
                    "transaction_time": self._now_iso(),
                },
            )

        async def add_to_total() -> float | None:
            rows = await self._remote.select(Tables.SITE_METRICS, SelectQuery(limit=1))
            if not rows:
                return None
            total = float(rows[0].get("total_funds") or 0) + value
            await self._remote.update(
                Tables.SITE_METRICS,
                str(rows[0]["id"]),
                {"total_funds": total, "last_updated": self._now_iso()},
            )
            return total

        return await self._executor.run_steps(
            [
                MutationStep(name="transaction", operation=insert_transaction),
                MutationStep(name="site metrics", operation=add_to_total),
            ],
            MutationOptions(
                name="record_donation",
                invalidates=[QueryKeys.transactions(), QueryKeys.site_metrics()],
                success_title="Donation Successful",
                success_description=f"Thank you {donor} for your donation of ₹{value:g}!"
                if donor and value
                else None,
            ),
        )

    @staticmethod
    def _parse_amount(amount: float | str | None) -> float | None:
        if amount is None or (isinstance(amount, str) and not amount.strip()):
            return None
        try:
            return float(amount)
        except (TypeError, ValueError):
            return None


class GalleryManager(UseCase):
    """Gallery images: paged listing and admin uploads."""

    def __init__(self, *args, page_size: int = DEFAULT_GALLERY_PAGE_SIZE, **kwargs):
        super().__init__(*args, **kwargs)
        if page_size < 1:
            raise ValueError("page_size must be positive")
        self._page_size = page_size

    @property
    def page_size(self) -> int:
        """Images per page."""
        return self._page_size

    async def fetch_page(self, page: int = 1) -> list[GalleryItem]:
        """Load one page of images, newest first."""
        query = SelectQuery().ordered_by("created_at", ascending=False).page(page, self._page_size)
        return await self._select(Tables.GALLERY, GalleryItem, query)

    async def list_page(self, page: int = 1, force: bool = False) -> CacheEntry:
        """One page of images through the cache."""
        return await self._read(
            QueryKeys.gallery_images(page), lambda: self.fetch_page(page), force
        )

    def subscribe_page(self, page: int, listener: Callable[[CacheEntry], None]) -> Subscription:
        """Keep a consumer updated with one page of images."""
        return self._subscribe(
            QueryKeys.gallery_images(page), lambda: self.fetch_page(page), listener
        )

    async def upload(
        self,
        filename: str | None,
        data: bytes | None,
        description: str | None = None,
        uploaded_by: str | None = None,
        content_type: str | None = None,
    ) -> MutationResult:
        """Upload an image to storage and add it to the gallery."""
        image_url: str | None = None

        async def upload_blob() -> str:
            nonlocal image_url
            if not filename or not data:
                raise ValidationError(
                    "Please select an image to upload", field="file", title="No file selected"
                )
            kind = content_type or mimetypes.guess_type(filename)[0] or ""
            if not kind.startswith("image/"):
                raise ValidationError(
                    "Only image files can be added to the gallery",
                    field="file",
                    title="Invalid file",
                )
            path = f"{uuid.uuid4().hex}{PurePath(filename).suffix.lower()}"
            image_url = await self._remote.upload_blob(Tables.GALLERY_BUCKET, path, data, kind)
            return image_url

        async def insert_row() -> str:
            return await self._remote.insert(
                Tables.GALLERY,
                {
                    "image_url": image_url,
                    "description": (description or "").strip() or None,
                    "uploaded_by": uploaded_by,
                },
            )

        return await self._executor.run_steps(
            [
                MutationStep(name="image upload", operation=upload_blob),
                MutationStep(name="gallery entry", operation=insert_row),
            ],
            MutationOptions(
                name="upload_gallery_image",
                invalidates=[QueryKeys.gallery_images()],
                success_title="Image Uploaded",
                success_description="Image has been added to the gallery.",
                error_title="Upload Failed",
            ),
        )
