"""
Forum categories: listing for everyone, create/delete behind manage_categories.
"""

import uuid
from typing import List, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from furioza.kernel.audit.audit_log import AuditLog
from furioza.kernel.audit.details import CategoryDetails
from furioza.kernel.errors import InvalidState, NotFound, ValidationError
from furioza.kernel.identity.actor import Actor
from furioza.kernel.models.audit_log import AuditAction
from furioza.kernel.models.forum import Category, Thread
from furioza.kernel.models.permission import PermissionKey
from furioza.kernel.permissions.permission_service import AuthorizationService
from furioza.logging_config import get_logger

logger = get_logger(__name__)


class CategoryService:
    """Service for forum category management."""

    def __init__(self, session: AsyncSession, authorization: Optional[AuthorizationService] = None):
        self.session = session
        self.authorization = authorization or AuthorizationService(session)
        self.audit_log = AuditLog(session)

    async def list_categories(self) -> List[Category]:
        result = await self.session.execute(
            select(Category).order_by(Category.sort_order, Category.created_at)
        )
        return list(result.scalars().all())

    async def get_category(self, category_id: uuid.UUID) -> Category:
        category = await self.session.get(Category, category_id)
        if category is None:
            raise NotFound("Category", category_id)
        return category

    async def create_category(
        self,
        actor: Actor,
        name: str,
        description: Optional[str] = None,
        icon: Optional[str] = None,
    ) -> Category:
        """
        Create a category at the end of the listing.

        Raises:
            PermissionDenied: If the actor lacks manage_categories
            ValidationError: If the name is empty
        """
        fresh = await self.authorization.authorize(actor, PermissionKey.MANAGE_CATEGORIES)

        name = (name or "").strip()
        if not name:
            raise ValidationError("Category name is required", field="name")

        count_result = await self.session.execute(select(func.count(Category.id)))
        category = Category(
            name=name,
            description=(description or "").strip() or None,
            icon=(icon or "").strip() or None,
            sort_order=count_result.scalar() or 0,
            created_by=fresh.id,
        )
        self.session.add(category)
        await self.session.flush()

        await self.audit_log.record_from_model(
            admin_id=fresh.id,
            action=AuditAction.CREATE_CATEGORY,
            details_model=CategoryDetails(category_id=category.id, name=category.name),
        )
        logger.info("Category created", extra={"category_id": str(category.id)})
        return category

    async def delete_category(self, actor: Actor, category_id: uuid.UUID) -> None:
        """
        Delete an empty category.

        Raises:
            PermissionDenied: If the actor lacks manage_categories
            NotFound: If the category does not exist
            InvalidState: If the category still holds threads
        """
        fresh = await self.authorization.authorize(actor, PermissionKey.MANAGE_CATEGORIES)
        category = await self.get_category(category_id)
        name = category.name

        thread_count = await self.session.execute(
            select(func.count(Thread.id)).where(Thread.category_id == category_id)
        )
        if thread_count.scalar():
            raise InvalidState("Category still contains threads")

        result = await self.session.execute(delete(Category).where(Category.id == category_id))
        if result.rowcount == 0:
            raise InvalidState("Category was already deleted")

        await self.audit_log.record_from_model(
            admin_id=fresh.id,
            action=AuditAction.DELETE_CATEGORY,
            details_model=CategoryDetails(category_id=category_id, name=name),
        )
        logger.info("Category deleted", extra={"category_id": str(category_id)})
