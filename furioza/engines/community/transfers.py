"""
Squad transfer announcements.
"""

import uuid
from datetime import date
from typing import List, Optional, Union

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from furioza.kernel.audit.audit_log import AuditLog
from furioza.kernel.audit.details import TransferDetails
from furioza.kernel.errors import InvalidState, NotFound, ValidationError
from furioza.kernel.identity.actor import Actor
from furioza.kernel.models.audit_log import AuditAction
from furioza.kernel.models.permission import PermissionKey
from furioza.kernel.models.transfer import Transfer, TransferType
from furioza.kernel.permissions.permission_service import AuthorizationService
from furioza.logging_config import get_logger

logger = get_logger(__name__)

MIN_AGE = 1
MAX_AGE = 99


def parse_age(value: Union[int, str]) -> int:
    """Age as an integer in 1..99; text input must be all digits."""
    if isinstance(value, bool):
        raise ValidationError("Age must be a whole number", field="age")
    if isinstance(value, str):
        value = value.strip()
        if not (value.isascii() and value.isdigit()):
            raise ValidationError("Age must be a whole number", field="age")
        value = int(value)
    if not isinstance(value, int):
        raise ValidationError("Age must be a whole number", field="age")
    if not MIN_AGE <= value <= MAX_AGE:
        raise ValidationError(f"Age must be between {MIN_AGE} and {MAX_AGE}", field="age")
    return value


def parse_transfer_type(value: Union[TransferType, str]) -> TransferType:
    try:
        return TransferType(value)
    except ValueError:
        raise ValidationError(f"Unknown transfer type: {value!r}", field="transfer_type") from None


class TransferService:
    """Service for transfer announcements."""

    def __init__(self, session: AsyncSession, authorization: Optional[AuthorizationService] = None):
        self.session = session
        self.authorization = authorization or AuthorizationService(session)
        self.audit_log = AuditLog(session)

    async def list_transfers(self, transfer_type: Optional[Union[TransferType, str]] = None) -> List[Transfer]:
        """Transfers, newest first, optionally of one direction."""
        query = select(Transfer).order_by(Transfer.created_at.desc())
        if transfer_type is not None:
            query = query.where(Transfer.transfer_type == parse_transfer_type(transfer_type).value)
        result = await self.session.execute(query)
        return list(result.scalars().all())

    async def create_transfer(
        self,
        actor: Actor,
        first_name: str,
        last_name: str,
        age: Union[int, str],
        position: str,
        transfer_type: Union[TransferType, str] = TransferType.IN,
        description: Optional[str] = None,
        transfer_date: Optional[date] = None,
    ) -> Transfer:
        """
        Announce a transfer.

        Raises:
            PermissionDenied: If the actor lacks manage_transfers
            ValidationError: Missing names/position, bad age or type
        """
        fresh = await self.authorization.authorize(actor, PermissionKey.MANAGE_TRANSFERS)

        first_name = (first_name or "").strip()
        last_name = (last_name or "").strip()
        position = (position or "").strip()
        if not first_name:
            raise ValidationError("First name is required", field="first_name")
        if not last_name:
            raise ValidationError("Last name is required", field="last_name")
        if not position:
            raise ValidationError("Position is required", field="position")

        transfer = Transfer(
            first_name=first_name,
            last_name=last_name,
            age=parse_age(age),
            position=position,
            transfer_type=parse_transfer_type(transfer_type).value,
            description=(description or "").strip() or None,
            transfer_date=transfer_date,
            created_by=fresh.id,
        )
        self.session.add(transfer)
        await self.session.flush()

        await self.audit_log.record_from_model(
            admin_id=fresh.id,
            action=AuditAction.CREATE_TRANSFER,
            details_model=TransferDetails(
                transfer_id=transfer.id,
                name=transfer.full_name,
                transfer_type=transfer.transfer_type,
            ),
        )
        logger.info("Transfer created", extra={"transfer_id": str(transfer.id)})
        return transfer

    async def delete_transfer(self, actor: Actor, transfer_id: uuid.UUID) -> None:
        """
        Remove a transfer announcement.

        Raises:
            PermissionDenied: If the actor lacks manage_transfers
            NotFound: If the transfer does not exist
        """
        fresh = await self.authorization.authorize(actor, PermissionKey.MANAGE_TRANSFERS)
        transfer = await self.session.get(Transfer, transfer_id)
        if transfer is None:
            raise NotFound("Transfer", transfer_id)
        details = TransferDetails(
            transfer_id=transfer.id,
            name=transfer.full_name,
            transfer_type=transfer.transfer_type,
        )

        result = await self.session.execute(delete(Transfer).where(Transfer.id == transfer_id))
        if result.rowcount == 0:
            raise InvalidState("Transfer was already deleted")

        await self.audit_log.record_from_model(
            admin_id=fresh.id,
            action=AuditAction.DELETE_TRANSFER,
            details_model=details,
        )
