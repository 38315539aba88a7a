"""
Transfer announcement endpoints.
"""

import uuid
from typing import List, Optional

from fastapi import APIRouter, Query, Response, status

from furioza.api.deps import CurrentActor, DbSession
from furioza.engines.community.transfers import TransferService
from furioza.kernel.models.transfer import TransferType
from furioza.schemas.transfer import TransferCreate, TransferResponse

router = APIRouter()


@router.get("", response_model=List[TransferResponse])
async def list_transfers(
    db: DbSession,
    transfer_type: Optional[TransferType] = Query(None, description="Filter by direction"),
):
    transfers = await TransferService(db).list_transfers(transfer_type)
    return [TransferResponse.model_validate(t) for t in transfers]


@router.post("", response_model=TransferResponse, status_code=status.HTTP_201_CREATED)
async def create_transfer(data: TransferCreate, actor: CurrentActor, db: DbSession):
    transfer = await TransferService(db).create_transfer(
        actor,
        first_name=data.first_name,
        last_name=data.last_name,
        age=data.age,
        position=data.position,
        transfer_type=data.transfer_type,
        description=data.description,
        transfer_date=data.transfer_date,
    )
    return TransferResponse.model_validate(transfer)


@router.delete("/{transfer_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_transfer(transfer_id: uuid.UUID, actor: CurrentActor, db: DbSession):
    await TransferService(db).delete_transfer(actor, transfer_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
