"""
Transfer schemas.
"""

import uuid
from datetime import date, datetime
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

from furioza.kernel.models.transfer import TransferType
from furioza.schemas.common import enum_value


class TransferCreate(BaseModel):
    """Transfer announcement request. Age accepts digits as text too."""

    first_name: str = Field(..., min_length=1, max_length=100)
    last_name: str = Field(..., min_length=1, max_length=100)
    age: Union[int, str]
    position: str = Field(..., min_length=1, max_length=100)
    transfer_type: TransferType = TransferType.IN
    description: Optional[str] = None
    transfer_date: Optional[date] = None


class TransferResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    first_name: str
    last_name: str
    age: int
    position: str
    transfer_type: str
    description: Optional[str] = None
    transfer_date: Optional[date] = None
    created_by: Optional[uuid.UUID] = None
    created_at: datetime

    @field_validator("transfer_type", mode="before")
    @classmethod
    def plain_type(cls, value):
        return enum_value(value)
