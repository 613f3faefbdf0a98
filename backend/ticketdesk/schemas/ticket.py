from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class TicketStatus(str, Enum):
    incomplete = "incomplete"
    completed = "completed"


class TicketCreate(BaseModel):
    """Body of POST /tickets. Unknown keys (including status) are dropped."""

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=False)

    fullname: str = Field(..., min_length=1)
    telephone: str = Field(..., min_length=5)
    brand: str = Field(..., min_length=1)
    comment: str = Field(..., min_length=1)


class TicketStatusUpdate(BaseModel):
    status: Optional[TicketStatus] = None


class TicketOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    fullname: str
    telephone: str
    brand: str
    status: TicketStatus
    comment: str


class TicketStats(BaseModel):
    total: int
    completed: int
    incomplete: int
