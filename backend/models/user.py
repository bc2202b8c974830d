from pydantic import BaseModel
from typing import Optional
from enum import Enum


class EntrepreneurStatus(str, Enum):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"


class EntrepreneurDecision(BaseModel):
    status: EntrepreneurStatus
    comment: Optional[str] = None


class BlockedUpdate(BaseModel):
    blocked: bool
    reason: Optional[str] = None
