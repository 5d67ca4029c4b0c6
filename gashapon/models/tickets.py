"""
Ticket model.

A ticket lives in the ``ticket-info`` collection under its code
(``<shopTag>-<suffix>``); the code itself is not part of the document body.
"""
from typing import Optional, Dict, Any
from datetime import datetime
from datamodel import BaseModel, Field


TICKETS_COLLECTION = "ticket-info"


class Ticket(BaseModel):
    """A redemption code issued by a shop."""

    code: Optional[str] = Field(
        required=False,
        label="Code"
    )
    # position inside one query result, not a stable identifier
    id: Optional[int] = Field(
        required=False,
        label="Position"
    )
    created_at: Optional[datetime] = Field(
        required=False,
        default=datetime.now,
        readonly=True
    )
    email: str = Field(
        required=False,
        default="",
        label="Purchaser Email"
    )
    memo: str = Field(
        required=False,
        default="",
        label="Memo"
    )
    order_id: Optional[str] = Field(
        required=False,
        default=None,
        label="Order"
    )
    prize_id: Optional[str] = Field(
        required=False,
        default=None,
        label="Prize"
    )
    redeemed: bool = Field(
        required=False,
        default=False,
        label="Redeemed"
    )
    shipped: bool = Field(
        required=False,
        default=False,
        label="Shipped"
    )

    def to_document(self) -> Dict[str, Any]:
        """Document body as stored."""
        return {
            "created_at": self.created_at,
            "email": self.email,
            "memo": self.memo,
            "order_id": self.order_id,
            "prize_id": self.prize_id,
            "redeemed": self.redeemed,
            "shipped": self.shipped,
        }

    @classmethod
    def from_document(
        cls,
        code: str,
        document: Dict[str, Any],
        position: Optional[int] = None
    ) -> 'Ticket':
        return cls(
            code=code,
            id=position,
            created_at=document.get('created_at'),
            email=document.get('email') or "",
            memo=document.get('memo') or "",
            order_id=document.get('order_id'),
            prize_id=document.get('prize_id'),
            redeemed=bool(document.get('redeemed', False)),
            shipped=bool(document.get('shipped', False))
        )
