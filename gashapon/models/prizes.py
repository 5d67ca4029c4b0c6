"""
Prize models.

A prize is split in two documents sharing one key: owner-only
metadata in ``prizes`` and public display fields in ``prize-info``.
"""
from typing import Optional, Dict, Any
from datetime import datetime
from datamodel import BaseModel, Field


PRIZES_COLLECTION = "prizes"
PRIZE_INFO_COLLECTION = "prize-info"


class PrizeMetadata(BaseModel):
    """Access-controlled half of a prize."""

    creator_user_id: str = Field(
        required=True,
        label="Creator"
    )
    quantity: int = Field(
        required=False,
        default=0,
        label="Quantity"
    )
    created_at: datetime = Field(
        required=False,
        default=datetime.now,
        readonly=True
    )

    def to_document(self) -> Dict[str, Any]:
        return {
            "creator_user_id": self.creator_user_id,
            "quantity": self.quantity,
            "created_at": self.created_at,
        }


class PrizeInfo(BaseModel):
    """Public display half of a prize."""

    name: str = Field(
        required=True,
        max_length=255,
        label="Prize Name"
    )
    description: Optional[str] = Field(
        required=False,
        default="",
        ui_widget="textarea",
        label="Description"
    )
    image: Optional[str] = Field(
        required=False,
        ui_widget="ImageUploader",
        label="Image URL"
    )
    last_modified: datetime = Field(
        required=False,
        default=datetime.now
    )

    def to_document(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "image": self.image,
            "last_modified": self.last_modified,
        }


class Prize(BaseModel):
    """Joined view of both prize documents, as listed to the shop owner."""

    prize_id: str = Field(
        required=True,
        label="Prize ID"
    )
    id: Optional[int] = Field(
        required=False,
        label="Position"
    )
    name: str = Field(required=False, default="")
    description: Optional[str] = Field(required=False, default="")
    image: Optional[str] = Field(required=False)
    last_modified: Optional[datetime] = Field(required=False)
    creator_user_id: Optional[str] = Field(required=False)
    quantity: int = Field(required=False, default=0)
    created_at: Optional[datetime] = Field(required=False)

    @classmethod
    def join(
        cls,
        prize_id: str,
        metadata: Dict[str, Any],
        info: Dict[str, Any],
        position: Optional[int] = None
    ) -> 'Prize':
        return cls(
            prize_id=prize_id,
            id=position,
            name=info.get('name') or "",
            description=info.get('description') or "",
            image=info.get('image'),
            last_modified=info.get('last_modified'),
            creator_user_id=metadata.get('creator_user_id'),
            quantity=int(metadata.get('quantity') or 0),
            created_at=metadata.get('created_at')
        )
