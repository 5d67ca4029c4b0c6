"""Gashapon Models Package."""
from .user import UserAccount, USERS_COLLECTION
from .tickets import Ticket, TICKETS_COLLECTION
from .prizes import (
    Prize,
    PrizeMetadata,
    PrizeInfo,
    PRIZES_COLLECTION,
    PRIZE_INFO_COLLECTION
)

__all__ = (
    'UserAccount',
    'Ticket',
    'Prize',
    'PrizeMetadata',
    'PrizeInfo',
    'USERS_COLLECTION',
    'TICKETS_COLLECTION',
    'PRIZES_COLLECTION',
    'PRIZE_INFO_COLLECTION',
)
