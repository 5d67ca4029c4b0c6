"""Account bootstrap: a user document with a default shop tag on first login."""
from typing import Dict, Any

from navconfig.logging import logging
from pydantic import ValidationError

from ..exceptions import OutOfRange
from ..keys import shop_tag_from_email
from ..models import UserAccount, USERS_COLLECTION
from ..store import DocumentStore


logger = logging.getLogger('Gashapon.Accounts')


async def ensure_account(store: DocumentStore, uid: str, email: str) -> Dict[str, Any]:
    """
    Create the user document unless it exists.

    Returns:
        ``{"created": bool, "shop_tag": str}``; repeated calls are no-ops.
    """
    document = await store.get(USERS_COLLECTION, uid)
    if document is not None:
        return {"created": False, "shop_tag": document.get('shop_tag')}
    shop_tag = shop_tag_from_email(email or "")
    if not shop_tag:
        raise OutOfRange(f"Cannot derive a shop tag from email {email!r}")
    try:
        account = UserAccount(
            uid=uid,
            email=email,
            shop_tag=shop_tag,
            created_at=await store.now()
        )
    except ValidationError as err:
        raise OutOfRange(f"Invalid account data for user {uid}: {err}") from err
    # create-if-absent: two concurrent first logins write one document
    created = await store.create(USERS_COLLECTION, uid, account.to_document())
    if not created:
        document = await store.get(USERS_COLLECTION, uid) or {}
        return {"created": False, "shop_tag": document.get('shop_tag')}
    logger.info(f"Account created for user {uid} with shop tag {account.shop_tag!r}")
    return {"created": True, "shop_tag": account.shop_tag}
