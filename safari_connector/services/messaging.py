"""Enquiry chat persistence: append and list messages on a quote request."""

import logging
import uuid

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from safari_connector.models.enquiry import MESSAGE_SENDER_ROLES, Message

logger = logging.getLogger(__name__)


async def append_message(
    db: AsyncSession,
    quote_request_id: uuid.UUID,
    sender_role: str,
    body: str,
    sender_id: uuid.UUID | None = None,
) -> Message:
    """Append one immutable message to an enquiry thread."""
    if sender_role not in MESSAGE_SENDER_ROLES:
        raise ValueError(f"Unknown sender role: {sender_role}")

    message = Message(
        quote_request_id=quote_request_id,
        sender_role=sender_role,
        sender_id=sender_id,
        body=body.strip(),
    )
    db.add(message)
    await db.flush()
    logger.debug("Message %s appended to enquiry %s by %s", message.id, quote_request_id, sender_role)
    return message


async def list_messages(
    db: AsyncSession,
    quote_request_id: uuid.UUID,
    limit: int = 200,
    offset: int = 0,
) -> list[Message]:
    """Messages of an enquiry, oldest first."""
    stmt = (
        select(Message)
        .where(Message.quote_request_id == quote_request_id)
        .order_by(Message.created_at.asc())
        .limit(limit)
        .offset(offset)
    )
    result = await db.execute(stmt)
    return list(result.scalars().all())
