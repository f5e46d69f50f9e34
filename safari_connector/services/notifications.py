"""Transition notifications: post a system message to the booking's enquiry chat."""

import logging

from sqlalchemy.ext.asyncio import AsyncSession

from safari_connector.lifecycle.status import BookingStatus, describe
from safari_connector.models.booking import Booking
from safari_connector.services.messaging import append_message

logger = logging.getLogger(__name__)

TEMPLATES: dict[BookingStatus, str] = {
    BookingStatus.PAYMENT_SUBMITTED: (
        "Payment proof submitted for booking {ref}. "
        "Safari Connector finance will verify it shortly."
    ),
    BookingStatus.PAYMENT_VERIFIED: (
        "Payment for booking {ref} has been verified ({payment_label}). "
        "The operator can now confirm the booking."
    ),
    BookingStatus.CONFIRMED: (
        "Booking confirmed. Reference: {ref}. Amount: {currency} {amount}. "
        "We will share final travel details shortly."
    ),
    BookingStatus.COMPLETED: "Booking {ref} is marked as completed. Thank you for travelling with us!",
    BookingStatus.CANCELLED: "Booking {ref} has been cancelled.{reason}",
}


def booking_reference(booking: Booking) -> str:
    """Short human reference shown to travellers and operators."""
    return str(booking.id)[:8].upper()


def render_notification(booking: Booking, target: BookingStatus, note: str | None = None) -> str | None:
    """Render the chat text for a booking that just entered ``target``."""
    template = TEMPLATES.get(target)
    if template is None:
        return None
    view = describe(booking.status, booking.payment_status)
    return template.format(
        ref=booking_reference(booking),
        payment_label=view.payment_label.lower(),
        currency=booking.currency,
        amount=booking.total_amount,
        reason=f" Reason: {note}" if note else "",
    )


async def notify_counterparty(
    db: AsyncSession,
    booking: Booking,
    target: BookingStatus,
    note: str | None = None,
) -> None:
    """Transition hook: append a system message visible to both parties."""
    if booking.quote_request_id is None:
        logger.debug("Booking %s has no enquiry thread; skipping notification", booking.id)
        return

    text = render_notification(booking, target, note)
    if text is None:
        return

    await append_message(db, booking.quote_request_id, "system", text)
    logger.info("Posted %s notification for booking %s", target.value, booking.id)
