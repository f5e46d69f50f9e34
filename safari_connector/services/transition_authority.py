"""Transition authority: the only code path that writes booking status fields.

Every change goes through :func:`plan_transition` (validate against a snapshot)
and :func:`apply_transition` (compare-and-set on the expected current values).
Named operations (submit proof, verify, confirm, complete, cancel) add the
per-action preconditions on top and are what the routers call.
"""

import logging
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from safari_connector.database import utcnow
from safari_connector.errors import Conflict, InvalidTransition, NotFound, PreconditionFailed
from safari_connector.lifecycle.status import (
    Action,
    Actor,
    BookingStatus,
    PaymentStatus,
    actors_for_edge,
    is_forward_payment_change,
    is_valid_transition,
    parse_payment_status,
    parse_status,
    permitted_actions,
)
from safari_connector.models.booking import Booking, BookingEvent
from safari_connector.models.operator import Operator
from safari_connector.models.payment import Payment
from safari_connector.models.user import User
from safari_connector.services.messaging import append_message
from safari_connector.services.notifications import notify_counterparty

logger = logging.getLogger(__name__)

TransitionHook = Callable[[AsyncSession, Booking, BookingStatus, str | None], Awaitable[None]]

# Called in order after every applied status change.
TRANSITION_HOOKS: list[TransitionHook] = [notify_counterparty]

# Which actor classes may ever take a named action.
ACTION_ACTORS: dict[Action, frozenset[Actor]] = {
    Action.SUBMIT_PAYMENT_PROOF: frozenset({Actor.TRAVELLER}),
    Action.VERIFY_PAYMENT: frozenset({Actor.FINANCE}),
    Action.CONFIRM: frozenset({Actor.OPERATOR}),
    Action.COMPLETE: frozenset({Actor.OPERATOR, Actor.FINANCE}),
    Action.CANCEL: frozenset(Actor),
    Action.SEND_PAYMENT_INSTRUCTIONS: frozenset({Actor.OPERATOR}),
}

# Reason shown when the action is refused because of the booking's state.
ACTION_REFUSALS: dict[Action, str] = {
    Action.SUBMIT_PAYMENT_PROOF: "Payment proof can only be submitted while the booking is pending payment",
    Action.VERIFY_PAYMENT: "Only bookings with submitted payment proof can be verified",
    Action.CONFIRM: "Payment is not verified yet. Finance must verify the payment before confirmation",
    Action.COMPLETE: "Only confirmed bookings can be completed",
    Action.CANCEL: "This booking can no longer be cancelled by you",
    Action.SEND_PAYMENT_INSTRUCTIONS: "Payment instructions cannot be sent for a closed booking",
}


def register_transition_hook(hook: TransitionHook) -> TransitionHook:
    """Add a hook run after each applied transition. Usable as a decorator."""
    if hook not in TRANSITION_HOOKS:
        TRANSITION_HOOKS.append(hook)
    return hook


# ---------------------------------------------------------------------------
# Actors and plans
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ActorContext:
    """Who is acting: the user, their actor class, and their operator profile."""

    user_id: uuid.UUID
    actor: Actor
    operator_id: uuid.UUID | None = None

    @classmethod
    def for_user(cls, user: User, operator: Operator | None = None) -> "ActorContext":
        if user.is_back_office:
            return cls(user_id=user.id, actor=Actor.FINANCE)
        if user.role == "operator":
            return cls(user_id=user.id, actor=Actor.OPERATOR, operator_id=operator.id if operator else None)
        return cls(user_id=user.id, actor=Actor.TRAVELLER)


@dataclass(frozen=True)
class TransitionPlan:
    """A validated change, applied only if the row still holds the expected values."""

    booking_id: uuid.UUID
    actor: ActorContext
    source: BookingStatus
    target: BookingStatus
    payment_source: PaymentStatus
    payment_target: PaymentStatus
    expected_status: str
    expected_payment_status: str
    note: str | None = None
    values: dict[str, Any] = field(default_factory=dict)

    @property
    def changes_payment(self) -> bool:
        return self.payment_source != self.payment_target


async def get_booking(db: AsyncSession, booking_id: uuid.UUID) -> Booking:
    """Load a booking or raise NotFound."""
    result = await db.execute(select(Booking).where(Booking.id == booking_id))
    booking = result.scalar_one_or_none()
    if booking is None:
        raise NotFound("Booking not found")
    return booking


def ensure_party(booking: Booking, actor: ActorContext) -> None:
    """Travellers and operators may only act on their own bookings."""
    if actor.actor is Actor.TRAVELLER and booking.traveller_id != actor.user_id:
        raise PreconditionFailed("You are not the traveller on this booking", forbidden=True)
    if actor.actor is Actor.OPERATOR and (actor.operator_id is None or booking.operator_id != actor.operator_id):
        raise PreconditionFailed("This booking belongs to another operator", forbidden=True)


def _parse_target(source: BookingStatus, requested: str | BookingStatus) -> BookingStatus:
    try:
        return parse_status(requested)
    except ValueError:
        raise InvalidTransition(source.value, str(requested)) from None


def build_plan(
    booking: Booking,
    actor: ActorContext,
    requested_status: str | BookingStatus,
    *,
    payment_status: str | PaymentStatus | None = None,
    note: str | None = None,
    values: dict[str, Any] | None = None,
) -> TransitionPlan | None:
    """Validate a requested change against a loaded booking.

    Returns ``None`` when the booking is already in the requested state.

    Raises:
        PreconditionFailed: Actor is not a party, or not allowed on this edge.
        InvalidTransition: Edge not in the table, or the payment status would regress.
    """
    ensure_party(booking, actor)

    source = parse_status(booking.status)
    target = _parse_target(source, requested_status)
    payment_source = parse_payment_status(booking.payment_status)
    if payment_status is None:
        payment_target = payment_source
    else:
        try:
            payment_target = parse_payment_status(payment_status)
        except ValueError:
            raise InvalidTransition(payment_source.value, str(payment_status), field="payment_status") from None

    if source == target:
        return None

    if not is_valid_transition(source, target):
        raise InvalidTransition(source.value, target.value)

    if actor.actor not in actors_for_edge(source, target):
        raise PreconditionFailed(
            f"A {actor.actor.value} cannot move a booking from {source.value} to {target.value}"
        )

    if not is_forward_payment_change(payment_source, payment_target):
        raise InvalidTransition(payment_source.value, payment_target.value, field="payment_status")

    return TransitionPlan(
        booking_id=booking.id,
        actor=actor,
        source=source,
        target=target,
        payment_source=payment_source,
        payment_target=payment_target,
        expected_status=booking.status,
        expected_payment_status=booking.payment_status,
        note=note,
        values=dict(values or {}),
    )


async def plan_transition(
    db: AsyncSession,
    booking_id: uuid.UUID,
    actor: ActorContext,
    requested_status: str | BookingStatus,
    *,
    payment_status: str | PaymentStatus | None = None,
    note: str | None = None,
) -> TransitionPlan | None:
    """Load the booking and validate the requested change (no writes)."""
    booking = await get_booking(db, booking_id)
    return build_plan(booking, actor, requested_status, payment_status=payment_status, note=note)


def _event(
    booking_id: uuid.UUID,
    actor: ActorContext,
    field_name: str,
    from_value: str,
    to_value: str,
    note: str | None = None,
    is_override: bool = False,
) -> BookingEvent:
    return BookingEvent(
        booking_id=booking_id,
        actor_id=actor.user_id,
        actor_role=actor.actor.value,
        field=field_name,
        from_value=from_value,
        to_value=to_value,
        note=note,
        is_override=is_override,
    )


async def apply_transition(db: AsyncSession, plan: TransitionPlan) -> Booking:
    """Write a planned change if the row still holds the planned source values.

    Raises:
        Conflict: Another transition changed the booking after it was planned.
    """
    values: dict[str, Any] = {"status": plan.target.value, **plan.values}
    if plan.changes_payment:
        values["payment_status"] = plan.payment_target.value

    stmt = (
        update(Booking)
        .where(
            Booking.id == plan.booking_id,
            Booking.status == plan.expected_status,
            Booking.payment_status == plan.expected_payment_status,
        )
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    result = await db.execute(stmt)
    if result.rowcount != 1:
        logger.info(
            "Transition %s -> %s on booking %s lost a race",
            plan.source.value,
            plan.target.value,
            plan.booking_id,
        )
        raise Conflict("The booking was changed by someone else. Reload it and try again")

    db.add(_event(plan.booking_id, plan.actor, "status", plan.expected_status, plan.target.value, plan.note))
    if plan.changes_payment:
        db.add(
            _event(
                plan.booking_id,
                plan.actor,
                "payment_status",
                plan.expected_payment_status,
                plan.payment_target.value,
                plan.note,
            )
        )
    await db.flush()

    booking = await get_booking(db, plan.booking_id)
    await db.refresh(booking)

    logger.info(
        "Booking %s: %s -> %s (payment %s) by %s %s",
        booking.id,
        plan.source.value,
        plan.target.value,
        booking.payment_status,
        plan.actor.actor.value,
        plan.actor.user_id,
    )

    for hook in TRANSITION_HOOKS:
        await hook(db, booking, plan.target, plan.note)

    return booking


async def attempt_transition(
    db: AsyncSession,
    booking_id: uuid.UUID,
    actor: ActorContext,
    requested_status: str | BookingStatus,
    *,
    payment_status: str | PaymentStatus | None = None,
    note: str | None = None,
) -> Booking:
    """Plan and apply in one step. Returns the booking unchanged for a no-op.

    The two payment edges carry side effects (the payment proof row, its
    verification), so they are handed to :func:`submit_payment_proof` and
    :func:`verify_payment` once the edge itself is known to be valid.
    """
    booking = await get_booking(db, booking_id)
    ensure_party(booking, actor)
    source = parse_status(booking.status)
    target = _parse_target(source, requested_status)
    if source != target and not is_valid_transition(source, target):
        raise InvalidTransition(source.value, target.value)

    if source != target and target is BookingStatus.PAYMENT_SUBMITTED:
        if payment_status is not None and payment_status != PaymentStatus.PROOF_SUBMITTED:
            requested = getattr(payment_status, "value", payment_status)
            current = parse_payment_status(booking.payment_status).value
            raise InvalidTransition(current, requested, field="payment_status")
        return await submit_payment_proof(db, booking_id, actor, note=note)

    if source != target and target is BookingStatus.PAYMENT_VERIFIED:
        if payment_status == booking.payment_status:
            payment_status = None
        return await verify_payment(db, booking_id, actor, paid_status=payment_status, note=note)

    plan = build_plan(booking, actor, requested_status, payment_status=payment_status, note=note)
    if plan is None:
        return booking
    return await apply_transition(db, plan)


# ---------------------------------------------------------------------------
# Named operations
# ---------------------------------------------------------------------------


async def _perform(
    db: AsyncSession,
    booking_id: uuid.UUID,
    actor: ActorContext,
    action: Action,
    target: BookingStatus,
    *,
    payment_status: PaymentStatus | None = None,
    note: str | None = None,
    values: dict[str, Any] | None = None,
) -> tuple[Booking, bool]:
    """Run a named action. Returns the booking and whether anything changed."""
    booking = await get_booking(db, booking_id)
    ensure_party(booking, actor)

    if actor.actor not in ACTION_ACTORS[action]:
        raise PreconditionFailed(
            f"A {actor.actor.value} cannot {action.value.replace('_', ' ')}",
            forbidden=True,
        )

    current = parse_status(booking.status)
    if current == target:
        return booking, False

    # Confirm keeps its precondition reason in every other state.
    if action is not Action.CONFIRM and not is_valid_transition(current, target):
        raise InvalidTransition(current.value, target.value)

    if action not in permitted_actions(current, actor.actor):
        raise PreconditionFailed(ACTION_REFUSALS[action])

    plan = build_plan(booking, actor, target, payment_status=payment_status, note=note, values=values)
    if plan is None:
        return booking, False
    return await apply_transition(db, plan), True


async def submit_payment_proof(
    db: AsyncSession,
    booking_id: uuid.UUID,
    actor: ActorContext,
    *,
    reference: str | None = None,
    proof_url: str | None = None,
    note: str | None = None,
    method: str = "bank_transfer",
    amount: Decimal | None = None,
) -> Booking:
    """Traveller submits payment proof: pending_payment -> payment_submitted."""
    booking = await get_booking(db, booking_id)
    meta = dict(booking.meta or {})
    meta["payment_proof"] = {
        "method": method,
        "reference": reference,
        "proof_url": proof_url,
        "note": note,
        "submitted_at": utcnow().isoformat(),
    }

    booking, changed = await _perform(
        db,
        booking_id,
        actor,
        Action.SUBMIT_PAYMENT_PROOF,
        BookingStatus.PAYMENT_SUBMITTED,
        payment_status=PaymentStatus.PROOF_SUBMITTED,
        note=note,
        values={"payment_reference": reference, "meta": meta},
    )
    if not changed:
        return booking

    db.add(
        Payment(
            booking_id=booking.id,
            method=method,
            amount=amount if amount is not None else booking.total_amount,
            currency=booking.currency,
            reference=reference,
            proof_url=proof_url,
            note=note,
        )
    )
    await db.flush()
    return booking


async def verify_payment(
    db: AsyncSession,
    booking_id: uuid.UUID,
    actor: ActorContext,
    *,
    paid_status: str | PaymentStatus | None = None,
    note: str | None = None,
) -> Booking:
    """Finance verifies a submitted payment: payment_submitted -> payment_verified.

    ``paid_status`` (``deposit_paid`` or ``paid_in_full``) optionally records
    how much was received; without it the payment status is left as is.
    """
    payment_target: PaymentStatus | None = None
    if paid_status is not None:
        try:
            payment_target = parse_payment_status(paid_status)
        except ValueError:
            payment_target = None
        if payment_target not in (PaymentStatus.DEPOSIT_PAID, PaymentStatus.PAID_IN_FULL):
            raise InvalidTransition(
                PaymentStatus.PROOF_SUBMITTED.value, getattr(paid_status, "value", paid_status), field="payment_status"
            )

    booking, changed = await _perform(
        db,
        booking_id,
        actor,
        Action.VERIFY_PAYMENT,
        BookingStatus.PAYMENT_VERIFIED,
        payment_status=payment_target,
        note=note,
    )
    if not changed:
        return booking

    result = await db.execute(
        select(Payment).where(Payment.booking_id == booking.id, Payment.status == "submitted")
    )
    verified_at: datetime = utcnow()
    for payment in result.scalars().all():
        payment.status = "verified"
        payment.verified_by = actor.user_id
        payment.verified_at = verified_at
    await db.flush()
    return booking


async def confirm_booking(db: AsyncSession, booking_id: uuid.UUID, actor: ActorContext) -> Booking:
    """Operator confirms a booking whose payment finance has verified."""
    booking, _ = await _perform(db, booking_id, actor, Action.CONFIRM, BookingStatus.CONFIRMED)
    return booking


async def complete_booking(db: AsyncSession, booking_id: uuid.UUID, actor: ActorContext) -> Booking:
    """Mark a confirmed booking as completed."""
    booking, _ = await _perform(db, booking_id, actor, Action.COMPLETE, BookingStatus.COMPLETED)
    return booking


async def cancel_booking(
    db: AsyncSession,
    booking_id: uuid.UUID,
    actor: ActorContext,
    reason: str | None = None,
) -> Booking:
    """Cancel a non-terminal booking. Travellers lose this right after confirmation."""
    booking, _ = await _perform(db, booking_id, actor, Action.CANCEL, BookingStatus.CANCELLED, note=reason)
    return booking


async def send_payment_instructions(
    db: AsyncSession,
    booking_id: uuid.UUID,
    actor: ActorContext,
    body: str,
) -> Booking:
    """Operator posts payment instructions into the booking's enquiry chat."""
    booking = await get_booking(db, booking_id)
    ensure_party(booking, actor)
    if actor.actor not in ACTION_ACTORS[Action.SEND_PAYMENT_INSTRUCTIONS]:
        raise PreconditionFailed("Only the booking's operator can send payment instructions", forbidden=True)
    if Action.SEND_PAYMENT_INSTRUCTIONS not in permitted_actions(parse_status(booking.status), actor.actor):
        raise PreconditionFailed(ACTION_REFUSALS[Action.SEND_PAYMENT_INSTRUCTIONS])
    if booking.quote_request_id is None:
        raise PreconditionFailed("This booking has no enquiry conversation to post to")

    await append_message(db, booking.quote_request_id, "operator", body, sender_id=actor.user_id)
    logger.info("Operator %s sent payment instructions for booking %s", actor.operator_id, booking.id)
    return booking


async def override_payment_status(
    db: AsyncSession,
    booking_id: uuid.UUID,
    actor: ActorContext,
    payment_status: str | PaymentStatus,
    reason: str,
) -> Booking:
    """Administrative override of the payment status, regressions included.

    Leaves an ``is_override`` event so the change is always explained.
    """
    if actor.actor is not Actor.FINANCE:
        raise PreconditionFailed("Only finance or admin users can override a payment status", forbidden=True)
    if not reason or not reason.strip():
        raise PreconditionFailed("An override needs a reason")

    booking = await get_booking(db, booking_id)
    if parse_status(booking.status) is BookingStatus.CANCELLED:
        raise PreconditionFailed("Cannot change the payment status of a cancelled booking")

    source = parse_payment_status(booking.payment_status)
    try:
        target = parse_payment_status(payment_status)
    except ValueError:
        raise InvalidTransition(source.value, str(payment_status), field="payment_status") from None
    if source == target:
        return booking

    expected = booking.payment_status
    result = await db.execute(
        update(Booking)
        .where(Booking.id == booking.id, Booking.payment_status == expected)
        .values(payment_status=target.value)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise Conflict("The booking was changed by someone else. Reload it and try again")

    db.add(_event(booking.id, actor, "payment_status", expected, target.value, reason.strip(), is_override=True))
    await db.flush()
    await db.refresh(booking)

    logger.warning(
        "Payment status override on booking %s: %s -> %s by %s (%s)",
        booking.id,
        expected,
        target.value,
        actor.user_id,
        reason,
    )
    return booking


async def list_events(db: AsyncSession, booking_id: uuid.UUID) -> list[BookingEvent]:
    """Audit trail of a booking, oldest first."""
    result = await db.execute(
        select(BookingEvent).where(BookingEvent.booking_id == booking_id).order_by(BookingEvent.created_at.asc())
    )
    return list(result.scalars().all())
