"""Booking lifecycle status interpreter.

Single source of truth for booking status / payment status vocabularies,
the legal transition tables, display labels and tones, and the actions each
actor class may take in a given state. Everything here is pure; the
transition authority (``safari_connector.services.transition_authority``)
is the only writer.
"""

from dataclasses import dataclass
from enum import Enum


class BookingStatus(str, Enum):
    PENDING_PAYMENT = "pending_payment"
    PAYMENT_SUBMITTED = "payment_submitted"
    PAYMENT_VERIFIED = "payment_verified"
    CONFIRMED = "confirmed"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class PaymentStatus(str, Enum):
    UNPAID = "unpaid"
    PROOF_SUBMITTED = "proof_submitted"
    DEPOSIT_PAID = "deposit_paid"
    PAID_IN_FULL = "paid_in_full"


class Actor(str, Enum):
    """Actor classes that may act on a booking."""

    TRAVELLER = "traveller"
    OPERATOR = "operator"
    FINANCE = "finance"


class Action(str, Enum):
    SUBMIT_PAYMENT_PROOF = "submit_payment_proof"
    VERIFY_PAYMENT = "verify_payment"
    CONFIRM = "confirm"
    COMPLETE = "complete"
    CANCEL = "cancel"
    SEND_PAYMENT_INSTRUCTIONS = "send_payment_instructions"


INITIAL_STATUS = BookingStatus.PENDING_PAYMENT
INITIAL_PAYMENT_STATUS = PaymentStatus.UNPAID
TERMINAL_STATUSES: frozenset[BookingStatus] = frozenset({BookingStatus.COMPLETED, BookingStatus.CANCELLED})

BOOKING_TRANSITIONS: dict[BookingStatus, frozenset[BookingStatus]] = {
    BookingStatus.PENDING_PAYMENT: frozenset({BookingStatus.PAYMENT_SUBMITTED, BookingStatus.CANCELLED}),
    BookingStatus.PAYMENT_SUBMITTED: frozenset({BookingStatus.PAYMENT_VERIFIED, BookingStatus.CANCELLED}),
    BookingStatus.PAYMENT_VERIFIED: frozenset({BookingStatus.CONFIRMED, BookingStatus.CANCELLED}),
    BookingStatus.CONFIRMED: frozenset({BookingStatus.COMPLETED, BookingStatus.CANCELLED}),
    BookingStatus.COMPLETED: frozenset(),
    BookingStatus.CANCELLED: frozenset(),
}

# Forward-only edges; anything else is a regression needing an admin override.
PAYMENT_TRANSITIONS: dict[PaymentStatus, frozenset[PaymentStatus]] = {
    PaymentStatus.UNPAID: frozenset({PaymentStatus.PROOF_SUBMITTED}),
    PaymentStatus.PROOF_SUBMITTED: frozenset({PaymentStatus.DEPOSIT_PAID, PaymentStatus.PAID_IN_FULL}),
    PaymentStatus.DEPOSIT_PAID: frozenset({PaymentStatus.PAID_IN_FULL}),
    PaymentStatus.PAID_IN_FULL: frozenset(),
}

# Who may drive each non-cancel edge.
EDGE_ACTORS: dict[tuple[BookingStatus, BookingStatus], frozenset[Actor]] = {
    (BookingStatus.PENDING_PAYMENT, BookingStatus.PAYMENT_SUBMITTED): frozenset({Actor.TRAVELLER}),
    (BookingStatus.PAYMENT_SUBMITTED, BookingStatus.PAYMENT_VERIFIED): frozenset({Actor.FINANCE}),
    (BookingStatus.PAYMENT_VERIFIED, BookingStatus.CONFIRMED): frozenset({Actor.OPERATOR}),
    (BookingStatus.CONFIRMED, BookingStatus.COMPLETED): frozenset({Actor.OPERATOR, Actor.FINANCE}),
}

# Travellers lose the cancel action once the operator has confirmed.
TRAVELLER_CANCELLABLE: frozenset[BookingStatus] = frozenset(
    {BookingStatus.PENDING_PAYMENT, BookingStatus.PAYMENT_SUBMITTED, BookingStatus.PAYMENT_VERIFIED}
)

STATUS_LABELS: dict[BookingStatus, str] = {
    BookingStatus.PENDING_PAYMENT: "Pending payment",
    BookingStatus.PAYMENT_SUBMITTED: "Payment submitted",
    BookingStatus.PAYMENT_VERIFIED: "Payment verified",
    BookingStatus.CONFIRMED: "Confirmed",
    BookingStatus.COMPLETED: "Completed",
    BookingStatus.CANCELLED: "Cancelled",
}

STATUS_TONES: dict[BookingStatus, str] = {
    BookingStatus.PENDING_PAYMENT: "warning",
    BookingStatus.PAYMENT_SUBMITTED: "accent",
    BookingStatus.PAYMENT_VERIFIED: "info",
    BookingStatus.CONFIRMED: "success",
    BookingStatus.COMPLETED: "success",
    BookingStatus.CANCELLED: "danger",
}

PAYMENT_LABELS: dict[PaymentStatus, str] = {
    PaymentStatus.UNPAID: "Not paid",
    PaymentStatus.PROOF_SUBMITTED: "Proof submitted",
    PaymentStatus.DEPOSIT_PAID: "Deposit received",
    PaymentStatus.PAID_IN_FULL: "Paid in full",
}

# Raw values written by older clients.
_STATUS_ALIASES: dict[str, BookingStatus] = {
    "": BookingStatus.PENDING_PAYMENT,
    "pending": BookingStatus.PENDING_PAYMENT,
    "awaiting_payment": BookingStatus.PENDING_PAYMENT,
}
_PAYMENT_ALIASES: dict[str, PaymentStatus] = {
    "": PaymentStatus.UNPAID,
    "submitted": PaymentStatus.PROOF_SUBMITTED,
    "deposit": PaymentStatus.DEPOSIT_PAID,
    "paid": PaymentStatus.PAID_IN_FULL,
}


def parse_status(raw: str | BookingStatus | None) -> BookingStatus:
    """Normalise a raw booking status string.

    Raises:
        ValueError: If the value is not a known status or alias.
    """
    if isinstance(raw, BookingStatus):
        return raw
    value = (raw or "").strip().lower()
    if value in _STATUS_ALIASES:
        return _STATUS_ALIASES[value]
    return BookingStatus(value)


def parse_payment_status(raw: str | PaymentStatus | None) -> PaymentStatus:
    """Normalise a raw payment status string.

    Raises:
        ValueError: If the value is not a known payment status or alias.
    """
    if isinstance(raw, PaymentStatus):
        return raw
    value = (raw or "").strip().lower()
    if value in _PAYMENT_ALIASES:
        return _PAYMENT_ALIASES[value]
    return PaymentStatus(value)


def is_terminal(status: BookingStatus) -> bool:
    return status in TERMINAL_STATUSES


def is_valid_transition(source: BookingStatus, target: BookingStatus) -> bool:
    """True if ``source -> target`` is an edge of the booking table."""
    return target in BOOKING_TRANSITIONS[source]


def is_forward_payment_change(source: PaymentStatus, target: PaymentStatus) -> bool:
    """True if the payment status change needs no administrative override."""
    return source == target or target in PAYMENT_TRANSITIONS[source]


def actors_for_edge(source: BookingStatus, target: BookingStatus) -> frozenset[Actor]:
    """Actor classes allowed to drive a valid edge."""
    if target is BookingStatus.CANCELLED:
        if source in TRAVELLER_CANCELLABLE:
            return frozenset(Actor)
        return frozenset({Actor.OPERATOR, Actor.FINANCE})
    return EDGE_ACTORS.get((source, target), frozenset())


def permitted_actions(status: BookingStatus, actor: Actor) -> frozenset[Action]:
    """Actions the actor class may take while the booking is in ``status``."""
    if is_terminal(status):
        return frozenset()

    actions: set[Action] = set()
    if actor in actors_for_edge(status, BookingStatus.CANCELLED):
        actions.add(Action.CANCEL)

    if actor is Actor.TRAVELLER and status is BookingStatus.PENDING_PAYMENT:
        actions.add(Action.SUBMIT_PAYMENT_PROOF)
    elif actor is Actor.OPERATOR:
        actions.add(Action.SEND_PAYMENT_INSTRUCTIONS)
        if status is BookingStatus.PAYMENT_VERIFIED:
            actions.add(Action.CONFIRM)
        if status is BookingStatus.CONFIRMED:
            actions.add(Action.COMPLETE)
    elif actor is Actor.FINANCE:
        if status is BookingStatus.PAYMENT_SUBMITTED:
            actions.add(Action.VERIFY_PAYMENT)
        if status is BookingStatus.CONFIRMED:
            actions.add(Action.COMPLETE)
    return frozenset(actions)


@dataclass(frozen=True)
class StatusView:
    """Display-ready interpretation of a booking's two status fields."""

    status: BookingStatus
    payment_status: PaymentStatus
    label: str
    payment_label: str
    tone: str
    is_terminal: bool
    actions: dict[Actor, frozenset[Action]]

    def as_dict(self) -> dict:
        return {
            "status": self.status.value,
            "payment_status": self.payment_status.value,
            "label": self.label,
            "payment_label": self.payment_label,
            "tone": self.tone,
            "is_terminal": self.is_terminal,
            "actions": {actor.value: sorted(a.value for a in acts) for actor, acts in self.actions.items()},
        }


def describe(status: str | BookingStatus | None, payment_status: str | PaymentStatus | None) -> StatusView:
    """Interpret raw ``status`` / ``payment_status`` values for display."""
    booking_status = parse_status(status)
    pay_status = parse_payment_status(payment_status)
    return StatusView(
        status=booking_status,
        payment_status=pay_status,
        label=STATUS_LABELS[booking_status],
        payment_label=PAYMENT_LABELS[pay_status],
        tone=STATUS_TONES[booking_status],
        is_terminal=is_terminal(booking_status),
        actions={actor: permitted_actions(booking_status, actor) for actor in Actor},
    )
