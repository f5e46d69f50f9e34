"""SQLAlchemy models for Safari Connector.

All models are imported here so that Alembic's autogenerate can discover
them via Base.metadata. If you add a new model, import it in this file.
"""

from safari_connector.models.booking import Booking, BookingEvent
from safari_connector.models.disbursement import Disbursement
from safari_connector.models.enquiry import Message, QuoteRequest
from safari_connector.models.operator import Operator
from safari_connector.models.payment import Payment
from safari_connector.models.quote import Quote
from safari_connector.models.trip import Trip
from safari_connector.models.user import User

__all__ = [
    "Booking",
    "BookingEvent",
    "Disbursement",
    "Message",
    "Operator",
    "Payment",
    "Quote",
    "QuoteRequest",
    "Trip",
    "User",
]
