"""
Ticket lifecycle: Issued -> Redeemed -> Shipped.

Transitions only move forward and never skip a state.
"""
from enum import Enum

from ..exceptions import InvalidTransition
from ..models import Ticket


class TicketState(str, Enum):
    """State of a ticket."""
    ISSUED = "issued"
    REDEEMED = "redeemed"
    SHIPPED = "shipped"


def ticket_state(ticket: Ticket) -> TicketState:
    if ticket.shipped:
        return TicketState.SHIPPED
    if ticket.redeemed:
        return TicketState.REDEEMED
    return TicketState.ISSUED


def redeem(ticket: Ticket, prize_id: str) -> Ticket:
    """Mark an issued ticket redeemed against ``prize_id``."""
    state = ticket_state(ticket)
    if state != TicketState.ISSUED:
        raise InvalidTransition(
            f"Ticket {ticket.code} cannot be redeemed (state: {state.value})"
        )
    if not prize_id:
        raise InvalidTransition(f"Ticket {ticket.code}: a prize is required to redeem")
    ticket.prize_id = prize_id
    ticket.redeemed = True
    return ticket


def ship(ticket: Ticket, order_id: str) -> Ticket:
    """Mark a redeemed ticket shipped under ``order_id``."""
    state = ticket_state(ticket)
    if state != TicketState.REDEEMED:
        raise InvalidTransition(
            f"Ticket {ticket.code} cannot be shipped (state: {state.value})"
        )
    if not order_id:
        raise InvalidTransition(f"Ticket {ticket.code}: an order is required to ship")
    ticket.order_id = order_id
    ticket.shipped = True
    return ticket
