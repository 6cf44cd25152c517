from tickets.handlers.views import (
    TicketCheckinView,
    TicketCollectionView,
    TicketDetailView,
    TicketQRView,
)

__all__ = [
    "TicketCollectionView",
    "TicketDetailView",
    "TicketCheckinView",
    "TicketQRView",
]
