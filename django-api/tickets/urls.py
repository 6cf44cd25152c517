from django.urls import path

from tickets.handlers import (
    TicketCheckinView,
    TicketCollectionView,
    TicketDetailView,
    TicketQRView,
)

urlpatterns = [
    path("tickets", TicketCollectionView.as_view(), name="ticket-collection"),
    path("tickets/qr", TicketQRView.as_view(), name="ticket-qr"),
    path("tickets/checkin", TicketCheckinView.as_view(), name="ticket-checkin"),
    path("tickets/<str:ticket_id>", TicketDetailView.as_view(), name="ticket-detail"),
]
