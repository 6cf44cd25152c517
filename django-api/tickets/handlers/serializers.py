"""Serializers for registration input, admin patches and ticket output."""

from rest_framework import serializers

from tickets.domain import Email, RegistrationRequest, TicketStatus

OPTIONAL_TEXT = {"required": False, "allow_null": True, "allow_blank": True}


class RegistrationSerializer(serializers.Serializer):
    """Normalizes JSON or form registrations into a RegistrationRequest."""

    event_id = serializers.CharField(max_length=64)
    full_name = serializers.CharField(max_length=255)
    email = serializers.CharField(max_length=254)
    whatsapp = serializers.CharField(max_length=50, **OPTIONAL_TEXT)
    school_or_campus = serializers.CharField(max_length=255, **OPTIONAL_TEXT)
    class_or_semester = serializers.CharField(max_length=100, **OPTIONAL_TEXT)
    domicile = serializers.CharField(max_length=255, **OPTIONAL_TEXT)
    payment_method = serializers.CharField(max_length=100, **OPTIONAL_TEXT)
    payment_reference = serializers.CharField(max_length=255, **OPTIONAL_TEXT)

    def to_request(self) -> RegistrationRequest:
        data = {key: value or None for key, value in self.validated_data.items()}
        return RegistrationRequest(
            event_id=data["event_id"],
            full_name=data["full_name"],
            email=Email.normalize(data["email"]),
            whatsapp=data.get("whatsapp"),
            school_or_campus=data.get("school_or_campus"),
            class_or_semester=data.get("class_or_semester"),
            domicile=data.get("domicile"),
            payment_method=data.get("payment_method"),
            payment_reference=data.get("payment_reference"),
        )


class LenientIntegerField(serializers.IntegerField):
    """Accepts admin-typed amounts such as ``150.000`` or ``150,000``."""

    def to_internal_value(self, data):
        if isinstance(data, str):
            data = data.replace(".", "").replace(",", "").strip()
        return super().to_internal_value(data)


class TicketPatchSerializer(serializers.Serializer):
    """Partial administrative update; only supplied fields are returned."""

    status = serializers.CharField(required=False)
    payment_method = serializers.CharField(max_length=100, **OPTIONAL_TEXT)
    payment_reference = serializers.CharField(max_length=255, **OPTIONAL_TEXT)
    total_price = LenientIntegerField(required=False, min_value=0)
    paid_at = serializers.DateTimeField(required=False, allow_null=True)
    expires_at = serializers.DateTimeField(required=False, allow_null=True)
    action = serializers.ChoiceField(choices=["resend"], required=False, allow_blank=True)

    def validate_status(self, value: str) -> TicketStatus:
        try:
            return TicketStatus(value.strip().upper())
        except ValueError:
            choices = ", ".join(status.value for status in TicketStatus)
            raise serializers.ValidationError(f"Must be one of: {choices}.")


class CheckinSerializer(serializers.Serializer):
    code = serializers.CharField(required=False, allow_blank=True)
    text = serializers.CharField(required=False, allow_blank=True)

    def scanned(self) -> str:
        return self.validated_data.get("code") or self.validated_data.get("text") or ""


class TicketSerializer(serializers.Serializer):
    """Serializer for the Ticket domain model."""

    id = serializers.UUIDField(source="id.value")
    event_id = serializers.UUIDField(source="event_id.value")
    event_title = serializers.SerializerMethodField()
    full_name = serializers.CharField()
    email = serializers.CharField()
    whatsapp = serializers.CharField(allow_null=True)
    school_or_campus = serializers.CharField(allow_null=True)
    class_or_semester = serializers.CharField(allow_null=True)
    domicile = serializers.CharField(allow_null=True)
    ticket_code = serializers.CharField()
    qr_url = serializers.CharField()
    status = serializers.CharField(source="status.value")
    checkin_status = serializers.CharField(source="checkin_status.value")
    checked_in_at = serializers.DateTimeField(allow_null=True)
    total_price = serializers.IntegerField()
    payment_method = serializers.CharField(allow_null=True)
    payment_reference = serializers.CharField(allow_null=True)
    paid_at = serializers.DateTimeField(allow_null=True)
    expires_at = serializers.DateTimeField(allow_null=True)
    created_at = serializers.DateTimeField()
    updated_at = serializers.DateTimeField()
    deleted_at = serializers.DateTimeField(allow_null=True)

    def get_event_title(self, ticket) -> str | None:
        return self.context.get("event_titles", {}).get(ticket.event_id)
