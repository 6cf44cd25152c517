"""Pytest configuration and shared fixtures."""

from datetime import datetime, timezone

import pytest
from rest_framework.test import APIClient

from events.models import Event
from tickets.handlers.dependencies import get_rate_limiter


@pytest.fixture
def api_client() -> APIClient:
    return APIClient()


@pytest.fixture
def admin_user(django_user_model):
    return django_user_model.objects.create_superuser(
        username="gatekeeper", email="gate@example.com", password="secret-pass"
    )


@pytest.fixture
def admin_client(admin_user) -> APIClient:
    client = APIClient()
    client.force_authenticate(user=admin_user)
    return client


@pytest.fixture(autouse=True)
def clear_cache():
    from django.core.cache import caches

    get_rate_limiter.cache_clear()
    for alias in ("default", "local"):
        caches[alias].clear()
    yield
    for alias in ("default", "local"):
        caches[alias].clear()
    get_rate_limiter.cache_clear()


@pytest.fixture
def make_db_event(db):
    def factory(**overrides) -> Event:
        fields = {
            "title": "Campus Expo",
            "location": "Main Hall",
            "start_at": datetime(2030, 5, 1, 9, tzinfo=timezone.utc),
            "end_at": datetime(2030, 5, 1, 17, tzinfo=timezone.utc),
            "is_published": True,
            "pricing_type": Event.PricingType.FREE,
            "ticket_price": 0,
            "capacity": None,
        }
        fields.update(overrides)
        return Event.objects.create(**fields)

    return factory
