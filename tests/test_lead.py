"""Tests for CRM leads."""

from decimal import Decimal

import pytest

from bizledger.domain.entities import CustomerType, LeadStatus
from bizledger.domain.errors import ConflictError, NotFoundError


def test_create_lead_defaults(lead_service):
    lead = lead_service.create({"name": "Jo Buyer", "source": "Website"})

    assert lead.status == LeadStatus.NEW
    assert lead.estimated_value is None


def test_update_status(lead_service):
    lead = lead_service.create({"name": "Jo Buyer"})

    updated = lead_service.update_status(lead.id, LeadStatus.QUALIFIED)

    assert updated.status == LeadStatus.QUALIFIED


def test_convert_to_customer(lead_service, customer_service):
    """Test that conversion creates a customer from the lead's details."""
    lead = lead_service.create(
        {"name": "Jo Buyer", "email": "jo@buyer.test", "phone": "555-0142", "company": "Buyer Ltd"}
    )

    converted, customer = lead_service.convert_to_customer(
        lead.id, {"customer_type": CustomerType.WHOLESALER, "address": "1 Main St"}
    )

    assert converted.status == LeadStatus.CONVERTED
    assert customer.name == "Jo Buyer"
    assert customer.email == "jo@buyer.test"
    assert customer.company_name == "Buyer Ltd"
    assert customer.customer_type == CustomerType.WHOLESALER
    assert customer_service.require(customer.id).address == "1 Main St"


def test_convert_twice(lead_service):
    lead = lead_service.create({"name": "Jo Buyer"})
    lead_service.convert_to_customer(lead.id)

    with pytest.raises(ConflictError, match="already converted"):
        lead_service.convert_to_customer(lead.id)


def test_convert_duplicate_email_keeps_lead_open(lead_service, customer_service):
    """Test that a failed conversion leaves the lead unchanged."""
    customer_service.create({"name": "Existing", "email": "jo@buyer.test"})
    lead = lead_service.create({"name": "Jo Buyer", "email": "jo@buyer.test"})

    with pytest.raises(ConflictError, match="email"):
        lead_service.convert_to_customer(lead.id)

    assert lead_service.require(lead.id).status == LeadStatus.NEW
    assert customer_service.count() == 1


def test_convert_missing_lead(lead_service):
    with pytest.raises(NotFoundError, match="Lead 3 not found"):
        lead_service.convert_to_customer(3)


def test_analytics(lead_service):
    """Test counts by source and status and the conversion rate."""
    for name, source in [("A", "Website"), ("B", "Website"), ("C", "Referral"), ("D", None)]:
        lead_service.create({"name": name, "source": source, "estimated_value": Decimal("100")})
    first = lead_service.find_one_by_field("name", "A")
    lead_service.convert_to_customer(first.id)

    analytics = lead_service.analytics()

    assert analytics.total_leads == 4
    assert analytics.converted_leads == 1
    assert analytics.conversion_rate == Decimal("25.00")
    assert analytics.leads_by_source == {"Website": 2, "Referral": 1, "Unknown": 1}
    assert analytics.leads_by_status["New"] == 3


def test_search_leads(lead_service):
    lead_service.create({"name": "Jo Buyer", "company": "Northwind"})
    lead_service.create({"name": "Sam Seller"})

    page = lead_service.find_all(query="north")

    assert [lead.name for lead in page.data] == ["Jo Buyer"]
