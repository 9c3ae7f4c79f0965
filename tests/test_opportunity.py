"""Tests for CRM opportunities and the pipeline forecast."""

from datetime import date
from decimal import Decimal

import pytest

from bizledger.domain.entities import GroupTotal, OpportunityStage
from bizledger.domain.errors import ConflictError, NotFoundError, ValidationError
from bizledger.domain.opportunity import period_key


@pytest.fixture
def pipeline(opportunity_service):
    """Two open deals in May, one in July, one undated, one won and one lost."""
    service = opportunity_service
    rows = [
        ("Shop fit-out", "1000", 50, date(2024, 5, 10), "Website"),
        ("Uniforms", "500", 20, date(2024, 5, 20), "Referral"),
        ("Signage", "100", 10, date(2024, 7, 1), None),
        ("Someday", "800", 5, None, None),
        ("Catering", "300", 60, date(2024, 5, 15), "Website"),
        ("Fleet", "200", 30, date(2024, 5, 12), "Referral"),
    ]
    created = {
        name: service.create(
            {
                "name": name,
                "value": Decimal(value),
                "probability": probability,
                "expected_close_date": close,
                "source": source,
            }
        )
        for name, value, probability, close, source in rows
    }
    service.mark_as_won(created["Catering"].id, date(2024, 4, 30))
    service.mark_as_lost(created["Fleet"].id, "Price", date(2024, 4, 30))
    return created


@pytest.mark.parametrize(
    "period,expected",
    [("month", "2024-05"), ("quarter", "2024-Q2"), ("year", "2024")],
)
def test_period_key(period, expected):
    assert period_key(date(2024, 5, 10), period) == expected


def test_create_defaults(opportunity_service):
    opportunity = opportunity_service.create({"name": "Shop fit-out", "value": Decimal("1000")})

    assert opportunity.stage == OpportunityStage.PROSPECTING
    assert opportunity.probability == 0
    assert opportunity.actual_close_date is None


def test_create_links_customer_and_lead(opportunity_service, lead_service, sample_customer):
    lead = lead_service.create({"name": "Jo Buyer"})

    opportunity = opportunity_service.create(
        {"name": "Shop fit-out", "customer_id": sample_customer.id, "lead_id": lead.id}
    )

    assert (opportunity.customer_id, opportunity.lead_id) == (sample_customer.id, lead.id)


def test_create_unknown_customer(opportunity_service):
    with pytest.raises(NotFoundError, match="Customer 9 not found"):
        opportunity_service.create({"name": "Shop fit-out", "customer_id": 9})


def test_create_rejects_probability_over_100(opportunity_service):
    with pytest.raises(ValidationError, match="probability"):
        opportunity_service.create({"name": "Shop fit-out", "probability": 150})


def test_update_probability(opportunity_service):
    opportunity = opportunity_service.create({"name": "Shop fit-out", "value": Decimal("1000")})

    updated = opportunity_service.update_probability(opportunity.id, 40)

    assert updated.probability == 40
    assert updated.weighted_value == Decimal("400.00")
    with pytest.raises(ValidationError, match="probability"):
        opportunity_service.update_probability(opportunity.id, -1)


def test_update_clears_customer(opportunity_service, sample_customer):
    opportunity = opportunity_service.create({"name": "Shop fit-out", "customer_id": sample_customer.id})

    assert opportunity_service.update(opportunity.id, {"customer_id": None}).customer_id is None
    with pytest.raises(ValidationError, match="name cannot be cleared"):
        opportunity_service.update(opportunity.id, {"name": None})


def test_advance_through_pipeline(opportunity_service):
    """Test that advancing past Negotiation wins the deal."""
    opportunity = opportunity_service.create({"name": "Shop fit-out", "probability": 20})

    stages = [opportunity_service.move_to_next_stage(opportunity.id).stage for _ in range(4)]

    assert stages == [
        OpportunityStage.QUALIFICATION,
        OpportunityStage.PROPOSAL,
        OpportunityStage.NEGOTIATION,
        OpportunityStage.CLOSED_WON,
    ]
    won = opportunity_service.require(opportunity.id)
    assert won.probability == 100
    assert won.actual_close_date == date.today()


def test_closed_opportunity_does_not_move(opportunity_service):
    opportunity = opportunity_service.create({"name": "Shop fit-out"})
    opportunity_service.mark_as_won(opportunity.id)

    with pytest.raises(ConflictError, match="already closed"):
        opportunity_service.move_to_next_stage(opportunity.id)
    with pytest.raises(ConflictError, match="already closed"):
        opportunity_service.mark_as_lost(opportunity.id)


def test_move_back(opportunity_service):
    opportunity = opportunity_service.create({"name": "Shop fit-out", "stage": OpportunityStage.PROPOSAL})

    assert opportunity_service.move_to_previous_stage(opportunity.id).stage == OpportunityStage.QUALIFICATION
    opportunity_service.move_to_previous_stage(opportunity.id)
    with pytest.raises(ConflictError, match="first stage"):
        opportunity_service.move_to_previous_stage(opportunity.id)


def test_mark_as_lost_appends_reason(opportunity_service):
    opportunity = opportunity_service.create({"name": "Shop fit-out", "probability": 70, "notes": "Met at fair"})

    lost = opportunity_service.mark_as_lost(opportunity.id, "Price", date(2024, 6, 1))

    assert lost.stage == OpportunityStage.CLOSED_LOST
    assert lost.probability == 0
    assert lost.actual_close_date == date(2024, 6, 1)
    assert lost.notes == "Met at fair\nLost reason: Price"


def test_by_stage(opportunity_service, pipeline):
    names = [o.name for o in opportunity_service.by_stage(OpportunityStage.CLOSED_WON)]

    assert names == ["Catering"]


def test_analytics(opportunity_service, pipeline):
    analytics = opportunity_service.analytics()

    assert analytics.total_opportunities == 6
    assert analytics.total_value == Decimal("2900.00")
    assert analytics.average_value == Decimal("483.33")
    assert analytics.win_rate == Decimal("50.00")
    # 500 + 100 + 10 + 40 from the open deals
    assert analytics.forecasted_revenue == Decimal("650.00")
    assert analytics.by_stage == {
        "Closed Lost": GroupTotal(1, Decimal("200")),
        "Closed Won": GroupTotal(1, Decimal("300")),
        "Prospecting": GroupTotal(4, Decimal("2400")),
    }
    assert analytics.by_source["Unknown"] == GroupTotal(2, Decimal("900"))


def test_analytics_empty(opportunity_service):
    analytics = opportunity_service.analytics()

    assert analytics.total_opportunities == 0
    assert analytics.win_rate == Decimal("0")
    assert analytics.by_stage == {}


def test_monthly_forecast(opportunity_service, pipeline):
    """Test that only open, dated opportunities are forecast."""
    forecast = opportunity_service.sales_forecast("month")

    assert [(p.period, p.count, p.forecasted_revenue, p.weighted_revenue) for p in forecast] == [
        ("2024-05", 2, Decimal("1500"), Decimal("600")),
        ("2024-07", 1, Decimal("100"), Decimal("10")),
    ]
    assert forecast[0].average_deal_size == Decimal("750.00")


def test_quarterly_and_yearly_forecast(opportunity_service, pipeline):
    assert [p.period for p in opportunity_service.sales_forecast("quarter")] == ["2024-Q2", "2024-Q3"]
    [year] = opportunity_service.sales_forecast("year")
    assert (year.period, year.count) == ("2024", 3)


def test_forecast_rejects_unknown_period(opportunity_service):
    with pytest.raises(ValidationError, match="Forecast period"):
        opportunity_service.sales_forecast("week")


def test_closing_soon(opportunity_service, pipeline):
    closing = opportunity_service.closing_soon(days=30, today=date(2024, 5, 1))

    assert [o.name for o in closing] == ["Shop fit-out", "Uniforms"]
