"""CRM opportunity domain service."""

import logging
from collections import defaultdict
from datetime import date, datetime, time, timedelta
from decimal import Decimal
from typing import Any, Optional, Union

from pydantic import BaseModel

from bizledger.database.base import Database
from bizledger.domain.base_service import BaseService, validate
from bizledger.domain.dtos import OpportunityCreate, OpportunityUpdate
from bizledger.domain.entities import (
    ZERO,
    ForecastPeriod,
    GroupTotal,
    Opportunity,
    OpportunityAnalytics,
    OpportunityStage,
)
from bizledger.domain.errors import ConflictError, NotFoundError, ValidationError, entity_not_found

logger = logging.getLogger(__name__)

# Order in which an open opportunity advances; losing is a separate exit
PIPELINE = (
    OpportunityStage.PROSPECTING,
    OpportunityStage.QUALIFICATION,
    OpportunityStage.PROPOSAL,
    OpportunityStage.NEGOTIATION,
    OpportunityStage.CLOSED_WON,
)

FORECAST_PERIODS = ("month", "quarter", "year")


def period_key(day: date, period: str) -> str:
    """Bucket a date as ``YYYY-MM``, ``YYYY-Qn`` or ``YYYY``."""
    if period == "month":
        return f"{day.year}-{day.month:02d}"
    if period == "quarter":
        return f"{day.year}-Q{(day.month - 1) // 3 + 1}"
    return str(day.year)


class OpportunityService(BaseService[Opportunity]):
    """Service for sales opportunities and the pipeline forecast."""

    resource = "opportunity"
    create_schema = OpportunityCreate
    update_schema = OpportunityUpdate
    searchable_fields = ("name", "description", "source", "customer.name")

    def __init__(self, db: Database):
        super().__init__(db)
        self.customers = db.get_repository("customer")
        self.leads = db.get_repository("lead")

    def _check_links(self, values: dict[str, Any]) -> None:
        customer_id = values.get("customer_id")
        if customer_id is not None and not self.customers.exists(customer_id):
            raise NotFoundError(entity_not_found("Customer", customer_id))
        lead_id = values.get("lead_id")
        if lead_id is not None and not self.leads.exists(lead_id):
            raise NotFoundError(entity_not_found("Lead", lead_id))

    def create(self, data: Union[BaseModel, dict[str, Any]]) -> Opportunity:
        """Create an opportunity for an existing customer and/or lead.

        Raises:
            ValidationError: On invalid input, e.g. a probability outside 0-100
            NotFoundError: If the customer or lead does not exist
        """
        dto = validate(OpportunityCreate, data)
        self._check_links(dto.model_dump())
        return super().create(dto)

    def update(self, opportunity_id: int, data: Union[BaseModel, dict[str, Any]]) -> Opportunity:
        dto = validate(OpportunityUpdate, data)
        self._check_links(dto.model_dump(exclude_unset=True))
        return super().update(opportunity_id, dto)

    # Pipeline

    def _require_open(self, opportunity_id: int) -> Opportunity:
        opportunity = self.require(opportunity_id)
        if opportunity.stage.is_closed:
            raise ConflictError(f"Opportunity {opportunity_id} is already closed ({opportunity.stage.value})")
        return opportunity

    def move_to_next_stage(self, opportunity_id: int) -> Opportunity:
        """Advance an open opportunity one stage; past Negotiation it is won.

        Raises:
            ConflictError: If the opportunity is already closed
        """
        opportunity = self._require_open(opportunity_id)
        stage = PIPELINE[PIPELINE.index(opportunity.stage) + 1]
        if stage == OpportunityStage.CLOSED_WON:
            return self.mark_as_won(opportunity_id)
        logger.info("Opportunity %s moved to %s", opportunity_id, stage.value)
        return self.repository.update(opportunity_id, {"stage": stage})

    def move_to_previous_stage(self, opportunity_id: int) -> Opportunity:
        """Move an open opportunity back one stage.

        Raises:
            ConflictError: If it is closed or already at the first stage
        """
        opportunity = self._require_open(opportunity_id)
        index = PIPELINE.index(opportunity.stage)
        if index == 0:
            raise ConflictError(f"Opportunity {opportunity_id} is already at the first stage")
        stage = PIPELINE[index - 1]
        logger.info("Opportunity %s moved back to %s", opportunity_id, stage.value)
        return self.repository.update(opportunity_id, {"stage": stage})

    def mark_as_won(self, opportunity_id: int, close_date: Optional[date] = None) -> Opportunity:
        """Close an opportunity as won with full probability.

        Raises:
            ConflictError: If it is already closed
        """
        self._require_open(opportunity_id)
        logger.info("Opportunity %s won", opportunity_id)
        return self.repository.update(
            opportunity_id,
            {
                "stage": OpportunityStage.CLOSED_WON,
                "probability": 100,
                "actual_close_date": close_date or date.today(),
            },
        )

    def mark_as_lost(
        self, opportunity_id: int, reason: Optional[str] = None, close_date: Optional[date] = None
    ) -> Opportunity:
        """Close an opportunity as lost, noting the reason if one is given.

        Raises:
            ConflictError: If it is already closed
        """
        opportunity = self._require_open(opportunity_id)
        values: dict[str, Any] = {
            "stage": OpportunityStage.CLOSED_LOST,
            "probability": 0,
            "actual_close_date": close_date or date.today(),
        }
        if reason:
            note = f"Lost reason: {reason}"
            values["notes"] = f"{opportunity.notes}\n{note}" if opportunity.notes else note
        logger.info("Opportunity %s lost", opportunity_id)
        return self.repository.update(opportunity_id, values)

    def update_probability(self, opportunity_id: int, probability: int) -> Opportunity:
        """Set the win probability in percent.

        Raises:
            ValidationError: If it is outside 0-100
        """
        return self.update(opportunity_id, {"probability": probability})

    # Queries

    def by_stage(self, stage: OpportunityStage) -> list[Opportunity]:
        return self.repository.list(order_by=["expected_close_date"], stage=stage)

    def open_opportunities(self) -> list[Opportunity]:
        open_stages = [stage for stage in OpportunityStage if not stage.is_closed]
        return self.repository.list(order_by=["expected_close_date"], stage=open_stages)

    def analytics(
        self, start_date: Optional[date] = None, end_date: Optional[date] = None
    ) -> OpportunityAnalytics:
        """Pipeline totals for opportunities created in the period.

        The forecasted revenue weighs each open opportunity's value by its
        probability.
        """
        start = datetime.combine(start_date, time.min) if start_date else None
        end = datetime.combine(end_date, time.max) if end_date else None
        opportunities = self.repository.list(between=("created_at", start, end))

        by_stage: dict[str, list[Opportunity]] = defaultdict(list)
        by_source: dict[str, list[Opportunity]] = defaultdict(list)
        for opportunity in opportunities:
            by_stage[opportunity.stage.value].append(opportunity)
            by_source[opportunity.source or "Unknown"].append(opportunity)

        def totals(groups: dict[str, list[Opportunity]]) -> dict[str, GroupTotal]:
            return {
                key: GroupTotal(count=len(group), value=sum((o.value for o in group), ZERO))
                for key, group in sorted(groups.items())
            }

        return OpportunityAnalytics(
            total_opportunities=len(opportunities),
            total_value=sum((o.value for o in opportunities), ZERO),
            won_count=len(by_stage.get(OpportunityStage.CLOSED_WON.value, ())),
            lost_count=len(by_stage.get(OpportunityStage.CLOSED_LOST.value, ())),
            forecasted_revenue=sum(
                (o.weighted_value for o in opportunities if not o.stage.is_closed), ZERO
            ),
            by_stage=totals(by_stage),
            by_source=totals(by_source),
        )

    def sales_forecast(self, period: str = "month") -> list[ForecastPeriod]:
        """Open pipeline grouped by expected close date, oldest period first.

        Opportunities without an expected close date are left out.

        Raises:
            ValidationError: If period is not month, quarter or year
        """
        if period not in FORECAST_PERIODS:
            raise ValidationError(f"Forecast period must be one of {', '.join(FORECAST_PERIODS)}, got '{period}'")
        buckets: dict[str, list[Opportunity]] = defaultdict(list)
        for opportunity in self.open_opportunities():
            if opportunity.expected_close_date is not None:
                buckets[period_key(opportunity.expected_close_date, period)].append(opportunity)
        return [
            ForecastPeriod(
                period=key,
                count=len(group),
                forecasted_revenue=sum((o.value for o in group), ZERO),
                weighted_revenue=sum((o.weighted_value for o in group), ZERO),
            )
            for key, group in sorted(buckets.items())
        ]

    def closing_soon(self, days: int = 30, today: Optional[date] = None) -> list[Opportunity]:
        """Open opportunities expected to close within the next ``days`` days."""
        if days < 0:
            raise ValidationError(f"Days must not be negative, got {days}")
        start = today or date.today()
        open_stages = [stage for stage in OpportunityStage if not stage.is_closed]
        return self.repository.list(
            between=("expected_close_date", start, start + timedelta(days=days)),
            order_by=["expected_close_date"],
            stage=open_stages,
        )

    def pipeline_value(self) -> Decimal:
        """Weighted value of every open opportunity."""
        return sum((o.weighted_value for o in self.open_opportunities()), ZERO)
