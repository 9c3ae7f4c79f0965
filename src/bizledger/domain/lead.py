"""CRM lead domain service."""

import logging
from collections import Counter
from datetime import date, datetime, time
from typing import Any, Optional, Union

from pydantic import BaseModel

from bizledger.database.base import Database
from bizledger.domain.base_service import BaseService, validate
from bizledger.domain.dtos import LeadConversion, LeadCreate, LeadUpdate
from bizledger.domain.entities import Customer, Lead, LeadAnalytics, LeadStatus
from bizledger.domain.errors import ConflictError
from bizledger.domain.parties import CustomerService

logger = logging.getLogger(__name__)


class LeadService(BaseService[Lead]):
    """Service for sales leads and their conversion into customers."""

    resource = "lead"
    create_schema = LeadCreate
    update_schema = LeadUpdate
    searchable_fields = ("name", "email", "company", "source")

    def __init__(self, db: Database):
        super().__init__(db)
        self.customers = CustomerService(db)

    def update_status(self, lead_id: int, status: LeadStatus) -> Lead:
        return self.update(lead_id, {"status": status})

    def convert_to_customer(
        self, lead_id: int, conversion: Union[LeadConversion, dict[str, Any], None] = None
    ) -> tuple[Lead, Customer]:
        """Create a customer from a lead and mark the lead converted.

        Raises:
            NotFoundError: If the lead does not exist
            ConflictError: If the lead was already converted, or its email or
                phone already belongs to a customer
        """
        extra = validate(LeadConversion, conversion or {})
        with self.db.transaction():
            lead = self.require(lead_id)
            if lead.status == LeadStatus.CONVERTED:
                raise ConflictError("Lead is already converted")
            customer = self.customers.create(
                {
                    "name": lead.name,
                    "email": lead.email,
                    "phone": lead.phone,
                    "company_name": extra.company_name or lead.company,
                    "address": extra.address,
                    "customer_type": extra.customer_type,
                    "tax_id": extra.tax_id,
                }
            )
            lead = self.repository.update(lead_id, {"status": LeadStatus.CONVERTED})
        logger.info("Converted lead %s into customer %s", lead_id, customer.id)
        return lead, customer

    def analytics(self, start_date: Optional[date] = None, end_date: Optional[date] = None) -> LeadAnalytics:
        """Lead counts by source and status for leads created in the period."""
        start = datetime.combine(start_date, time.min) if start_date else None
        end = datetime.combine(end_date, time.max) if end_date else None
        leads = self.repository.list(between=("created_at", start, end))
        by_status = Counter(lead.status.value for lead in leads)
        by_source = Counter(lead.source or "Unknown" for lead in leads)
        return LeadAnalytics(
            total_leads=len(leads),
            converted_leads=by_status.get(LeadStatus.CONVERTED.value, 0),
            leads_by_source=dict(by_source.most_common()),
            leads_by_status=dict(by_status.most_common()),
        )
