"""Customer and supplier domain services."""

from bizledger.domain.base_service import BaseService
from bizledger.domain.dtos import CustomerCreate, CustomerUpdate, SupplierCreate, SupplierUpdate
from bizledger.domain.entities import Customer, Supplier


class CustomerService(BaseService[Customer]):
    """Service for managing customers."""

    resource = "customer"
    create_schema = CustomerCreate
    update_schema = CustomerUpdate
    searchable_fields = ("name", "email", "phone", "company_name")
    unique_fields = ("email", "phone")


class SupplierService(BaseService[Supplier]):
    """Service for managing suppliers."""

    resource = "supplier"
    create_schema = SupplierCreate
    update_schema = SupplierUpdate
    searchable_fields = ("name", "email", "phone", "contact_person")
    unique_fields = ("email", "phone")
