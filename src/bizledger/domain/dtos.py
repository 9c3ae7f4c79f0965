"""Input schemas for create/update operations.

Each service validates raw input against one of these pydantic models before
anything reaches the database. Update schemas make every field optional: only
the fields actually supplied are written, and an explicit None clears a field
that may be empty.
"""

from datetime import date as Date
from decimal import Decimal
from typing import Annotated, ClassVar, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from bizledger.config import MAX_PAGE_SIZE
from bizledger.domain.entities import (
    AccountType,
    AdjustmentType,
    CustomerType,
    LeadStatus,
    OpportunityStage,
    PaymentStatus,
    RecordStatus,
    RefType,
    SupplierType,
    UnitType,
)

Money = Annotated[Decimal, Field(ge=0, max_digits=15, decimal_places=2)]
PositiveMoney = Annotated[Decimal, Field(gt=0, max_digits=15, decimal_places=2)]
Name = Annotated[str, Field(min_length=1, max_length=255)]
Probability = Annotated[int, Field(ge=0, le=100)]


class Schema(BaseModel):
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)


class UpdateSchema(Schema):
    """Partial update: omitted fields stay as they are.

    An explicit ``None`` clears a field, which is only allowed for the fields
    listed in ``clearable``.
    """

    clearable: ClassVar[frozenset[str]] = frozenset()

    @model_validator(mode="after")
    def _check_cleared(self):
        cleared = sorted(
            name for name in self.model_fields_set if getattr(self, name) is None and name not in self.clearable
        )
        if cleared:
            raise ValueError(f"{', '.join(cleared)} cannot be cleared")
        return self


class PageQuery(Schema):
    """Pagination, sorting and search options for list queries."""

    page: int = Field(1, ge=1)
    limit: int = Field(10, ge=1, le=MAX_PAGE_SIZE)
    sort_by: Optional[str] = None
    sort_order: Literal["ASC", "DESC"] = "ASC"
    query: Optional[str] = None
    fields: Optional[list[str]] = None

    @field_validator("sort_order", mode="before")
    @classmethod
    def _upper_sort_order(cls, value):
        return value.upper() if isinstance(value, str) else value

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.limit


# Accounting


class AccountCreate(Schema):
    name: Name
    description: Optional[str] = None
    account_type: AccountType
    currency: str = Field("USD", pattern=r"^[A-Za-z]{3}$")
    is_active: bool = True
    notes: Optional[str] = None

    @field_validator("currency")
    @classmethod
    def _upper_currency(cls, value: str) -> str:
        return value.upper()


class AccountUpdate(UpdateSchema):
    clearable: ClassVar[frozenset[str]] = frozenset({"description", "notes"})

    name: Optional[Name] = None
    description: Optional[str] = None
    account_type: Optional[AccountType] = None
    currency: Optional[str] = Field(None, pattern=r"^[A-Za-z]{3}$")
    is_active: Optional[bool] = None
    notes: Optional[str] = None

    @field_validator("currency")
    @classmethod
    def _upper_currency(cls, value: Optional[str]) -> Optional[str]:
        return value.upper() if value is not None else None


class JournalEntryCreate(Schema):
    date: Date
    ref_type: RefType = RefType.MANUAL
    ref_id: Optional[int] = None
    debit_account_id: int
    credit_account_id: int
    amount: PositiveMoney
    description: Optional[str] = None
    transaction_reference: Optional[str] = None

    @model_validator(mode="after")
    def _distinct_sides(self):
        if self.debit_account_id == self.credit_account_id:
            raise ValueError("debit and credit accounts must differ")
        return self


class JournalEntryUpdate(UpdateSchema):
    clearable: ClassVar[frozenset[str]] = frozenset({"description", "transaction_reference"})

    date: Optional[Date] = None
    description: Optional[str] = None
    transaction_reference: Optional[str] = None


# Parties


class CustomerCreate(Schema):
    name: Name
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    company_name: Optional[str] = None
    customer_type: CustomerType = CustomerType.RETAILER
    tax_id: Optional[str] = None
    status: RecordStatus = RecordStatus.ACTIVE


class CustomerUpdate(UpdateSchema):
    clearable: ClassVar[frozenset[str]] = frozenset({"email", "phone", "address", "company_name", "tax_id"})

    name: Optional[Name] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    company_name: Optional[str] = None
    customer_type: Optional[CustomerType] = None
    tax_id: Optional[str] = None
    status: Optional[RecordStatus] = None


class SupplierCreate(Schema):
    name: Name
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    website: Optional[str] = None
    contact_person: Optional[str] = None
    supplier_type: SupplierType = SupplierType.DISTRIBUTOR
    tax_id: Optional[str] = None
    status: RecordStatus = RecordStatus.ACTIVE


class SupplierUpdate(UpdateSchema):
    clearable: ClassVar[frozenset[str]] = frozenset(
        {"email", "phone", "address", "website", "contact_person", "tax_id"}
    )

    name: Optional[Name] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    website: Optional[str] = None
    contact_person: Optional[str] = None
    supplier_type: Optional[SupplierType] = None
    tax_id: Optional[str] = None
    status: Optional[RecordStatus] = None


# Inventory


class ProductCreate(Schema):
    name: Name
    sku: Optional[str] = None
    description: Optional[str] = None
    purchase_price: Money = Decimal("0.00")
    sale_price: Money = Decimal("0.00")
    unit_type: UnitType = UnitType.PIECE
    status: RecordStatus = RecordStatus.ACTIVE


class ProductUpdate(UpdateSchema):
    clearable: ClassVar[frozenset[str]] = frozenset({"sku", "description"})

    name: Optional[Name] = None
    sku: Optional[str] = None
    description: Optional[str] = None
    purchase_price: Optional[Money] = None
    sale_price: Optional[Money] = None
    unit_type: Optional[UnitType] = None
    status: Optional[RecordStatus] = None


class StockCreate(Schema):
    product_id: int
    quantity: int = Field(ge=0)
    unit_cost: Money
    warehouse: Optional[str] = None
    barcode: Optional[str] = None
    status: RecordStatus = RecordStatus.ACTIVE


class StockUpdate(UpdateSchema):
    clearable: ClassVar[frozenset[str]] = frozenset({"warehouse", "barcode"})

    quantity: Optional[int] = Field(None, ge=0)
    unit_cost: Optional[Money] = None
    warehouse: Optional[str] = None
    barcode: Optional[str] = None
    status: Optional[RecordStatus] = None


# Sales and purchases


class SaleItemCreate(Schema):
    product_id: int
    stock_id: int
    quantity: int = Field(ge=1)
    unit_price: Money
    total_price: Optional[Money] = None


class SaleCreate(Schema):
    sale_date: Date
    customer_id: Optional[int] = None
    items: list[SaleItemCreate] = Field(min_length=1)
    discount: Money = Decimal("0.00")
    tax_amount: Money = Decimal("0.00")
    delivery_charge: Money = Decimal("0.00")
    due_amount: Money = Decimal("0.00")
    invoice_number: Optional[str] = None
    status: Optional[PaymentStatus] = None
    notes: Optional[str] = None


class SaleUpdate(UpdateSchema):
    clearable: ClassVar[frozenset[str]] = frozenset({"customer_id", "invoice_number", "notes"})

    sale_date: Optional[Date] = None
    customer_id: Optional[int] = None
    items: Optional[list[SaleItemCreate]] = Field(None, min_length=1)
    discount: Optional[Money] = None
    tax_amount: Optional[Money] = None
    delivery_charge: Optional[Money] = None
    due_amount: Optional[Money] = None
    invoice_number: Optional[str] = None
    status: Optional[PaymentStatus] = None
    notes: Optional[str] = None


class PurchaseItemCreate(Schema):
    product_id: int
    quantity: int = Field(ge=1)
    unit_cost: Money
    total_cost: Optional[Money] = None
    warehouse: Optional[str] = None


class PurchaseCreate(Schema):
    purchase_date: Date
    supplier_id: Optional[int] = None
    items: list[PurchaseItemCreate] = Field(min_length=1)
    discount: Money = Decimal("0.00")
    tax_amount: Money = Decimal("0.00")
    shipping_charge: Money = Decimal("0.00")
    due_amount: Money = Decimal("0.00")
    invoice_number: Optional[str] = None
    status: Optional[PaymentStatus] = None
    notes: Optional[str] = None


class PurchaseUpdate(UpdateSchema):
    clearable: ClassVar[frozenset[str]] = frozenset({"supplier_id", "invoice_number", "notes"})

    purchase_date: Optional[Date] = None
    supplier_id: Optional[int] = None
    items: Optional[list[PurchaseItemCreate]] = Field(None, min_length=1)
    discount: Optional[Money] = None
    tax_amount: Optional[Money] = None
    shipping_charge: Optional[Money] = None
    due_amount: Optional[Money] = None
    invoice_number: Optional[str] = None
    status: Optional[PaymentStatus] = None
    notes: Optional[str] = None


class ReturnItemCreate(Schema):
    """Units of one product going back, matched against the order's lines."""

    product_id: int
    quantity: int = Field(ge=1)


class SaleReturnCreate(Schema):
    sale_id: int
    return_date: Date
    items: list[ReturnItemCreate] = Field(min_length=1)
    refund_amount: Optional[Money] = None
    notes: Optional[str] = None


class PurchaseReturnCreate(Schema):
    purchase_id: int
    return_date: Date
    items: list[ReturnItemCreate] = Field(min_length=1)
    refund_amount: Optional[Money] = None
    notes: Optional[str] = None


class StockAdjustmentCreate(Schema):
    stock_id: int
    adjustment_type: AdjustmentType
    quantity: int = Field(ge=1)
    adjustment_date: Date
    reason: Optional[str] = None
    notes: Optional[str] = None


# Cash book


class ExpenseCreate(Schema):
    amount: PositiveMoney
    date: Date
    description: Optional[str] = None
    expense_type: Optional[str] = None
    account_id: Optional[int] = None


class ExpenseUpdate(UpdateSchema):
    clearable: ClassVar[frozenset[str]] = frozenset({"description", "expense_type", "account_id"})

    amount: Optional[PositiveMoney] = None
    date: Optional[Date] = None
    description: Optional[str] = None
    expense_type: Optional[str] = None
    account_id: Optional[int] = None


class IncomeCreate(Schema):
    amount: PositiveMoney
    date: Date
    description: Optional[str] = None
    income_type: Optional[str] = None
    account_id: Optional[int] = None


class IncomeUpdate(UpdateSchema):
    clearable: ClassVar[frozenset[str]] = frozenset({"description", "income_type", "account_id"})

    amount: Optional[PositiveMoney] = None
    date: Optional[Date] = None
    description: Optional[str] = None
    income_type: Optional[str] = None
    account_id: Optional[int] = None


# CRM


class LeadCreate(Schema):
    name: Name
    email: Optional[str] = None
    phone: Optional[str] = None
    company: Optional[str] = None
    source: Optional[str] = None
    status: LeadStatus = LeadStatus.NEW
    notes: Optional[str] = None
    estimated_value: Optional[Money] = None
    expected_close_date: Optional[Date] = None


class LeadUpdate(UpdateSchema):
    clearable: ClassVar[frozenset[str]] = frozenset(
        {"email", "phone", "company", "source", "notes", "estimated_value", "expected_close_date"}
    )

    name: Optional[Name] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    company: Optional[str] = None
    source: Optional[str] = None
    status: Optional[LeadStatus] = None
    notes: Optional[str] = None
    estimated_value: Optional[Money] = None
    expected_close_date: Optional[Date] = None


class LeadConversion(Schema):
    customer_type: CustomerType = CustomerType.RETAILER
    company_name: Optional[str] = None
    address: Optional[str] = None
    tax_id: Optional[str] = None


class OpportunityCreate(Schema):
    name: Name
    description: Optional[str] = None
    customer_id: Optional[int] = None
    lead_id: Optional[int] = None
    stage: OpportunityStage = OpportunityStage.PROSPECTING
    value: Money = Decimal("0.00")
    probability: Probability = 0
    expected_close_date: Optional[Date] = None
    actual_close_date: Optional[Date] = None
    source: Optional[str] = None
    notes: Optional[str] = None


class OpportunityUpdate(UpdateSchema):
    clearable: ClassVar[frozenset[str]] = frozenset(
        {
            "description",
            "customer_id",
            "lead_id",
            "expected_close_date",
            "actual_close_date",
            "source",
            "notes",
        }
    )

    name: Optional[Name] = None
    description: Optional[str] = None
    customer_id: Optional[int] = None
    lead_id: Optional[int] = None
    stage: Optional[OpportunityStage] = None
    value: Optional[Money] = None
    probability: Optional[Probability] = None
    expected_close_date: Optional[Date] = None
    actual_close_date: Optional[Date] = None
    source: Optional[str] = None
    notes: Optional[str] = None
