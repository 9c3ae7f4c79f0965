"""SQLAlchemy models for bizledger database."""

from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    Integer,
    String,
    Text,
    ForeignKey,
    DateTime,
    Date,
    Numeric,
    Boolean,
    Enum as SAEnum,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

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

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _enum_column(enum_cls, **kwargs) -> Column:
    """Store an enum by its value, as a plain string column."""
    return Column(
        SAEnum(
            enum_cls,
            values_callable=lambda members: [m.value for m in members],
            native_enum=False,
            validate_strings=True,
            length=20,
        ),
        **kwargs,
    )


def _money(**kwargs) -> Column:
    return Column(Numeric(15, 2), **kwargs)


class TimestampMixin:
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)


class SoftDeleteMixin:
    """Rows carrying ``deleted_at`` are hidden from default queries once it is set."""

    deleted_at = Column(DateTime, nullable=True, index=True)


class Account(TimestampMixin, SoftDeleteMixin, Base):
    """Chart of accounts model."""

    __tablename__ = "accounts"

    id = Column(Integer, primary_key=True)
    name = Column(String, unique=True, nullable=False)
    description = Column(Text, nullable=True)
    account_type = _enum_column(AccountType, nullable=False)
    currency = Column(String(3), nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    notes = Column(Text, nullable=True)

    # Relationships
    debit_entries = relationship(
        "JournalEntry", back_populates="debit_account", foreign_keys="JournalEntry.debit_account_id"
    )
    credit_entries = relationship(
        "JournalEntry", back_populates="credit_account", foreign_keys="JournalEntry.credit_account_id"
    )


class JournalEntry(TimestampMixin, SoftDeleteMixin, Base):
    """Two-sided journal entry model."""

    __tablename__ = "journal_entries"

    id = Column(Integer, primary_key=True)
    date = Column(Date, nullable=False, index=True)
    ref_type = _enum_column(RefType, nullable=False)
    ref_id = Column(Integer, nullable=True)
    debit_account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    credit_account_id = Column(Integer, ForeignKey("accounts.id"), nullable=False)
    amount = _money(nullable=False)
    description = Column(Text, nullable=True)
    transaction_reference = Column(String, nullable=True)

    # Relationships
    debit_account = relationship("Account", back_populates="debit_entries", foreign_keys=[debit_account_id])
    credit_account = relationship("Account", back_populates="credit_entries", foreign_keys=[credit_account_id])


class Customer(TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "customers"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, nullable=True)
    phone = Column(String, unique=True, nullable=True)
    address = Column(Text, nullable=True)
    company_name = Column(String, nullable=True)
    customer_type = _enum_column(CustomerType, default=CustomerType.RETAILER, nullable=False)
    tax_id = Column(String, nullable=True)
    status = _enum_column(RecordStatus, default=RecordStatus.ACTIVE, nullable=False)

    sales = relationship("Sale", back_populates="customer")


class Supplier(TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "suppliers"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    email = Column(String, unique=True, nullable=True)
    phone = Column(String, unique=True, nullable=True)
    address = Column(Text, nullable=True)
    website = Column(String, nullable=True)
    contact_person = Column(String, nullable=True)
    supplier_type = _enum_column(SupplierType, default=SupplierType.DISTRIBUTOR, nullable=False)
    tax_id = Column(String, nullable=True)
    status = _enum_column(RecordStatus, default=RecordStatus.ACTIVE, nullable=False)

    purchases = relationship("Purchase", back_populates="supplier")


class Product(TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    sku = Column(String, unique=True, nullable=True)
    description = Column(Text, nullable=True)
    purchase_price = _money(default=0, nullable=False)
    sale_price = _money(default=0, nullable=False)
    unit_type = _enum_column(UnitType, default=UnitType.PIECE, nullable=False)
    status = _enum_column(RecordStatus, default=RecordStatus.ACTIVE, nullable=False)

    stock_entries = relationship("Stock", back_populates="product")


class Stock(TimestampMixin, SoftDeleteMixin, Base):
    """Stock lot model."""

    __tablename__ = "stocks"

    id = Column(Integer, primary_key=True)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    quantity = Column(Integer, default=0, nullable=False)
    unit_cost = _money(nullable=False)
    warehouse = Column(String, nullable=True)
    barcode = Column(String, unique=True, nullable=True)
    status = _enum_column(RecordStatus, default=RecordStatus.ACTIVE, nullable=False)

    product = relationship("Product", back_populates="stock_entries")


class Sale(TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "sales"

    id = Column(Integer, primary_key=True)
    sale_date = Column(Date, nullable=False, index=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=True)
    sub_total = _money(default=0, nullable=False)
    discount = _money(default=0, nullable=False)
    tax_amount = _money(default=0, nullable=False)
    delivery_charge = _money(default=0, nullable=False)
    total_amount = _money(default=0, nullable=False)
    due_amount = _money(default=0, nullable=False)
    invoice_number = Column(String, nullable=True)
    status = _enum_column(PaymentStatus, default=PaymentStatus.PENDING, nullable=False)
    notes = Column(Text, nullable=True)

    customer = relationship("Customer", back_populates="sales")
    items = relationship(
        "SaleItem", back_populates="sale", cascade="all, delete-orphan", order_by="SaleItem.id"
    )


class SaleItem(TimestampMixin, Base):
    """Sale line; replaced wholesale when its sale is updated."""

    __tablename__ = "sale_items"

    id = Column(Integer, primary_key=True)
    sale_id = Column(Integer, ForeignKey("sales.id"), nullable=False)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    stock_id = Column(Integer, ForeignKey("stocks.id"), nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = _money(nullable=False)
    total_price = _money(nullable=False)
    # Stock cost at time of sale
    unit_cost = _money(nullable=False)

    sale = relationship("Sale", back_populates="items")
    product = relationship("Product")


class SaleReturn(TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "sale_returns"

    id = Column(Integer, primary_key=True)
    return_date = Column(Date, nullable=False, index=True)
    sale_id = Column(Integer, ForeignKey("sales.id"), nullable=False)
    total_amount = _money(default=0, nullable=False)
    refund_amount = _money(default=0, nullable=False)
    notes = Column(Text, nullable=True)

    sale = relationship("Sale")
    items = relationship(
        "SaleReturnItem", back_populates="sale_return", cascade="all, delete-orphan", order_by="SaleReturnItem.id"
    )


class SaleReturnItem(TimestampMixin, Base):
    __tablename__ = "sale_return_items"

    id = Column(Integer, primary_key=True)
    sale_return_id = Column(Integer, ForeignKey("sale_returns.id"), nullable=False)
    sale_item_id = Column(Integer, ForeignKey("sale_items.id"), nullable=False)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    stock_id = Column(Integer, ForeignKey("stocks.id"), nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = _money(nullable=False)
    total_price = _money(nullable=False)
    unit_cost = _money(nullable=False)

    sale_return = relationship("SaleReturn", back_populates="items")


class Purchase(TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "purchases"

    id = Column(Integer, primary_key=True)
    purchase_date = Column(Date, nullable=False, index=True)
    supplier_id = Column(Integer, ForeignKey("suppliers.id"), nullable=True)
    sub_total = _money(default=0, nullable=False)
    discount = _money(default=0, nullable=False)
    tax_amount = _money(default=0, nullable=False)
    shipping_charge = _money(default=0, nullable=False)
    total_amount = _money(default=0, nullable=False)
    due_amount = _money(default=0, nullable=False)
    invoice_number = Column(String(50), nullable=True)
    status = _enum_column(PaymentStatus, default=PaymentStatus.PENDING, nullable=False)
    notes = Column(Text, nullable=True)

    supplier = relationship("Supplier", back_populates="purchases")
    items = relationship(
        "PurchaseItem", back_populates="purchase", cascade="all, delete-orphan", order_by="PurchaseItem.id"
    )


class PurchaseItem(TimestampMixin, Base):
    __tablename__ = "purchase_items"

    id = Column(Integer, primary_key=True)
    purchase_id = Column(Integer, ForeignKey("purchases.id"), nullable=False)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    stock_id = Column(Integer, ForeignKey("stocks.id"), nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_cost = _money(nullable=False)
    total_cost = _money(nullable=False)

    purchase = relationship("Purchase", back_populates="items")
    product = relationship("Product")


class PurchaseReturn(TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "purchase_returns"

    id = Column(Integer, primary_key=True)
    return_date = Column(Date, nullable=False, index=True)
    purchase_id = Column(Integer, ForeignKey("purchases.id"), nullable=False)
    total_amount = _money(default=0, nullable=False)
    refund_amount = _money(default=0, nullable=False)
    notes = Column(Text, nullable=True)

    purchase = relationship("Purchase")
    items = relationship(
        "PurchaseReturnItem",
        back_populates="purchase_return",
        cascade="all, delete-orphan",
        order_by="PurchaseReturnItem.id",
    )


class PurchaseReturnItem(TimestampMixin, Base):
    __tablename__ = "purchase_return_items"

    id = Column(Integer, primary_key=True)
    purchase_return_id = Column(Integer, ForeignKey("purchase_returns.id"), nullable=False)
    purchase_item_id = Column(Integer, ForeignKey("purchase_items.id"), nullable=False)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    stock_id = Column(Integer, ForeignKey("stocks.id"), nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_cost = _money(nullable=False)
    total_cost = _money(nullable=False)

    purchase_return = relationship("PurchaseReturn", back_populates="items")


class StockAdjustment(TimestampMixin, SoftDeleteMixin, Base):
    """Manual stock correction model."""

    __tablename__ = "stock_adjustments"

    id = Column(Integer, primary_key=True)
    stock_id = Column(Integer, ForeignKey("stocks.id"), nullable=False)
    product_id = Column(Integer, ForeignKey("products.id"), nullable=False)
    adjustment_type = _enum_column(AdjustmentType, nullable=False)
    quantity = Column(Integer, nullable=False)
    adjustment_date = Column(Date, nullable=False, index=True)
    # Lot cost when the adjustment was made
    unit_cost = _money(nullable=False)
    reason = Column(String, nullable=True)
    notes = Column(Text, nullable=True)

    stock = relationship("Stock")


class Expense(TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "expenses"

    id = Column(Integer, primary_key=True)
    amount = _money(nullable=False)
    date = Column(Date, nullable=False, index=True)
    description = Column(String, nullable=True)
    expense_type = Column(String, nullable=True)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=True)

    account = relationship("Account")


class Income(TimestampMixin, SoftDeleteMixin, Base):
    __tablename__ = "incomes"

    id = Column(Integer, primary_key=True)
    amount = _money(nullable=False)
    date = Column(Date, nullable=False, index=True)
    description = Column(String, nullable=True)
    income_type = Column(String, nullable=True)
    account_id = Column(Integer, ForeignKey("accounts.id"), nullable=True)

    account = relationship("Account")


class Lead(TimestampMixin, SoftDeleteMixin, Base):
    """CRM lead model."""

    __tablename__ = "leads"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    company = Column(String, nullable=True)
    source = Column(String, nullable=True)
    status = _enum_column(LeadStatus, default=LeadStatus.NEW, nullable=False)
    notes = Column(Text, nullable=True)
    estimated_value = _money(nullable=True)
    expected_close_date = Column(Date, nullable=True)


class Opportunity(TimestampMixin, SoftDeleteMixin, Base):
    """CRM opportunity model."""

    __tablename__ = "opportunities"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    customer_id = Column(Integer, ForeignKey("customers.id"), nullable=True)
    lead_id = Column(Integer, ForeignKey("leads.id"), nullable=True)
    stage = _enum_column(OpportunityStage, default=OpportunityStage.PROSPECTING, nullable=False)
    value = _money(default=0, nullable=False)
    probability = Column(Integer, default=0, nullable=False)
    expected_close_date = Column(Date, nullable=True, index=True)
    actual_close_date = Column(Date, nullable=True)
    source = Column(String, nullable=True)
    notes = Column(Text, nullable=True)

    customer = relationship("Customer")
    lead = relationship("Lead")


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    engine = create_engine(database_url, echo=False)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
