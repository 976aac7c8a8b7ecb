"""SQLAlchemy models for pathxpress database."""

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
    UniqueConstraint,
    create_engine,
    event,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(UTC)


class RateTier(Base):
    """Rate tier model."""

    __tablename__ = "rate_tiers"

    id = Column(Integer, primary_key=True)
    service_type = Column(String(10), nullable=False)
    min_volume = Column(Integer, nullable=False)
    max_volume = Column(Integer, nullable=True)
    base_rate = Column(Numeric(10, 2), nullable=False)
    additional_kg_rate = Column(Numeric(10, 2), nullable=False)
    max_weight = Column(Numeric(10, 2), default=5, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)


class ClientAccount(Base):
    """Client account model."""

    __tablename__ = "client_accounts"

    id = Column(Integer, primary_key=True)
    company_name = Column(String, unique=True, nullable=False)
    billing_email = Column(String, nullable=True)
    default_currency = Column(String(10), default="AED", nullable=False)
    cod_allowed = Column(Boolean, default=False, nullable=False)
    cod_fee_percent = Column(Numeric(6, 3), nullable=True)
    cod_min_fee = Column(Numeric(10, 2), nullable=True)
    cod_max_fee = Column(Numeric(10, 2), nullable=True)
    manual_rate_tier_id = Column(Integer, ForeignKey("rate_tiers.id"), nullable=True)
    custom_dom_base_rate = Column(Numeric(10, 2), nullable=True)
    custom_dom_per_kg = Column(Numeric(10, 2), nullable=True)
    custom_sdd_base_rate = Column(Numeric(10, 2), nullable=True)
    custom_sdd_per_kg = Column(Numeric(10, 2), nullable=True)
    custom_max_weight = Column(Numeric(10, 2), nullable=True)
    fod_allowed = Column(Boolean, default=False, nullable=False)
    fod_fee = Column(Numeric(10, 2), nullable=True)
    return_fee = Column(Numeric(10, 2), nullable=True)
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    # Relationships
    manual_rate_tier = relationship("RateTier")
    shipments = relationship("Shipment", back_populates="client")


class Shipment(Base):
    """Shipment (order) model."""

    __tablename__ = "shipments"

    id = Column(Integer, primary_key=True)
    client_id = Column(Integer, ForeignKey("client_accounts.id"), nullable=False)
    waybill_number = Column(String(20), unique=True, nullable=False)
    service_type = Column(String(10), nullable=False)
    weight = Column(Numeric(10, 2), nullable=False)
    length = Column(Numeric(10, 2), nullable=True)
    width = Column(Numeric(10, 2), nullable=True)
    height = Column(Numeric(10, 2), nullable=True)
    status = Column(String(30), default="pending_pickup", nullable=False)
    cod_required = Column(Boolean, default=False, nullable=False)
    cod_amount = Column(Numeric(12, 2), nullable=True)
    cod_currency = Column(String(10), nullable=True)
    charge = Column(Numeric(10, 2), nullable=True)
    fit_on_delivery = Column(Boolean, default=False, nullable=False)
    order_type = Column(String(20), default="standard", nullable=False)
    return_charged = Column(Boolean, default=True, nullable=False)
    city = Column(String, nullable=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)
    delivered_at = Column(DateTime, nullable=True)

    # Relationships
    client = relationship("ClientAccount", back_populates="shipments")
    cod_record = relationship("CODRecord", back_populates="shipment", uselist=False)


class CODRecord(Base):
    """COD record model."""

    __tablename__ = "cod_records"

    id = Column(Integer, primary_key=True)
    shipment_id = Column(Integer, ForeignKey("shipments.id"), unique=True, nullable=False)
    cod_amount = Column(Numeric(12, 2), nullable=False)
    cod_currency = Column(String(10), nullable=False)
    status = Column(String(30), default="pending_collection", nullable=False)
    collected_date = Column(DateTime, nullable=True)
    remitted_to_client_date = Column(DateTime, nullable=True)
    remittance_id = Column(Integer, ForeignKey("cod_remittances.id"), nullable=True)
    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    # Relationships
    shipment = relationship("Shipment", back_populates="cod_record")


class CODRemittance(Base):
    """COD remittance batch model."""

    __tablename__ = "cod_remittances"

    id = Column(Integer, primary_key=True)
    client_id = Column(Integer, ForeignKey("client_accounts.id"), nullable=False)
    remittance_number = Column(String(30), unique=True, nullable=False)
    gross_amount = Column(Numeric(12, 2), nullable=False)
    fee_amount = Column(Numeric(12, 2), default=0, nullable=False)
    fee_percentage = Column(Numeric(6, 3), default=0, nullable=False)
    total_amount = Column(Numeric(12, 2), nullable=False)
    currency = Column(String(10), nullable=False)
    shipment_count = Column(Integer, nullable=False)
    status = Column(String(20), default="pending", nullable=False)
    payment_method = Column(String(50), nullable=True)
    payment_reference = Column(String(100), nullable=True)
    processed_date = Column(DateTime, nullable=True)
    completed_date = Column(DateTime, nullable=True)
    notes = Column(Text, nullable=True)
    created_by = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    # Relationships
    items = relationship("CODRemittanceItem", back_populates="remittance")


class CODRemittanceItem(Base):
    """COD remittance item model."""

    __tablename__ = "cod_remittance_items"

    id = Column(Integer, primary_key=True)
    remittance_id = Column(Integer, ForeignKey("cod_remittances.id"), nullable=False)
    # A COD record can be paid out once
    cod_record_id = Column(Integer, ForeignKey("cod_records.id"), unique=True, nullable=False)
    shipment_id = Column(Integer, ForeignKey("shipments.id"), nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    currency = Column(String(10), nullable=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    # Relationships
    remittance = relationship("CODRemittance", back_populates="items")


class Invoice(Base):
    """Invoice model."""

    __tablename__ = "invoices"

    id = Column(Integer, primary_key=True)
    client_id = Column(Integer, ForeignKey("client_accounts.id"), nullable=False)
    invoice_number = Column(String(30), unique=True, nullable=False)
    period_from = Column(Date, nullable=False)
    period_to = Column(Date, nullable=False)
    issue_date = Column(Date, nullable=False)
    due_date = Column(Date, nullable=False)
    currency = Column(String(10), default="AED", nullable=False)
    subtotal = Column(Numeric(12, 2), nullable=False)
    taxes = Column(Numeric(12, 2), default=0, nullable=False)
    total = Column(Numeric(12, 2), nullable=False)
    amount_paid = Column(Numeric(12, 2), default=0, nullable=False)
    balance = Column(Numeric(12, 2), nullable=False)
    status = Column(String(20), default="pending", nullable=False)
    payment_date = Column(Date, nullable=True)
    payment_reference = Column(String(255), nullable=True)
    notes = Column(Text, nullable=True)
    adjustment_notes = Column(Text, nullable=True)
    is_adjusted = Column(Boolean, default=False, nullable=False)
    last_adjusted_by = Column(Integer, nullable=True)
    last_adjusted_at = Column(DateTime, nullable=True)
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    # Relationships
    items = relationship("InvoiceItem", back_populates="invoice")


class InvoiceItem(Base):
    """Invoice line item model."""

    __tablename__ = "invoice_items"

    id = Column(Integer, primary_key=True)
    invoice_id = Column(Integer, ForeignKey("invoices.id"), nullable=False)
    # A shipment is billed once; free-form lines leave this empty
    shipment_id = Column(Integer, ForeignKey("shipments.id"), unique=True, nullable=True)
    description = Column(Text, nullable=False)
    quantity = Column(Integer, default=1, nullable=False)
    unit_price = Column(Numeric(12, 2), nullable=False)
    total = Column(Numeric(12, 2), nullable=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    # Relationships
    invoice = relationship("Invoice", back_populates="items")


class ServiceConfigEntry(Base):
    """Key/value service configuration model."""

    __tablename__ = "service_config"

    id = Column(Integer, primary_key=True)
    config_key = Column(String(100), unique=True, nullable=False)
    config_value = Column(Text, nullable=False)
    description = Column(Text, nullable=True)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow, nullable=False)


class NumberSequence(Base):
    """Counter row backing document number generation."""

    __tablename__ = "number_sequences"

    id = Column(Integer, primary_key=True)
    name = Column(String(30), nullable=False)
    scope = Column(String(30), nullable=False)
    value = Column(Integer, default=0, nullable=False)

    __table_args__ = (UniqueConstraint("name", "scope", name="uq_sequence_name_scope"),)


# Execution option that makes a connection's transaction take the write lock
BEGIN_IMMEDIATE = "sqlite_begin_immediate"


def _configure_sqlite(engine) -> None:
    """Let write transactions take the SQLite write lock up front.

    pysqlite's own transaction handling is disabled so SQLAlchemy's BEGIN is
    the one that runs. Connections carrying the ``BEGIN_IMMEDIATE`` execution
    option start with BEGIN IMMEDIATE, so concurrent writers queue on the busy
    timeout instead of failing on lock upgrades. Reads use a plain BEGIN and
    never wait for the write lock.
    """

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _begin_immediate(conn):
        if conn.get_execution_options().get(BEGIN_IMMEDIATE):
            conn.exec_driver_sql("BEGIN IMMEDIATE")
        else:
            conn.exec_driver_sql("BEGIN")


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    connect_args = {}
    is_sqlite = database_url.startswith("sqlite")
    if is_sqlite:
        connect_args = {"timeout": 30, "check_same_thread": False}
    engine = create_engine(database_url, echo=False, connect_args=connect_args)
    if is_sqlite:
        _configure_sqlite(engine)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, expire_on_commit=False)
