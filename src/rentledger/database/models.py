"""SQLAlchemy models for the rentledger database."""

from datetime import datetime, UTC
from sqlalchemy import (
    Column,
    Integer,
    String,
    ForeignKey,
    DateTime,
    Date,
    Numeric,
    Index,
    create_engine,
)
from sqlalchemy.orm import declarative_base, relationship, sessionmaker, Session

Base = declarative_base()


class Property(Base):
    """Rental property model."""

    __tablename__ = "properties"

    id = Column(Integer, primary_key=True)
    name = Column(String, unique=True, nullable=False)
    nickname = Column(String, nullable=True)
    currency = Column(String(3), default="BRL", nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # Relationships
    aliases = relationship("PropertyAlias", back_populates="property", cascade="all, delete-orphan")
    transactions = relationship("Transaction", back_populates="property")


class PropertyAlias(Base):
    """Learned alias: a normalized source label that names a property."""

    __tablename__ = "property_aliases"

    id = Column(Integer, primary_key=True)
    label = Column(String, unique=True, nullable=False)
    property_id = Column(Integer, ForeignKey("properties.id"), nullable=False)
    created_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # Relationships
    property = relationship("Property", back_populates="aliases")


class Transaction(Base):
    """Ledger transaction model. Manual entries have no source tag."""

    __tablename__ = "transactions"

    id = Column(Integer, primary_key=True)
    property_id = Column(Integer, ForeignKey("properties.id"), nullable=True)
    date = Column(Date, nullable=False)
    amount = Column(Numeric(12, 2), nullable=False)
    kind = Column(String, nullable=False)
    category = Column(String, nullable=False)
    source_tag = Column(String, nullable=True)
    description = Column(String, nullable=True)
    notes = Column(String, nullable=True)
    imported_at = Column(DateTime, default=lambda: datetime.now(UTC), nullable=False)

    # Reconciliation deletes by source, date range and property
    __table_args__ = (Index("ix_transactions_scope", "source_tag", "date", "property_id"),)

    # Relationships
    property = relationship("Property", back_populates="transactions")


def create_session_factory(database_url: str) -> sessionmaker[Session]:
    """Create a SQLAlchemy session factory."""
    connect_args = {}
    if database_url.startswith("sqlite"):
        # Sessions are thread-local; connections come from the pool per thread
        connect_args = {"check_same_thread": False, "timeout": 30}
    engine = create_engine(database_url, echo=False, connect_args=connect_args)
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine)
