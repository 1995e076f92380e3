from sqlalchemy import (
    JSON, Column, Integer, String, Numeric, Text, DateTime, ForeignKey, Index, UniqueConstraint, func
)
from sqlalchemy.orm import declarative_base
from sqlalchemy.dialects.postgresql import JSONB

Base = declarative_base()

JSONType = JSON().with_variant(JSONB(), "postgresql")

class Vendor(Base):
    __tablename__ = "vendors"
    id = Column(Text, primary_key=True)
    name = Column(Text, nullable=False)
    category = Column(Text, nullable=False)  # recon|photo|lender|title
    contact_email = Column(Text)
    contact_phone = Column(Text)
    __table_args__ = (UniqueConstraint("name", "category"),)

class Vehicle(Base):
    __tablename__ = "vehicles"
    id = Column(Text, primary_key=True)
    vin = Column(String(17), nullable=False, unique=True)
    make = Column(Text, nullable=False)
    model = Column(Text, nullable=False)
    year = Column(Integer)
    mileage = Column(Integer)
    acquisition_date = Column(DateTime(timezone=True), nullable=False)
    acquisition_price = Column(Numeric(10,2))
    recon_start = Column(DateTime(timezone=True))
    recon_done = Column(DateTime(timezone=True))
    recon_vendor_id = Column(Text, ForeignKey("vendors.id"))
    photos_done = Column(DateTime(timezone=True))
    photo_vendor_id = Column(Text, ForeignKey("vendors.id"))
    photo_quality_score = Column(Numeric(4,2))
    listing_status = Column(Text, nullable=False)  # draft|live|sold
    listing_live_at = Column(DateTime(timezone=True))
    listing_price = Column(Numeric(10,2))
    price_strategy = Column(Text)  # market_follow|aggressive|hold
    market_comp_index = Column(Numeric(4,2))
    deal_signed = Column(DateTime(timezone=True))
    funds_received = Column(DateTime(timezone=True))
    holding_cost_per_day = Column(Numeric(8,2))
    current_stage = Column(Text, nullable=False)  # acquired|recon|photo|listing|sold|funded
    days_on_market = Column(Integer)
    photo_url = Column(Text)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True))
    __table_args__ = (Index("idx_vehicles_stage_acquired", "current_stage", "acquisition_date"),)

class Event(Base):
    __tablename__ = "events"
    id = Column(Text, primary_key=True)
    vehicle_id = Column(Text, ForeignKey("vehicles.id", ondelete="CASCADE"), nullable=False)
    event_type = Column(Text, nullable=False)
    timestamp = Column(DateTime(timezone=True), nullable=False)
    # "metadata" is reserved on declarative classes
    meta = Column("metadata", JSONType)
    __table_args__ = (
        UniqueConstraint("vehicle_id", "event_type", "timestamp"),
        Index("idx_events_timestamp", "timestamp"),
        Index("idx_events_vehicle_time", "vehicle_id", "timestamp"),
    )

class SlaRule(Base):
    __tablename__ = "sla_rules"
    id = Column(Integer, primary_key=True, autoincrement=True)
    task_type = Column(Text, nullable=False, unique=True)
    sla_days = Column(Integer, nullable=False)
