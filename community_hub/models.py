from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Numeric, CheckConstraint
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from community_hub.database import Base

# ================================
# Capacity Pools
# ================================
class Resource(Base):
    __tablename__ = "resources"
    __table_args__ = (
        CheckConstraint("total_capacity > 0", name="ck_resources_capacity_positive"),
        CheckConstraint("reserved_count >= 0", name="ck_resources_reserved_non_negative"),
        CheckConstraint("reserved_count <= total_capacity", name="ck_resources_reserved_within_capacity"),
    )

    id = Column(String(64), primary_key=True, index=True)
    service_type = Column(String(20), nullable=False, index=True)
    name = Column(String(255), nullable=False)
    total_capacity = Column(Integer, nullable=False)
    reserved_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    bookings = relationship("Booking", back_populates="resource")

# ================================
# Bookings (orders, reservations, parking, bus seats, events)
# ================================
class Booking(Base):
    __tablename__ = "bookings"

    id = Column(String(36), primary_key=True, index=True)
    user_id = Column(String(64), nullable=False, index=True)
    resource_id = Column(String(64), ForeignKey("resources.id"), nullable=False, index=True)
    service_type = Column(String(20), nullable=False, index=True)
    requested_units = Column(Integer, nullable=False)
    amount = Column(Numeric(14, 2), nullable=False)
    discount = Column(Numeric(14, 2), nullable=False, default=0)
    status = Column(String(20), nullable=False, index=True)
    points_earned = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now())
    completed_at = Column(DateTime(timezone=True))

    # Relationships
    resource = relationship("Resource", back_populates="bookings")
    status_history = relationship(
        "BookingStatusChange",
        back_populates="booking",
        order_by="BookingStatusChange.id"
    )

class BookingStatusChange(Base):
    __tablename__ = "booking_status_history"

    id = Column(Integer, primary_key=True, autoincrement=True)
    booking_id = Column(String(36), ForeignKey("bookings.id"), nullable=False, index=True)
    from_status = Column(String(20))  # NULL for the creation record
    to_status = Column(String(20), nullable=False)
    actor = Column(String(100))
    changed_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    booking = relationship("Booking", back_populates="status_history")

# ================================
# Loyalty
# ================================
class LoyaltyAccount(Base):
    __tablename__ = "loyalty_accounts"

    user_id = Column(String(64), primary_key=True, index=True)
    cumulative_spend = Column(Numeric(16, 2), nullable=False, default=0)
    point_balance = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    transactions = relationship(
        "LoyaltyTransaction",
        back_populates="account",
        order_by="LoyaltyTransaction.id"
    )

class LoyaltyTransaction(Base):
    __tablename__ = "loyalty_transactions"

    id = Column(Integer, primary_key=True, autoincrement=True)
    user_id = Column(String(64), ForeignKey("loyalty_accounts.user_id"), nullable=False, index=True)
    reference_id = Column(String(64), index=True)  # caller-supplied, e.g. a booking id
    net_amount = Column(Numeric(14, 2), nullable=False)
    points_earned = Column(Integer, nullable=False)
    spend_after = Column(Numeric(16, 2), nullable=False)
    tier_before = Column(String(50), nullable=False)
    tier_after = Column(String(50), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    account = relationship("LoyaltyAccount", back_populates="transactions")
