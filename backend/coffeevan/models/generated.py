from sqlalchemy import Column, Enum, Float, Index, Integer, Text, UniqueConstraint, text

from sqlalchemy.orm import declarative_base

Base = declarative_base()
metadata = Base.metadata


class Products(Base):
    __tablename__ = 'products'

    name = Column(Text, nullable=False)
    price = Column(Float, nullable=False)
    category = Column(Enum('Coffees', 'Teas', 'Cakes', 'Hot Chocolate'), nullable=False)
    is_active = Column(Integer, nullable=False, server_default=text('1'))
    available_options = Column(Text, nullable=False, server_default=text("'[]'"))
    id = Column(Integer, primary_key=True)
    description = Column(Text)
    image = Column(Text)
    default_option = Column(Text)
    created_at = Column(Text, server_default=text('CURRENT_TIMESTAMP'))
    updated_at = Column(Text, server_default=text('CURRENT_TIMESTAMP'))


class Orders(Base):
    __tablename__ = 'orders'

    items = Column(Text, nullable=False, server_default=text("'[]'"))
    total = Column(Float, nullable=False)
    pickup_date = Column(Text, nullable=False)
    pickup_time = Column(Text, nullable=False)
    status = Column(
        Enum('new', 'processing', 'ready', 'completed', 'cancelled'),
        nullable=False,
        server_default=text("'new'"),
    )
    payment_status = Column(
        Enum('pending', 'completed', 'failed'),
        nullable=False,
        server_default=text("'pending'"),
    )
    user_id = Column(Text, nullable=False, server_default=text("'guest'"))
    user_email = Column(Text, nullable=False, server_default=text("'guest'"))
    id = Column(Integer, primary_key=True)
    notes = Column(Text)
    payment_intent_id = Column(Text)
    created_at = Column(Text, server_default=text('CURRENT_TIMESTAMP'))
    updated_at = Column(Text, server_default=text('CURRENT_TIMESTAMP'))


class TimeSlots(Base):
    """Slot reservation: one row per order, many rows per (date, time)."""
    __tablename__ = 'time_slots'
    __table_args__ = (
        UniqueConstraint('order_reference'),
        Index('ix_time_slots_date_time', 'date', 'time'),
    )

    date = Column(Text, nullable=False)
    time = Column(Text, nullable=False)
    order_reference = Column(Text, nullable=False)
    id = Column(Integer, primary_key=True)
    created_at = Column(Text, server_default=text('CURRENT_TIMESTAMP'))


class ShopSettingsDoc(Base):
    __tablename__ = 'settings'

    id = Column(Text, primary_key=True)
    max_orders_per_slot = Column(Integer, nullable=False, server_default=text('3'))
    blocked_dates = Column(Text, nullable=False, server_default=text("'[]'"))
    product_options = Column(Text, nullable=False, server_default=text("'[]'"))
    updated_at = Column(Text, server_default=text('CURRENT_TIMESTAMP'))
