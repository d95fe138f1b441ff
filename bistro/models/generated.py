from sqlalchemy import Column, Float, Integer, Text, text

from sqlalchemy.orm import declarative_base

Base = declarative_base()
metadata = Base.metadata


class MenuItems(Base):
    __tablename__ = 'menu_items'

    id = Column(Text, primary_key=True)
    name = Column(Text, nullable=False)
    price = Column(Float, nullable=False)
    category = Column(Text, nullable=False, server_default=text("'main'"))
    available = Column(Integer, nullable=False, server_default=text('1'))
    popular = Column(Integer, nullable=False, server_default=text('0'))
    sort_order = Column(Integer, nullable=False, server_default=text('0'))
    description = Column(Text)
    image = Column(Text)
    created_at = Column(Text, server_default=text('CURRENT_TIMESTAMP'))
    updated_at = Column(Text, server_default=text('CURRENT_TIMESTAMP'))


class ReservationSettings(Base):
    __tablename__ = 'reservation_settings'

    id = Column(Integer, primary_key=True)
    reservation_start_time = Column(Text, nullable=False, server_default=text("'11:00:00'"))
    reservation_end_time = Column(Text, nullable=False, server_default=text("'21:00:00'"))
    slot_duration_minutes = Column(Integer, nullable=False, server_default=text('30'))
    max_tables = Column(Integer, nullable=False, server_default=text('15'))
    max_party_size = Column(Integer, nullable=False, server_default=text('20'))
    closed_days = Column(Text, nullable=False, server_default=text("'[]'"))
    min_advance_hours = Column(Integer, nullable=False, server_default=text('2'))
    booking_window_days = Column(Integer, nullable=False, server_default=text('30'))
    auto_confirm = Column(Integer, nullable=False, server_default=text('0'))
    created_at = Column(Text, server_default=text('CURRENT_TIMESTAMP'))
    updated_at = Column(Text, server_default=text('CURRENT_TIMESTAMP'))


class RestaurantSettings(Base):
    __tablename__ = 'restaurant_settings'

    id = Column(Integer, primary_key=True)
    restaurant_name = Column(Text, nullable=False, server_default=text("'Bistro'"))
    business_hours = Column(Text, nullable=False, server_default=text("'{}'"))
    tax_rate = Column(Float)
    phone = Column(Text)
    email = Column(Text)
    notification_email = Column(Text)
    created_at = Column(Text, server_default=text('CURRENT_TIMESTAMP'))
    updated_at = Column(Text, server_default=text('CURRENT_TIMESTAMP'))


class Reservations(Base):
    __tablename__ = 'reservations'

    customer_name = Column(Text, nullable=False)
    customer_email = Column(Text, nullable=False)
    customer_phone = Column(Text, nullable=False)
    reservation_date = Column(Text, nullable=False)  # YYYY-MM-DD
    reservation_time = Column(Text, nullable=False)  # HH:MM
    party_size = Column(Integer, nullable=False)
    status = Column(Text, nullable=False, server_default=text("'pending'"))
    created_at = Column(Text, nullable=False, server_default=text('CURRENT_TIMESTAMP'))
    updated_at = Column(Text, nullable=False, server_default=text('CURRENT_TIMESTAMP'))
    id = Column(Integer, primary_key=True)
    special_requests = Column(Text)
    table_number = Column(Text)
    admin_notes = Column(Text)


class Orders(Base):
    __tablename__ = 'orders'

    customer_name = Column(Text, nullable=False)
    customer_phone = Column(Text, nullable=False)
    order_type = Column(Text, nullable=False)
    items = Column(Text, nullable=False, server_default=text("'[]'"))  # JSON of priced lines
    subtotal = Column(Float, nullable=False)
    tax = Column(Float, nullable=False)
    total = Column(Float, nullable=False)
    status = Column(Text, nullable=False, server_default=text("'pending'"))
    created_at = Column(Text, nullable=False, server_default=text('CURRENT_TIMESTAMP'))
    updated_at = Column(Text, nullable=False, server_default=text('CURRENT_TIMESTAMP'))
    id = Column(Integer, primary_key=True)
    customer_email = Column(Text)
    delivery_address = Column(Text)
    scheduled_time = Column(Text)
    special_notes = Column(Text)
