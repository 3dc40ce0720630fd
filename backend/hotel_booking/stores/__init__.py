from hotel_booking.stores.interfaces import DuplicateBookingError, EntityStore
from hotel_booking.stores.sqlalchemy_store import SqlAlchemyEntityStore

__all__ = ["DuplicateBookingError", "EntityStore", "SqlAlchemyEntityStore"]
