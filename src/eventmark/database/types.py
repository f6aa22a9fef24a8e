"""Custom SQLAlchemy column types for eventmark."""

from typing import Any

from sqlalchemy import String, TypeDecorator

from eventmark.constants import EventCategory
from eventmark.exceptions import CategoryDecodeError


class EventCategoryType(TypeDecorator[EventCategory]):
    """
    Stores an EventCategory as its lowercase text value.

    This type ensures that:
    1. Only the two known variants are ever written
    2. Any other stored text is a decode error rather than a default
    3. Retrieved values are EventCategory members, not bare strings

    Example:
        class MyModel(Base):
            category = mapped_column(EventCategoryType)

        obj.category = EventCategory.RANGE  # stored as 'range'
    """

    impl = String(16)
    cache_ok = True

    def process_bind_param(self, value: Any, dialect: Any) -> str | None:
        """
        Convert an EventCategory (or its text value) to stored text.

        Raises:
            CategoryDecodeError: If value is not a known category
        """
        if value is None:
            return None

        if isinstance(value, EventCategory):
            return value.value

        try:
            return EventCategory(value).value
        except ValueError:
            raise CategoryDecodeError(value) from None

    def process_result_value(self, value: str | None, dialect: Any) -> Any:
        """
        Convert stored text back to an EventCategory.

        Raises:
            CategoryDecodeError: If the stored text is not a known category
        """
        if value is None:
            return None

        try:
            return EventCategory(value)
        except ValueError:
            raise CategoryDecodeError(value) from None
