"""
DateTime Handler module for consistent date and time handling throughout the application.
"""
from datetime import datetime, date, time, timezone
from typing import Optional, Union


class DateTimeHandler:
    """
    Centralized service for handling dates and times consistently throughout the application.
    All datetimes stored or compared by the application are timezone-aware UTC.
    """

    TAG_FORMAT = "%Y%m%d%H%M%S%f"

    @classmethod
    def get_current_datetime(cls) -> datetime:
        """
        Get the current UTC datetime.

        Returns:
            Current timezone-aware UTC datetime
        """
        return datetime.now(timezone.utc)

    @classmethod
    def ensure_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        """
        Normalize a datetime to timezone-aware UTC.
        Naive datetimes are assumed to already be in UTC.

        Args:
            value: Datetime to normalize

        Returns:
            Aware UTC datetime or None
        """
        if value is None:
            return None

        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)

        return value.astimezone(timezone.utc)

    @classmethod
    def date_to_datetime(cls, date_obj: Union[date, datetime, None]) -> Optional[datetime]:
        """
        Convert a date object to a UTC midnight datetime (MongoDB cannot store bare dates).

        Args:
            date_obj: Date to convert

        Returns:
            Datetime object or None
        """
        if date_obj is None:
            return None

        if isinstance(date_obj, datetime):
            return cls.ensure_utc(date_obj)

        return datetime.combine(date_obj, time.min, tzinfo=timezone.utc)

    @classmethod
    def tag_suffix(cls) -> str:
        """Timestamp suffix used when generating asset tags and serial numbers."""
        return cls.get_current_datetime().strftime(cls.TAG_FORMAT)
