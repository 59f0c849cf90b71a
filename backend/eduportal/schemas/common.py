"""Types shared by several schema modules."""
from datetime import datetime, UTC
from typing import Annotated

from pydantic import AfterValidator


def _to_naive_utc(value: datetime) -> datetime:
    if value.tzinfo is not None:
        value = value.astimezone(UTC).replace(tzinfo=None)
    return value


# Timestamps are stored without a zone, always in UTC
UTCDateTime = Annotated[datetime, AfterValidator(_to_naive_utc)]