"""Generation of unique names for stored artifacts."""

import uuid
from datetime import datetime, timezone
from typing import Callable, Optional

TIMESTAMP_FORMAT = "%d%m%Y%H%M%S%p"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def generate_name(now: Optional[Callable[[], datetime]] = None) -> str:
    """
    Return `<ddMMyyyyHHmmss AM|PM>_<uuid4 hex>`.

    Names generated within the same second differ only by the random token.
    """
    moment = (now or _utcnow)()
    return f"{moment.strftime(TIMESTAMP_FORMAT)}_{uuid.uuid4().hex}"
