"""
Per-restroom usage counter (``poop_count``).

The increment is a single ``UPDATE ... SET poop_count = poop_count + 1``
evaluated by the database, so concurrent increments for the same restroom
serialise on the row lock instead of racing in Python.
"""

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from restroom_directory.data.models import PublicBathroom
from restroom_directory.data.repository import store_errors
from restroom_directory.exceptions import RestroomNotFoundError
from restroom_directory.logging_config import get_logger

logger = get_logger(__name__)


class CounterStore:
    """Atomic increment and read of ``public_bathrooms.poop_count``."""

    def __init__(self, session: Session):
        self.session = session

    def increment(self, restroom_id: str) -> int:
        """
        Add one to the counter and return the new value.

        The caller owns the transaction and must commit for the increment
        to persist. Raises RestroomNotFoundError if the ID does not exist.
        """
        stmt = (
            update(PublicBathroom)
            .where(PublicBathroom.id == restroom_id)
            .values(poop_count=PublicBathroom.poop_count + 1)
            .execution_options(synchronize_session=False)
        )
        with store_errors("increment poop_count"):
            result = self.session.execute(stmt)
            if result.rowcount == 0:
                raise RestroomNotFoundError(restroom_id)
            # Same transaction, so this sees our own write and nobody else's
            new_value = self.session.scalar(
                select(PublicBathroom.poop_count).where(PublicBathroom.id == restroom_id)
            )
        logger.debug("poop_count for %s is now %s", restroom_id, new_value)
        return int(new_value)

    def read(self, restroom_id: str) -> int:
        """Current counter value. Raises RestroomNotFoundError if absent."""
        with store_errors("read poop_count"):
            value = self.session.scalar(
                select(PublicBathroom.poop_count).where(PublicBathroom.id == restroom_id)
            )
        if value is None:
            raise RestroomNotFoundError(restroom_id)
        return int(value)
