"""Best-fit table assignment"""

from typing import Iterable, TypeVar

from app.booking.errors import NoTableAvailable
from app.models.table import RestaurantTable

TableT = TypeVar("TableT", bound=RestaurantTable)


def best_fit(tables: Iterable[TableT], party_size: int) -> TableT:
    """Smallest free table that seats the party, lowest number on ties.

    Greedy per request; larger tables stay free for larger parties but there
    is no look-ahead across the rest of the day.
    """
    candidates = [table for table in tables if table.seats(party_size)]
    if not candidates:
        raise NoTableAvailable("No table is available for this party size and time", party_size=party_size)
    return min(candidates, key=lambda table: (table.capacity, table.number))
