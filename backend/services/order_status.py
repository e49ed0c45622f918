"""
Order lifecycle rules.

Orders move forward through RECEIVED -> PREPARING -> ON_THE_WAY -> DELIVERED,
may skip steps, and may be cancelled from any status. A cancelled order sits
outside the progression and can be reopened at any status.
"""

from datetime import datetime, timezone
from typing import Any, Dict, FrozenSet, Mapping, Optional

RECEIVED = "RECEIVED"
PREPARING = "PREPARING"
ON_THE_WAY = "ON_THE_WAY"
DELIVERED = "DELIVERED"
CANCELLED = "CANCELLED"

PROGRESSION = (RECEIVED, PREPARING, ON_THE_WAY, DELIVERED)
ORDER_STATUSES = PROGRESSION + (CANCELLED,)
DELETABLE_STATUSES = frozenset({RECEIVED, CANCELLED})
ACTIVE_DELIVERY_STATUSES = (PREPARING, ON_THE_WAY)


def _build_transitions() -> Mapping[str, FrozenSet[str]]:
    table: Dict[str, FrozenSet[str]] = {}
    for index, status in enumerate(PROGRESSION):
        table[status] = frozenset(PROGRESSION[index:]) | {CANCELLED}
    table[CANCELLED] = frozenset(ORDER_STATUSES)
    return table


TRANSITIONS = _build_transitions()


def is_valid_status(status: Optional[str]) -> bool:
    return status in ORDER_STATUSES


def can_transition(current: str, new: str) -> bool:
    if not is_valid_status(new):
        return False
    allowed = TRANSITIONS.get(current)
    if allowed is None:
        # Unknown legacy value; accept.
        return True
    return new in allowed


def transition_fields(new: str, now: Optional[datetime] = None) -> Dict[str, Any]:
    moment = (now or datetime.now(timezone.utc)).isoformat()
    fields: Dict[str, Any] = {"status": new, "updated_at": moment}
    if new == DELIVERED:
        fields["delivered_at"] = moment
    elif new == CANCELLED:
        fields["cancelled_at"] = moment
    return fields
