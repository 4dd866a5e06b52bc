"""
Bed state machine.

    available -> reserved -> occupied -> cleaning -> available
    available <-> maintenance
    reserved -> available (reservation cancelled)
"""
from __future__ import annotations

import logging

from ..exceptions import InvalidTransition
from ..models import Bed

logger = logging.getLogger(__name__)

BED_TRANSITIONS: dict[str, tuple[str, ...]] = {
    'available': ('reserved', 'maintenance'),
    'reserved': ('occupied', 'available'),
    'occupied': ('cleaning',),
    'cleaning': ('available',),
    'maintenance': ('available',),
}


def can_transition(current: str, new: str) -> bool:
    """Return True if a bed may move from ``current`` to ``new``."""
    return new in BED_TRANSITIONS.get(current, ())


def transition_bed(bed: Bed, new_status: str) -> Bed:
    """Move ``bed`` to ``new_status`` or raise :class:`InvalidTransition`.

    Callers are expected to hold a row lock (``select_for_update``) on the
    bed when the change is part of a larger transaction.
    """
    if not can_transition(bed.status, new_status):
        raise InvalidTransition('bed', bed.status, new_status)
    logger.info('Bed %s: %s -> %s', bed.room_number, bed.status, new_status)
    bed.status = new_status
    bed.save(update_fields=['status'])
    return bed


def ward_stats() -> dict:
    counts = {status: 0 for status, _ in Bed.STATUS_CHOICES}
    for status in Bed.objects.values_list('status', flat=True):
        counts[status] = counts.get(status, 0) + 1
    total = sum(counts.values())
    return {
        'total': total,
        'available': counts['available'],
        'reserved': counts['reserved'],
        'occupied': counts['occupied'],
        'cleaning': counts['cleaning'],
        'maintenance': counts['maintenance'],
        'occupancyRate': round(counts['occupied'] * 100 / total, 1) if total else 0,
    }
