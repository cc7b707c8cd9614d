"""Slot extraction from final user utterances.

The assistant asks the slot questions in a fixed order, so every substantive
user answer fills the next empty slot. Short acknowledgements ("yes", "got
it") between questions are skipped.
"""

import logging
from dataclasses import dataclass

from interviewcall.validation import is_filler

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SlotResult:
    values: dict
    next_index: int
    is_complete: bool
    accepted: bool


def extract_slot(
    slot_names: list[str],
    slot_values: dict,
    next_index: int,
    utterance: str,
) -> SlotResult:
    """Assign ``utterance`` to the next slot, if it counts as an answer.

    Pure: ``slot_values`` is never mutated; a new dict is returned when the
    utterance is accepted.
    """
    total = len(slot_names)
    if next_index >= total:
        return SlotResult(slot_values, next_index, True, False)

    if is_filler(utterance):
        logger.debug("Skipping filler utterance: %r", utterance)
        return SlotResult(slot_values, next_index, False, False)

    name = slot_names[next_index]
    values = {**slot_values, name: utterance}
    new_index = next_index + 1
    logger.info("Slot %s filled (%d/%d)", name, new_index, total)
    return SlotResult(values, new_index, new_index == total, True)
