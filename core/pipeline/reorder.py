"""
Reorder buffer: restores submission order over out-of-order completions.
"""

from typing import Dict, List, Optional

from config.logging_config import get_logger

from .models import Completion

logger = get_logger(__name__)


class ReorderBuffer:
    """
    Holds completions that arrived ahead of their turn.

    Invariant: every held id is greater than next_expected_id; the id equal
    to next_expected_id is never held, it is released as soon as it
    arrives together with every consecutive held id behind it.
    """

    def __init__(self, first_id: int = 1):
        self.next_expected_id = first_id
        self._held: Dict[int, Completion] = {}

    @property
    def held_ids(self) -> List[int]:
        return sorted(self._held)

    def __len__(self) -> int:
        return len(self._held)

    def offer(self, completion: Completion) -> Optional[List[Completion]]:
        """
        Fold one completion in.

        Returns:
            The completions that became releasable, in ascending id order
            (empty if the completion was held), or None if it was ignored as
            a duplicate or a late arrival.
        """
        cid = completion.id

        if cid < self.next_expected_id:
            logger.error(
                f"Sequence invariant violated: completion {cid} arrived after "
                f"delivery reached {self.next_expected_id - 1}; ignoring"
            )
            return None

        if cid > self.next_expected_id:
            if cid in self._held:
                logger.error(f"Sequence invariant violated: duplicate completion {cid}; ignoring")
                return None
            self._held[cid] = completion
            return []

        released = [completion]
        self.next_expected_id += 1
        while self.next_expected_id in self._held:
            released.append(self._held.pop(self.next_expected_id))
            self.next_expected_id += 1
        return released

    def is_settled(self, sequencer_next: int) -> bool:
        """No gaps, nothing held: every id below sequencer_next was released"""
        return not self._held and self.next_expected_id == sequencer_next
