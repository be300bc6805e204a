"""Record identifier allocation.

Ids are the hex MD5 of a random 63-bit integer. Collisions are practically
impossible at that width; the attempt cap only bounds the loop.
"""

import hashlib
import random
from typing import Container, Optional

from .errors import AllocateIDFailed

MAX_ATTEMPTS = 10


class IdAllocator:
    """Produces ids not present in a given collection.

    Args:
        rng: Random source with ``getrandbits`` (default: SystemRandom)
        max_attempts: Candidates to try before giving up
    """

    def __init__(self, rng: Optional[random.Random] = None, max_attempts: int = MAX_ATTEMPTS):
        self._rng = rng or random.SystemRandom()
        self.max_attempts = max_attempts

    def candidate(self) -> str:
        value = self._rng.getrandbits(63)
        return hashlib.md5(str(value).encode("ascii")).hexdigest()

    def allocate(self, existing: Container[str]) -> str:
        """Return a fresh id not contained in ``existing``.

        Raises:
            AllocateIDFailed: If every attempt collided.
        """
        for _ in range(self.max_attempts):
            record_id = self.candidate()
            if record_id not in existing:
                return record_id
        raise AllocateIDFailed(self.max_attempts)
