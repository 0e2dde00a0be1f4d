"""Next-shape selection policies.

A selector is called with the previously selected shape id (None for the
first pick) and the session's own random source, and returns the next
shape id. Keeping the random source outside the selector lets one preset
serve many sessions, each replayable from its own seed.
"""

import random
import weakref
from typing import Callable, List, Optional

Selector = Callable[[Optional[int], random.Random], int]


def uniform_selector(count: int) -> Selector:
    """Pick any of ``count`` shapes with equal probability.

    Args:
        count: Size of the shape set

    Returns:
        Selector function
    """
    if count <= 0:
        raise ValueError(f"Shape count must be positive, got {count}")

    def select(previous: Optional[int], rng: random.Random) -> int:
        return rng.randrange(count)

    return select


def no_repeat_selector(count: int) -> Selector:
    """Pick uniformly among the shapes other than the previous one.

    Args:
        count: Size of the shape set

    Returns:
        Selector function
    """
    if count <= 0:
        raise ValueError(f"Shape count must be positive, got {count}")

    def select(previous: Optional[int], rng: random.Random) -> int:
        if previous is None or count == 1:
            return rng.randrange(count)
        choices: List[int] = [s for s in range(count) if s != previous]
        return rng.choice(choices)

    return select


def bag_selector(count: int) -> Selector:
    """Deal every shape once, in shuffled order, before refilling the bag.

    Each random source gets its own bag, so sessions sharing a preset do not
    draw from each other's bags.

    Args:
        count: Size of the shape set

    Returns:
        Selector function
    """
    if count <= 0:
        raise ValueError(f"Shape count must be positive, got {count}")
    bags: "weakref.WeakKeyDictionary[random.Random, List[int]]" = weakref.WeakKeyDictionary()

    def select(previous: Optional[int], rng: random.Random) -> int:
        bag = bags.setdefault(rng, [])
        if not bag:
            bag.extend(range(count))
            rng.shuffle(bag)
        return bag.pop()

    return select
