from enum import Enum


class RepeatMode(Enum):
    """Queue repeat modes"""

    OFF = "off"  # stop at the end
    ALL = "all"  # wrap to the start
    ONE = "one"  # repeat the current track

    def next_mode(self) -> "RepeatMode":
        """Cycle off -> all -> one -> off"""
        order = [RepeatMode.OFF, RepeatMode.ALL, RepeatMode.ONE]
        return order[(order.index(self) + 1) % len(order)]
