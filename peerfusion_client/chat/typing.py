#!/usr/bin/env python
# Debounce for the outgoing typing indicator
import time
from typing import Callable


class TypingDebouncer:
    """
    Turns keystrokes into typing start/stop signals.

    A start is due on the first keystroke after a pause. A stop is due once
    no key has been pressed for `delay` seconds, or right away when the
    message is sent.
    """

    def __init__(self, delay: float = 1.0, clock: Callable[[], float] = time.monotonic):
        self.delay = delay
        self.clock = clock
        self.typing = False
        self._last_keystroke = 0.0

    def keystroke(self) -> bool:
        """Record a keystroke. Returns True when a start signal should be sent."""
        self._last_keystroke = self.clock()
        if self.typing:
            return False
        self.typing = True
        return True

    def poll(self) -> bool:
        """Returns True when a stop signal is due because typing went quiet."""
        if self.typing and self.clock() - self._last_keystroke >= self.delay:
            self.typing = False
            return True
        return False

    def reset(self) -> bool:
        """Stop immediately. Returns True if a stop signal should be sent."""
        was_typing = self.typing
        self.typing = False
        return was_typing
