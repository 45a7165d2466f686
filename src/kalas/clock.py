"""
Chess clock for a single game.

Time is kept in milliseconds and is charged lazily: nothing ticks in the background.
Whenever someone asks (before a move, on a timeout check, when reading remaining time)
the elapsed time since the last reading is deducted from the side to move.
"""

import time
from dataclasses import dataclass, field
from typing import Callable, Optional

from src.core.shared_types import Color

TimeSource = Callable[[], int]


def monotonic_ms() -> int:
    return int(time.monotonic() * 1000)


def minutes_to_ms(minutes: int) -> int:
    return minutes * 60 * 1000


def format_time(ms: int) -> str:
    """Render remaining time as m:ss, ex. 65000 -> '1:05'"""
    total_seconds = max(0, ms // 1000)
    minutes, seconds = divmod(total_seconds, 60)
    return f"{minutes}:{seconds:02d}"


@dataclass
class GameClock:
    time_control: int = 10  # minutes, 0 = untimed
    white_time_ms: int = field(init=False)
    black_time_ms: int = field(init=False)
    last_timestamp: Optional[int] = None
    timer_running: bool = False
    now_ms: TimeSource = field(default=monotonic_ms, repr=False, compare=False)

    def __post_init__(self) -> None:
        self.white_time_ms = minutes_to_ms(self.time_control)
        self.black_time_ms = minutes_to_ms(self.time_control)

    def is_untimed(self) -> bool:
        return self.time_control == 0

    def start(self) -> None:
        if self.is_untimed():
            return
        self.last_timestamp = self.now_ms()
        self.timer_running = True

    def stop(self, color_to_move: Color) -> None:
        """Charge the time used so far, then pause"""
        if self.timer_running:
            self.update(color_to_move)
            self.timer_running = False

    def halt(self) -> None:
        """Pause without charging anyone (the game is over)"""
        self.timer_running = False

    def update(self, color_to_move: Color) -> None:
        """Deduct the time elapsed since the last reading from the side to move"""
        if self.is_untimed() or not self.timer_running or self.last_timestamp is None:
            return

        now = self.now_ms()
        elapsed = now - self.last_timestamp
        self.last_timestamp = now
        self.set_time(color_to_move, max(0, self.remaining(color_to_move) - elapsed))

    def reset_timestamp(self) -> None:
        """The next player's time starts counting from now"""
        self.last_timestamp = self.now_ms()

    def remaining(self, color: Color) -> int:
        return self.white_time_ms if color == Color.WHITE else self.black_time_ms

    def set_time(self, color: Color, time_ms: int) -> None:
        if color == Color.WHITE:
            self.white_time_ms = time_ms
        else:
            self.black_time_ms = time_ms

    def flagged_color(self) -> Optional[Color]:
        """The first color (white checked first) whose time ran out, if any"""
        for color in (Color.WHITE, Color.BLACK):
            if self.remaining(color) <= 0:
                return color
        return None
