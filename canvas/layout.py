"""Placement of new nodes on the canvas. Positions carry no conversational meaning."""
import random
from typing import Optional, Tuple

from canvas.models import Position

ROOT_POSITION = Position(x=250, y=50)
SPACING_Y = 200
MAX_OFFSET_X = 50


def place_reply_pair(
    parent: Position, rng: Optional[random.Random] = None
) -> Tuple[Position, Position]:
    """Positions for a user node and its assistant reply, stacked below ``parent``."""
    rng = rng or random
    offset_x = rng.random() * 2 * MAX_OFFSET_X - MAX_OFFSET_X
    x = parent.x + offset_x
    return (
        Position(x=x, y=parent.y + SPACING_Y),
        Position(x=x, y=parent.y + SPACING_Y * 2),
    )
