"""Canvas package: the in-memory conversation tree and the interactive session.

The tree is an arena of nodes and edges indexed by identifier; the session owns
one open tree and the completion tasks that fill in its assistant replies.
"""
from canvas.models import ContentState, Edge, Message, Node, Position, Role, Size
from canvas.tree import ConversationTree

__all__ = [
    "ContentState",
    "ConversationTree",
    "Edge",
    "Message",
    "Node",
    "Position",
    "Role",
    "Size",
]
