"""Message lists sent to the completion service."""
from typing import Dict, List

from canvas.tree import ConversationTree


def completion_messages(tree: ConversationTree, user_node_id: str) -> List[Dict[str, str]]:
    """Root-first history ending at the user node that was just appended.

    The pending assistant reply hangs below ``user_node_id`` and is therefore
    never part of the list.
    """
    return [message.as_dict() for message in tree.history_to(user_node_id)]
