"""Instance id scheme.

Node ids are ``n_<ULID>`` and edge ids ``e_<ULID>``. ULIDs sort
lexicographically by creation time, so ids do too.
"""

from ulid import ULID

NODE_ID_PREFIX = "n_"
EDGE_ID_PREFIX = "e_"


def new_node_id() -> str:
    return f"{NODE_ID_PREFIX}{ULID()}"


def new_edge_id() -> str:
    return f"{EDGE_ID_PREFIX}{ULID()}"
