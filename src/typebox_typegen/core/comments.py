from typing import Literal

from tree_sitter import Node

from typebox_typegen.core.source import node_text

_DOC_COMMENT_PREFIX = "/**"


def _leading_comments(node: Node) -> list[Node]:
    """Comments in the trivia directly before ``node``, in source order.

    A comment that starts on the same line the previous token ends on trails
    that token and is not part of the run.
    """
    run: list[Node] = []
    sibling = node.prev_sibling
    while sibling is not None and sibling.type == "comment":
        run.append(sibling)
        sibling = sibling.prev_sibling
    run.reverse()
    if sibling is not None:
        previous_row = sibling.end_point[0]
        run = [comment for comment in run if comment.start_point[0] > previous_row]
    return run


def leading_doc_comment(node: Node, which: Literal["first", "last"] = "last") -> str | None:
    """Return the first or last ``/** ... */`` comment immediately preceding ``node``.

    Schema-level lookups pass ``"first"``; field-level lookups use the default
    ``"last"``.
    """
    docs = [text for text in map(node_text, _leading_comments(node)) if text.startswith(_DOC_COMMENT_PREFIX)]
    if not docs:
        return None
    selected = docs[0] if which == "first" else docs[-1]
    return selected.strip()
