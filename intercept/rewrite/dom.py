from typing import Callable

from bs4 import Tag

from intercept.rewrite.resolve import to_local, to_remote

# A modifier mutates the parsed document in place, given the page URL
Modifier = Callable[[Tag, str], None]

# Attributes routed back through the proxy, keyed by tag name
LOCAL_ATTRIBUTES = {
    ("a", "href"),
    ("form", "action"),
}
# Attributes restored to their origin on any tag
REMOTE_ATTRIBUTES = {"src", "href", "data-src"}


def rewrite_attributes(node: Tag, page_url: str, base_url: str) -> None:
    """Rewrite the URL-carrying attributes of a single element."""
    for key, value in list(node.attrs.items()):
        if not isinstance(value, str):
            continue
        if (node.name, key) in LOCAL_ATTRIBUTES:
            node[key] = to_local(value, page_url, base_url)
        elif key in REMOTE_ATTRIBUTES:
            node[key] = to_remote(value, page_url)


def modify_dom(root: Tag, page_url: str, base_url: str) -> None:
    """
    Walk every element under ``root`` (inclusive) in depth-first pre-order and
    rewrite its attributes. Only attribute values change; the tree shape and
    text content, including inline script and style bodies, are left as is.
    """
    stack = [root]
    while stack:
        node = stack.pop()
        rewrite_attributes(node, page_url, base_url)
        children = [child for child in node.contents if isinstance(child, Tag)]
        stack.extend(reversed(children))


def default_modifier(base_url: str) -> Modifier:
    """Create the modifier that rewrites all links against ``base_url``."""

    def modifier(root: Tag, page_url: str) -> None:
        modify_dom(root, page_url, base_url)

    return modifier
