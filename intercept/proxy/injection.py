import logging

from bs4 import BeautifulSoup, Tag

from intercept.rewrite.dom import Modifier

logger = logging.getLogger("uvicorn.error")


def body_script_injector(src: str, selector: str = "html body") -> Modifier:
    """
    Create a modifier that appends ``<script src=...>`` as the last child of
    the element matched by ``selector``. Documents without a match are left
    untouched.
    """

    def modifier(root: Tag, page_url: str) -> None:
        node = root.select_one(selector)
        if node is None:
            logger.warning(
                f"[Inject] No element matches '{selector}' on {page_url}, skipping script injection"
            )
            return
        if isinstance(root, BeautifulSoup):
            script = root.new_tag("script", attrs={"src": src})
        else:
            script = Tag(name="script", attrs={"src": src})
        node.append(script)

    return modifier
