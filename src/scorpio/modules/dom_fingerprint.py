"""
DOM Fingerprint Module - Structural hash of the page's element tree.

Only tag names count: text, comments and attributes are dropped, and the
children of every element are sorted before joining so that sibling order
churn from client-side rendering does not change the fingerprint. Pages
rendered from the same template share a fingerprint.
"""

from typing import Sequence, Tuple, Union

import mmh3

from .base_module import ModuleResult, ModuleState


TAG_STRUCTURE_JS = """
() => {
    const traverse = (node) => {
        if (node.nodeType !== Node.ELEMENT_NODE) {
            return '';
        }
        const children = Array.from(node.childNodes)
            .map(traverse)
            .filter(Boolean)
            .sort()
            .join('');
        return `<${node.tagName}>${children}</${node.tagName}>`;
    };
    return traverse(document.documentElement);
}
"""

# (tag, children); plain strings stand for text nodes
Node = Union[str, Tuple[str, Sequence["Node"]]]


def serialize_structure(node: Node) -> str:
    """
    Build the tag-only structure string for a (tag, children) tree.

    Mirrors TAG_STRUCTURE_JS: text nodes contribute nothing and children
    are sorted by their serialized form (JavaScript's default sort order
    on these ASCII strings matches Python's).
    """
    if isinstance(node, str):
        return ""

    tag, children = node
    parts = sorted(part for part in map(serialize_structure, children) if part)
    return f"<{tag}>{''.join(parts)}</{tag}>"


def fingerprint(structure: str) -> int:
    """MurmurHash3 (32-bit) of a structure string"""
    return mmh3.hash(structure)


class DomFingerprintModule:
    """Template fingerprinting of the current page"""

    NAME = "DomFingerprintModule"

    def __init__(self, name: str = NAME):
        self.state = ModuleState(name)

    @property
    def name(self) -> str:
        return self.state.name

    @property
    def result(self) -> ModuleResult:
        return self.state.result

    async def run(self, session) -> None:
        try:
            structure = await session.evaluate(TAG_STRUCTURE_JS)
            value = fingerprint(structure)

            self.state.logger.info("dom_fingerprint", fingerprint=value, length=len(structure))
            self.state.record(value)

        except Exception as e:
            self.state.logger.error("module_failed", error=str(e), exc_info=True)
