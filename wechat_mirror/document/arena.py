"""
Owned node arena for one HTML document.

Nodes are plain integer ids.  Kind, tag name, parent, children, attributes
and character data live in flat tables on ``HtmlDocument``, so discovery,
rewriting and tag removal are indexed edits that need no live parser tree.
BeautifulSoup is only the front end that tokenises and repairs the markup
before it is copied into the arena.
"""

from typing import Iterator, Optional

from bs4 import BeautifulSoup, Comment, Doctype, Tag

_BS4_PARSER = "lxml"

DOCUMENT = "document"
ELEMENT  = "element"
TEXT     = "text"
COMMENT  = "comment"
DOCTYPE  = "doctype"

VOID_TAGS = frozenset({
    "area", "base", "br", "col", "embed", "hr", "img", "input",
    "link", "meta", "param", "source", "track", "wbr",
})
# Text inside these elements is emitted without entity escaping
RAW_TEXT_TAGS = frozenset({"script", "style"})


def _escape_text(data: str) -> str:
    return data.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def _escape_attr(value: str) -> str:
    # single quotes are left alone so style values like url('…') survive verbatim
    return value.replace("&", "&amp;").replace('"', "&quot;")


class HtmlDocument:
    """A mutable document made of integer node ids and per-node tables."""

    ROOT = 0

    def __init__(self) -> None:
        self.kinds: list[str] = [DOCUMENT]
        self.tags: list[Optional[str]] = [None]
        self.parents: list[Optional[int]] = [None]
        self.children: list[list[int]] = [[]]
        self.attrs: dict[int, dict[str, str]] = {}
        self.data: dict[int, str] = {}

    # ── construction ────────────────────────────────────────────────

    @classmethod
    def parse(cls, html: str) -> "HtmlDocument":
        """Parse *html* and copy every node into a fresh arena."""
        doc = cls()
        soup = BeautifulSoup(html or "", _BS4_PARSER, multi_valued_attributes=None)
        stack = [(soup, cls.ROOT)]
        while stack:
            source, parent = stack.pop()
            for child in source.children:
                if isinstance(child, Tag):
                    node = doc.create_element(child.name, child.attrs)
                    stack.append((child, node))
                elif isinstance(child, Doctype):
                    node = doc._new(DOCTYPE, data=str(child))
                elif isinstance(child, Comment):
                    node = doc._new(COMMENT, data=str(child))
                else:
                    node = doc.create_text(str(child))
                doc.append_child(parent, node)
        return doc

    def _new(self, kind: str, tag: Optional[str] = None, data: Optional[str] = None) -> int:
        node = len(self.kinds)
        self.kinds.append(kind)
        self.tags.append(tag)
        self.parents.append(None)
        self.children.append([])
        if data is not None:
            self.data[node] = data
        return node

    def create_element(self, tag: str, attrs: Optional[dict[str, str]] = None) -> int:
        """Create a detached element; attach it with append_child or replace."""
        node = self._new(ELEMENT, tag=tag.lower())
        self.attrs[node] = {k: str(v) for k, v in (attrs or {}).items()}
        return node

    def create_text(self, data: str) -> int:
        return self._new(TEXT, data=data)

    # ── structural edits ────────────────────────────────────────────

    def append_child(self, parent: int, node: int) -> None:
        self.detach(node)
        self.children[parent].append(node)
        self.parents[node] = parent

    def detach(self, node: int) -> None:
        """Unlink *node* from its parent; the subtree stays in the arena."""
        parent = self.parents[node]
        if parent is None:
            return
        self.children[parent].remove(node)
        self.parents[node] = None

    def replace(self, old: int, new: int) -> None:
        """Put *new* where *old* is and detach *old*."""
        parent = self.parents[old]
        if parent is None:
            raise ValueError(f"node {old} is not attached")
        self.detach(new)
        siblings = self.children[parent]
        siblings[siblings.index(old)] = new
        self.parents[new] = parent
        self.parents[old] = None

    def is_attached(self, node: int) -> bool:
        while node != self.ROOT:
            parent = self.parents[node]
            if parent is None:
                return False
            node = parent
        return True

    # ── attributes ──────────────────────────────────────────────────

    def get_attr(self, node: int, name: str, default: Optional[str] = None) -> Optional[str]:
        return self.attrs.get(node, {}).get(name, default)

    def set_attr(self, node: int, name: str, value: str) -> None:
        self.attrs.setdefault(node, {})[name] = value

    def has_class(self, node: int, name: str) -> bool:
        return name in (self.get_attr(node, "class") or "").split()

    # ── queries ─────────────────────────────────────────────────────

    def iter_elements(self, tag: Optional[str] = None, start: int = ROOT) -> Iterator[int]:
        """Yield attached elements below *start* in document order."""
        stack = list(reversed(self.children[start]))
        while stack:
            node = stack.pop()
            if self.kinds[node] == ELEMENT and (tag is None or self.tags[node] == tag):
                yield node
            stack.extend(reversed(self.children[node]))

    def find_first(self, tag: str) -> Optional[int]:
        return next(self.iter_elements(tag), None)

    @property
    def body(self) -> int:
        """The ``<body>`` element, or the document root for bare fragments."""
        body = self.find_first("body")
        return self.ROOT if body is None else body

    # ── serialization ───────────────────────────────────────────────

    def inner_html(self, node: int) -> str:
        out: list[str] = []
        for child in self.children[node]:
            self._serialize(child, out)
        return "".join(out)

    def outer_html(self, node: int) -> str:
        out: list[str] = []
        self._serialize(node, out)
        return "".join(out)

    def _serialize(self, node: int, out: list[str]) -> None:
        kind = self.kinds[node]
        if kind == TEXT:
            parent = self.parents[node]
            if parent is not None and self.tags[parent] in RAW_TEXT_TAGS:
                out.append(self.data[node])
            else:
                out.append(_escape_text(self.data[node]))
        elif kind == COMMENT:
            out.append(f"<!--{self.data[node]}-->")
        elif kind == DOCTYPE:
            out.append(f"<!DOCTYPE {self.data[node]}>")
        elif kind == ELEMENT:
            tag = self.tags[node]
            out.append("<" + tag)
            for name, value in self.attrs.get(node, {}).items():
                out.append(f' {name}="{_escape_attr(value)}"')
            out.append(">")
            if tag in VOID_TAGS:
                return
            for child in self.children[node]:
                self._serialize(child, out)
            out.append(f"</{tag}>")
        else:
            for child in self.children[node]:
                self._serialize(child, out)
