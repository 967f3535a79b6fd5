"""
Tokenizer and tree for Well-Known Text.

Text is parsed once into a tree of :class:`WKTElement`. Readers then pull
children off each element in order and call :meth:`WKTElement.close` to
make sure nothing was left unread.
"""

from typing import Any, List, Optional, Union

from crskit.core.errors import WKTParseError

Child = Union[str, float, "WKTElement"]

_CLOSING = {"[": "]", "(": ")"}
_NUMBER_START = set("+-.0123456789")
_NUMBER_CHARS = set("+-.0123456789eE")


def _is_keyword_char(char: str) -> bool:
    return char.isalnum() or char == "_"


class WKTElement:
    """
    One parsed WKT element.

    Attributes:
        keyword: Upper-cased element keyword (e.g., 'GEOGCS')
        offset: Index of the keyword in the source text
        children: Remaining parameters, in source order
        is_void: True when the keyword had no brackets (e.g., NORTH)
    """

    def __init__(self, keyword: str, offset: int, is_void: bool = False):
        self.keyword = keyword
        self.offset = offset
        self.is_void = is_void
        self.children: List[Child] = []

    @classmethod
    def parse_tree(cls, text: str) -> "WKTElement":
        """
        Parse WKT text into an element tree.

        Raises:
            WKTParseError: If the text is not well formed, or if anything
                but whitespace follows the root element
        """
        reader = _Reader(text)
        root = reader.read_element(parent=None)
        reader.skip_whitespace()
        if reader.pos < len(text):
            raise WKTParseError(
                f"Unexpected text after element: {text[reader.pos:reader.pos + 20]!r}",
                offset=reader.pos,
                keyword=root.keyword,
            )
        return root

    def error(self, message: str, offset: Optional[int] = None) -> WKTParseError:
        """Build a parse error located on this element."""
        return WKTParseError(
            message, offset=self.offset if offset is None else offset, keyword=self.keyword
        )

    def _pull(self, predicate: Any) -> Optional[Child]:
        for index, child in enumerate(self.children):
            if predicate(child):
                return self.children.pop(index)
        return None

    def peek(self) -> Optional[Child]:
        """First remaining child, without removing it."""
        return self.children[0] if self.children else None

    def pull_string(self, name: str) -> str:
        """Remove and return the first quoted string."""
        value = self._pull(lambda c: isinstance(c, str))
        if value is None:
            raise self.error(f'Missing parameter "{name}"')
        return value

    def pull_double(self, name: str) -> float:
        """Remove and return the first number."""
        value = self._pull(lambda c: isinstance(c, float))
        if value is None:
            raise self.error(f'Missing parameter "{name}"')
        return value

    def pull_integer(self, name: str) -> int:
        """Remove and return the first number, which must be integral."""
        value = self.pull_double(name)
        if not value.is_integer():
            raise self.error(f'Parameter "{name}" must be an integer, got {value}')
        return int(value)

    def pull_element(self, *keywords: str) -> "WKTElement":
        """Remove and return the first bracketed element with one of the keywords."""
        element = self.pull_optional_element(*keywords)
        if element is None:
            raise self.error(f'Missing parameter "{" or ".join(keywords)}"')
        return element

    def pull_optional_element(self, *keywords: str) -> Optional["WKTElement"]:
        """Like :meth:`pull_element`, but return None when absent."""
        wanted = {k.upper() for k in keywords}
        return self._pull(
            lambda c: isinstance(c, WKTElement) and not c.is_void and c.keyword in wanted
        )

    def pull_void_element(self, name: str) -> "WKTElement":
        """Remove and return the first element written without brackets."""
        element = self._pull(lambda c: isinstance(c, WKTElement) and c.is_void)
        if element is None:
            raise self.error(f'Missing parameter "{name}"')
        return element

    def close(self) -> None:
        """
        Check every child was consumed.

        Raises:
            WKTParseError: Naming the first unexpected parameter
        """
        if self.children:
            child = self.children[0]
            if isinstance(child, WKTElement):
                raise self.error(f'Unexpected parameter "{child.keyword}"', offset=child.offset)
            raise self.error(f"Unexpected parameter {child!r}")

    def print_tree(self, indent: int = 0) -> str:
        """Render the remaining tree, one node per line, for debugging."""
        lines = [" " * indent + self.keyword]
        for child in self.children:
            if isinstance(child, WKTElement):
                lines.append(child.print_tree(indent + 2))
            elif isinstance(child, str):
                lines.append(" " * (indent + 2) + f'"{child}"')
            else:
                lines.append(" " * (indent + 2) + repr(child))
        return "\n".join(lines)

    def __repr__(self) -> str:
        return f"WKTElement({self.keyword!r}, offset={self.offset}, children={len(self.children)})"


class _Reader:
    """Cursor over the WKT text."""

    def __init__(self, text: str):
        self.text = text
        self.pos = 0

    def skip_whitespace(self) -> None:
        while self.pos < len(self.text) and self.text[self.pos].isspace():
            self.pos += 1

    def _current(self) -> str:
        return self.text[self.pos] if self.pos < len(self.text) else ""

    def read_element(self, parent: Optional[WKTElement]) -> WKTElement:
        self.skip_whitespace()
        start = self.pos
        while self.pos < len(self.text) and _is_keyword_char(self.text[self.pos]):
            self.pos += 1
        keyword = self.text[start:self.pos].upper()
        if not keyword:
            found = self._current() or "end of text"
            raise WKTParseError(
                f"Expected a keyword, found {found!r}",
                offset=start,
                keyword=parent.keyword if parent else None,
            )

        self.skip_whitespace()
        opening = self._current()
        if opening not in _CLOSING:
            return WKTElement(keyword, start, is_void=True)

        element = WKTElement(keyword, start)
        closing = _CLOSING[opening]
        self.pos += 1
        self.skip_whitespace()
        if self._current() == closing:
            self.pos += 1
            return element

        while True:
            element.children.append(self._read_child(element))
            self.skip_whitespace()
            char = self._current()
            if char == ",":
                self.pos += 1
            elif char == closing:
                self.pos += 1
                return element
            elif not char:
                raise element.error(f"Missing closing bracket {closing!r}", offset=self.pos)
            elif char in ")]":
                raise element.error(
                    f"Mismatched brackets: expected {closing!r} but found {char!r}",
                    offset=self.pos,
                )
            else:
                raise element.error(
                    f"Expected ',' or {closing!r} but found {char!r}", offset=self.pos
                )

    def _read_child(self, element: WKTElement) -> Child:
        self.skip_whitespace()
        char = self._current()
        if not char:
            raise element.error("Missing closing bracket", offset=self.pos)
        if char == '"':
            end = self.text.find('"', self.pos + 1)
            if end < 0:
                raise element.error("Missing closing quote", offset=self.pos)
            value = self.text[self.pos + 1:end].strip()
            self.pos = end + 1
            return value
        if char in _NUMBER_START:
            start = self.pos
            while self.pos < len(self.text) and self.text[self.pos] in _NUMBER_CHARS:
                self.pos += 1
            token = self.text[start:self.pos]
            try:
                return float(token)
            except ValueError:
                raise element.error(f"Unparsable number {token!r}", offset=start) from None
        if char in ",)]":
            raise element.error("Missing parameter", offset=self.pos)
        return self.read_element(parent=element)
