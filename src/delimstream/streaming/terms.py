"""
Delimiter terms and the pattern set compiler.

A term is one candidate delimiter: a ``Literal`` matched character for
character, or a ``Pattern`` wrapping a regular expression. An ordered set of
terms compiles into a single alternation in which term *i* owns the named
group ``_dst<i>``. Python's alternation is ordered, so when two terms could
match at the same offset the one given first wins.

Patterns are embedded verbatim inside a group, so numbered backreferences
(``\\1``) refer to the combined expression; use named groups instead.
"""

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Iterable, Tuple, Union

from ..utils.errors import CompileError
from ..utils.logging import get_logger

logger = get_logger("delimstream.terms")

GROUP_PREFIX = "_dst"

# Per-pattern flags that survive embedding as scoped inline flags
_SCOPED_FLAGS = (
    (re.IGNORECASE, "i"),
    (re.MULTILINE, "m"),
    (re.VERBOSE, "x"),
)

_LEADING_FLAGS_STR = re.compile(r"^(?:\(\?[aiLmsux]+\))+")
_LEADING_FLAGS_BYTES = re.compile(rb"^(?:\(\?[aiLmsux]+\))+")


@dataclass(frozen=True)
class Literal:
    """Delimiter matched literally."""
    value: Union[str, bytes]

    def __post_init__(self):
        if isinstance(self.value, (bytearray, memoryview)):
            object.__setattr__(self, "value", bytes(self.value))
        elif not isinstance(self.value, (str, bytes)):
            object.__setattr__(self, "value", str(self.value))


@dataclass(frozen=True)
class Pattern:
    """Delimiter matched as a regular expression.

    Accepts a compiled pattern or a pattern string, which is compiled here so
    that syntax errors surface as ``CompileError`` at construction. Flags given
    with a compiled pattern are added to its own.
    """
    regex: "re.Pattern"
    flags: int = 0

    def __post_init__(self):
        if isinstance(self.regex, re.Pattern) and self.flags & ~self.regex.flags:
            merged = self.flags | self.regex.flags
            object.__setattr__(self, "regex", self.regex.pattern)
            object.__setattr__(self, "flags", merged)
        if isinstance(self.regex, (str, bytes)):
            try:
                compiled = re.compile(self.regex, self.flags)
            except (re.error, ValueError) as e:
                raise CompileError(
                    f"Malformed pattern {self.regex!r}: {e}",
                    term=self.regex,
                    cause=e
                ) from e
            object.__setattr__(self, "regex", compiled)
        elif not isinstance(self.regex, re.Pattern):
            raise CompileError(
                f"Pattern expects a regex or pattern string, got {type(self.regex).__name__}",
                term=self.regex
            )


Term = Union[Literal, Pattern]


def to_term(value: Any) -> Term:
    """Convert a caller argument to a term.

    Text and bytes become literals, compiled regexes become patterns and any
    other object is converted with ``str()`` once, here.
    """
    if isinstance(value, (Literal, Pattern)):
        return value
    if isinstance(value, re.Pattern):
        return Pattern(value)
    return Literal(value)


class PatternSet:
    """Ordered, immutable sequence of terms."""

    __slots__ = ("_terms",)

    def __init__(self, terms: Iterable[Term] = ()):
        self._terms: Tuple[Term, ...] = tuple(to_term(term) for term in terms)

    @classmethod
    def of(cls, *values: Any) -> "PatternSet":
        """Build a pattern set, flattening nested sets, lists and tuples."""
        return cls(_flatten(values))

    @property
    def terms(self) -> Tuple[Term, ...]:
        return self._terms

    def __len__(self) -> int:
        return len(self._terms)

    def __iter__(self):
        return iter(self._terms)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PatternSet):
            return NotImplemented
        return self._terms == other._terms

    def __hash__(self) -> int:
        return hash(self._terms)

    def __repr__(self) -> str:
        return f"PatternSet({list(self._terms)!r})"


def _flatten(values: Iterable[Any]):
    for value in values:
        if isinstance(value, PatternSet):
            yield from value.terms
        elif isinstance(value, (list, tuple)):
            yield from _flatten(value)
        else:
            yield to_term(value)


def encode_text(value: str, encoding: str) -> bytes:
    """Encode ``value`` without the byte order mark some codecs prepend."""
    data = value.encode(encoding)
    bom = "".encode(encoding)
    if bom and data.startswith(bom):
        return data[len(bom):]
    return data


def _coerce(value: Union[str, bytes], binary: bool, encoding: str) -> Union[str, bytes]:
    if binary and isinstance(value, str):
        return encode_text(value, encoding)
    if not binary and isinstance(value, bytes):
        return value.decode(encoding)
    return value


def _fragment(term: Term, binary: bool, encoding: str) -> Union[str, bytes]:
    """Render one term as a regex fragment in the buffer's string type."""
    if isinstance(term, Literal):
        value = _coerce(term.value, binary, encoding)
        if not value:
            raise CompileError("Empty literal terms are not allowed", term=term)
        return re.escape(value)

    source = _coerce(term.regex.pattern, binary, encoding)
    leading = _LEADING_FLAGS_BYTES if binary else _LEADING_FLAGS_STR
    source = leading.sub(b"" if binary else "", source, count=1)

    letters = "".join(letter for flag, letter in _SCOPED_FLAGS if term.regex.flags & flag)
    if not binary and term.regex.flags & re.ASCII:
        letters += "a"
    if not letters:
        return source

    # Newline ends a trailing verbose-mode comment before the group closes
    tail = "\n)" if "x" in letters else ")"
    prefix = f"(?{letters}:"
    if binary:
        return prefix.encode("ascii") + source + tail.encode("ascii")
    return prefix + source + tail


@lru_cache(maxsize=256)
def _compile(terms: Tuple[Term, ...], binary: bool, encoding: str) -> "re.Pattern":
    if not terms:
        raise CompileError("At least one term is required")

    groups = []
    for index, term in enumerate(terms):
        fragment = _fragment(term, binary, encoding)
        try:
            re.compile(fragment, re.DOTALL)
        except re.error as e:
            raise CompileError(
                f"Malformed pattern term {index}: {e}",
                term=term,
                cause=e
            ) from e
        opener = f"(?P<{GROUP_PREFIX}{index}>"
        if binary:
            groups.append(opener.encode("ascii") + fragment + b")")
        else:
            groups.append(opener + fragment + ")")

    alternation = (b"|" if binary else "|").join(groups)
    try:
        compiled = re.compile(alternation, re.DOTALL)
    except re.error as e:
        raise CompileError(f"Terms do not combine: {e}", cause=e) from e

    logger.debug("pattern_set_compiled", terms=len(terms), binary=binary)
    return compiled


def compile_terms(
    terms: PatternSet,
    binary: bool = True,
    encoding: str = "utf-8"
) -> "re.Pattern":
    """
    Compile a pattern set into one alternation.

    Args:
        terms: Ordered terms; earlier terms win ties at the same offset
        binary: Compile for ``bytes`` buffers instead of ``str``
        encoding: Encoding used to convert between text and bytes terms

    Returns:
        Compiled alternation with one named group per term

    Raises:
        CompileError: On malformed, empty or incompatible terms
    """
    try:
        return _compile(terms.terms, binary, encoding)
    except (UnicodeEncodeError, UnicodeDecodeError) as e:
        raise CompileError(f"Term cannot be converted with {encoding}: {e}", cause=e) from e


def matched_term_index(match: "re.Match") -> int:
    """Index of the term that produced ``match``."""
    for name, value in match.groupdict().items():
        if value is not None and name.startswith(GROUP_PREFIX):
            return int(name[len(GROUP_PREFIX):])
    raise ValueError("match was not produced by a compiled pattern set")


__all__ = [
    'Literal',
    'Pattern',
    'PatternSet',
    'Term',
    'to_term',
    'encode_text',
    'compile_terms',
    'matched_term_index',
]
