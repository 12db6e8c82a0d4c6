"""
Line token definitions for the Yggdra lexer.

Yggdra is line oriented: every physical, non-blank line becomes exactly one
token carrying its indentation, the leader keyword that classified it and
the remainder of the line.
"""

from dataclasses import dataclass
from enum import Enum, auto


class LineKind(Enum):
    """Classification of a source line by its leader."""

    COMMENT = auto()     # # ...
    STATE = auto()       # state [type] name = value
    FN = auto()          # fn name(params)
    SERVER = auto()      # server Name: port
    ROUTE = auto()       # get|post|put|patch|delete name /path ?param
    PROPERTY = auto()    # .key[: value]
    PSEUDO = auto()      # &selector
    IF = auto()          # if expr
    ELSE = auto()        # else
    LOOP = auto()        # loop item[, idx] in collection
    SERVICE = auto()     # service Name: baseUrl
    USE = auto()         # use Source as alias
    ON_MOUNT = auto()    # onMount
    ELEMENT = auto()     # Uppercase identifier
    UNKNOWN = auto()


# Word leaders, in the order the lexer tries them
KEYWORD_LEADERS: dict[str, LineKind] = {
    "state": LineKind.STATE,
    "fn": LineKind.FN,
    "server": LineKind.SERVER,
    "if": LineKind.IF,
    "loop": LineKind.LOOP,
    "service": LineKind.SERVICE,
    "use": LineKind.USE,
}

ROUTE_VERBS: tuple[str, ...] = ("get", "post", "put", "patch", "delete")

# Verbs whose smart params travel in the request body
BODY_VERBS: frozenset[str] = frozenset({"post", "put", "patch"})

# Every word a line may start with; used for "did you mean" hints
ALL_LEADERS: tuple[str, ...] = (*KEYWORD_LEADERS, *ROUTE_VERBS, "else", "onMount")


@dataclass(frozen=True, slots=True)
class LineToken:
    """
    One classified source line.

    Attributes:
        line: 1-indexed physical line number
        indent: Number of leading whitespace characters
        kind: The leader classification
        leader: The leader text that matched ("state", "get", ".", ...)
        text: The rest of the line after the leader, comment-stripped
        raw: The untouched physical line, used by body captures
    """

    line: int
    indent: int
    kind: LineKind
    leader: str
    text: str
    raw: str

    @property
    def content(self) -> str:
        """The whole trimmed line, comment-stripped, leader included."""
        if self.kind in (LineKind.PROPERTY, LineKind.PSEUDO):
            return f"{self.leader}{self.text}"
        if self.kind in (LineKind.ELEMENT, LineKind.UNKNOWN, LineKind.ELSE):
            return self.text or self.leader
        return f"{self.leader} {self.text}".strip()

    def __repr__(self) -> str:
        return f"LineToken({self.line}, indent={self.indent}, {self.kind.name}, {self.text!r})"
