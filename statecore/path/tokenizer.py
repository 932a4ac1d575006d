"""
statecore Path Tokenizer
========================

Splits a path expression into a top-level identifier and a sequence of
segment tokens:

    ident ( .ident | [digits] | ["quoted key"] | ['quoted key'] )*

Inside quoted keys a backslash escapes the next character. Only syntax is
checked here; whether the addressed attribute exists is decided by the
resolver.

```python
>>> tokenize('users[0].name')
TokenizedPath(top='users', rest=(IndexToken(index=0), PropToken(name='name')))
```
"""

import re
from dataclasses import dataclass
from typing import NamedTuple, Tuple, Union

from ..errors import PathSyntaxError

_IDENT = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


@dataclass(frozen=True)
class PropToken:
    name: str
    kind = "prop"


@dataclass(frozen=True)
class IndexToken:
    index: int
    kind = "index"


@dataclass(frozen=True)
class MapKeyToken:
    key: str
    kind = "map_key"


Token = Union[PropToken, IndexToken, MapKeyToken]


class TokenizedPath(NamedTuple):
    top: str
    rest: Tuple[Token, ...]


def is_path(expr: str) -> bool:
    """Whether `expr` has more than one segment."""
    return "." in expr or "[" in expr


def tokenize(path: str) -> TokenizedPath:
    """Tokenize `path`, raising `PathSyntaxError` on malformed input."""
    if not isinstance(path, str) or not path:
        raise PathSyntaxError(f"Invalid path: '{path}'")
    m = _IDENT.match(path)
    if m is None:
        raise PathSyntaxError(f"Invalid path: '{path}'")

    top = m.group(0)
    i = len(top)
    rest = []
    n = len(path)

    while i < n:
        ch = path[i]

        if ch == ".":
            i += 1
            mm = _IDENT.match(path, i)
            if mm is None:
                raise PathSyntaxError(f"Property expected after '.' in '{path}' @{i}")
            rest.append(PropToken(mm.group(0)))
            i = mm.end()
            continue

        if ch == "[":
            i += 1
            if i >= n:
                raise PathSyntaxError(f"']' expected in '{path}'")

            quote = path[i]
            if quote in ("'", '"'):
                i += 1
                chars = []
                closed = False
                while i < n:
                    c = path[i]
                    i += 1
                    if c == "\\" and i < n:
                        chars.append(path[i])
                        i += 1
                        continue
                    if c == quote:
                        closed = True
                        break
                    chars.append(c)
                if not closed:
                    raise PathSyntaxError(f"Missing closing {quote} in '{path}'")
                if i >= n or path[i] != "]":
                    raise PathSyntaxError(f"']' expected in '{path}'")
                i += 1
                rest.append(MapKeyToken("".join(chars)))
                continue

            start = i
            while i < n and path[i].isdigit() and path[i].isascii():
                i += 1
            if start == i:
                raise PathSyntaxError(f"Numeric index expected in '{path}' @{i}")
            index = int(path[start:i])
            if i >= n or path[i] != "]":
                raise PathSyntaxError(f"']' expected in '{path}'")
            i += 1
            rest.append(IndexToken(index))
            continue

        raise PathSyntaxError(f"Unexpected token '{ch}' in '{path}' @{i}")

    return TokenizedPath(top, tuple(rest))
