"""
statecore Paths - Tokenizing and Resolving Path Expressions
===========================================================
"""

from .resolver import (
    FinalKind,
    PathResolver,
    PreflightHop,
    PreflightResult,
    ResolvedPath,
    TopToken,
)
from .tokenizer import (
    IndexToken,
    MapKeyToken,
    PropToken,
    Token,
    TokenizedPath,
    is_path,
    tokenize,
)

__all__ = [
    "FinalKind",
    "IndexToken",
    "MapKeyToken",
    "PathResolver",
    "PreflightHop",
    "PreflightResult",
    "PropToken",
    "ResolvedPath",
    "Token",
    "TokenizedPath",
    "TopToken",
    "is_path",
    "tokenize",
]
