from __future__ import annotations

"""
Term Decomposer: split a stock's rate equation into inflow and outflow terms.

This is a shallow, string-level split on top-level `+` / `-` operators, not an
arithmetic parser. It is exact for linear combinations of named terms such as
`BIRTHS - PASS20`. Anything else (a product or quotient like
`(OW - PWA) / PD`) comes back whole as the single inflow, and callers treat a
lone inflow with no outflows as an undecomposed expression.
"""

from typing import List, Tuple


def split_terms(equation_text: str) -> List[Tuple[str, str]]:
    """Return the ordered `(sign, term)` pairs of the top-level additive structure.

    A `+` or `-` counts as an operator only at parenthesis depth zero and when
    immediately preceded by whitespace; unary signs and operators inside
    sub-expressions stay part of their term. The first term gets `+` unless it
    starts with an explicit sign.
    """
    s = equation_text.strip()
    if not s:
        return []

    depth = 0
    buf: List[str] = []
    tokens: List[str] = []
    for i, c in enumerate(s):
        if c == "(":
            depth += 1
        elif c == ")":
            depth -= 1
        elif depth == 0 and c in "+-" and i > 0 and s[i - 1].isspace():
            tokens.append("".join(buf))
            buf = []
        buf.append(c)
    tokens.append("".join(buf))

    terms: List[Tuple[str, str]] = []
    for token in tokens:
        t = token.strip()
        sign = "+"
        if t[:1] in ("+", "-"):
            sign, t = t[0], t[1:].strip()
        if t:
            terms.append((sign, t))
    return terms


def decompose(equation_text: str) -> Tuple[List[str], List[str]]:
    """Return `(inflows, outflows)` for a stock's rate equation.

    Never raises. Empty text gives two empty lists.
    """
    inflows: List[str] = []
    outflows: List[str] = []
    for sign, term in split_terms(equation_text):
        (outflows if sign == "-" else inflows).append(term)
    return inflows, outflows


def is_undecomposed(inflows: List[str], outflows: List[str]) -> bool:
    return len(inflows) == 1 and not outflows


__all__ = ["split_terms", "decompose", "is_undecomposed"]
