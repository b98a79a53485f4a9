# Pattern Detect - Find near-duplicate code patterns
# Copyright (C) 2025  Jonathan Louis
#
# This program is free software: you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation, either version 3 of the License, or
# (at your option) any later version.
#
# This program is distributed in the hope that it will be useful,
# but WITHOUT ANY WARRANTY; without even the implied warranty of
# MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
# GNU General Public License for more details.
#
# You should have received a copy of the GNU General Public License
# along with this program.  If not, see <https://www.gnu.org/licenses/>.

"""
Fragment normalization and classification.

normalize() erases differences that carry no meaning for similarity:
comments, literal values, names of locally bound variables and whitespace.
classify() assigns a coarse category with a cheap ordered list of lexical
rules; it only drives the suggested remediation, never the score.
"""

import math
import re
from typing import Callable, List, Set, Tuple

from .models import Category


STRING_PLACEHOLDER = "STR"
NUMBER_PLACEHOLDER = "NUM"
NAME_PLACEHOLDER = "VAR"

# One left-to-right pass so a quote inside a comment (or a comment marker
# inside a string) never starts a new match.
_LEXICAL = re.compile(
    r"""
      (?P<line_comment>//[^\n]*)
    | (?P<block_comment>/\*.*?\*/)
    | (?P<double>"(?:[^"\\]|\\.)*")
    | (?P<single>'(?:[^'\\]|\\.)*')
    | (?P<template>`(?:[^`\\]|\\.)*`)
    | (?P<number>\b\d+\b)
    """,
    re.VERBOSE | re.DOTALL,
)

_REPLACEMENTS = {
    # Comments become a space so the text either side never fuses into a new token
    "line_comment": " ",
    "block_comment": " ",
    "double": f'"{STRING_PLACEHOLDER}"',
    "single": f"'{STRING_PLACEHOLDER}'",
    "template": f"`{STRING_PLACEHOLDER}`",
    "number": NUMBER_PLACEHOLDER,
}

_IDENT = r"[A-Za-z_$][\w$]*"
_DECLARATION = re.compile(rf"\b(?:const|let|var|function)\s+({_IDENT})")
_FUNCTION_PARAMS = re.compile(r"\bfunction\b[^(]*\(([^)]*)\)")
_ARROW_PARAMS = re.compile(r"\(([^()]*)\)\s*=>")
_BARE_ARROW_PARAM = re.compile(rf"({_IDENT})\s*=>")
_PARAM_NAME = re.compile(rf"^\s*(?:\.\.\.)?\s*({_IDENT})")
_WHITESPACE = re.compile(r"\s+")

# Never treated as bound names
RESERVED_WORDS = {
    "async", "await", "break", "case", "catch", "class", "const", "continue",
    "default", "delete", "do", "else", "export", "extends", "false", "finally",
    "for", "from", "function", "if", "import", "in", "instanceof", "let", "new",
    "null", "of", "return", "static", "super", "switch", "this", "throw", "true",
    "try", "typeof", "undefined", "var", "void", "while", "yield",
    STRING_PLACEHOLDER, NUMBER_PLACEHOLDER, NAME_PLACEHOLDER,
}


def _replace_literal(match: "re.Match[str]") -> str:
    return _REPLACEMENTS[match.lastgroup]


def _param_names(param_list: str) -> List[str]:
    names = []
    for param in param_list.split(","):
        m = _PARAM_NAME.match(param)
        if m:
            names.append(m.group(1))
    return names


def bound_names(text: str) -> Set[str]:
    """Names introduced by declarations and parameter lists in ``text``."""
    names = set(_DECLARATION.findall(text))
    names.update(_BARE_ARROW_PARAM.findall(text))
    for pattern in (_FUNCTION_PARAMS, _ARROW_PARAMS):
        for param_list in pattern.findall(text):
            names.update(_param_names(param_list))
    return names - RESERVED_WORDS


def _rename_bound(text: str) -> str:
    names = bound_names(text)
    if not names:
        return text

    alternation = "|".join(re.escape(n) for n in sorted(names, key=len, reverse=True))
    pattern = re.compile(rf"(?<![\w$])(?:{alternation})(?![\w$])")

    def replace(match: "re.Match[str]") -> str:
        start = match.start()
        # Property access (obj.name) keeps its name; spread (...name) does not
        if start > 0 and text[start - 1] == "." and text[max(0, start - 3):start] != "...":
            return match.group(0)
        return NAME_PLACEHOLDER

    return pattern.sub(replace, text)


def normalize(raw_text: str) -> str:
    """
    Canonicalize a fragment for comparison.

    Removes comments, replaces each string literal with one placeholder per
    literal kind and each standalone number with a placeholder, replaces
    locally bound names with a placeholder and collapses whitespace.
    Token order is preserved and the result is a fixed point:
    normalize(normalize(x)) == normalize(x).
    """
    text = _LEXICAL.sub(_replace_literal, raw_text)
    text = _rename_bound(text)
    return _WHITESPACE.sub(" ", text).strip()


# --- classification -------------------------------------------------------

def _mentions(text: str, *needles: str) -> bool:
    return any(needle in text for needle in needles)


def is_api_handler(text: str) -> bool:
    return ("request" in text and "response" in text) or _mentions(
        text, "router.", "app.get", "app.post", "express", "ctx.body"
    )


def is_validator(text: str) -> bool:
    return _mentions(text, "validate", "schema", "zod", "yup") or (
        "if" in text and "throw" in text
    )


def is_component(text: str) -> bool:
    return _mentions(text, "return (", "jsx", "component", "props")


def is_class_method(text: str) -> bool:
    return _mentions(text, "class ", "this.")


def is_utility(text: str) -> bool:
    return "return " in text and "this" not in text and "new " not in text


def is_function(text: str) -> bool:
    return _mentions(text, "function", "=>")


# Evaluated top to bottom on lower-cased text, first match wins
CATEGORY_RULES: List[Tuple[Callable[[str], bool], Category]] = [
    (is_api_handler, Category.API_HANDLER),
    (is_validator, Category.VALIDATOR),
    (is_component, Category.COMPONENT),
    (is_class_method, Category.CLASS_METHOD),
    (is_utility, Category.UTILITY),
    (is_function, Category.FUNCTION),
]


def classify(raw_text: str) -> Category:
    """Assign a coarse category using the first matching rule."""
    lower = raw_text.lower()
    for predicate, category in CATEGORY_RULES:
        if predicate(lower):
            return category
    return Category.UNKNOWN


def estimate_tokens(text: str) -> int:
    """Rough context-window cost of ``text`` (about four characters per token)."""
    return math.ceil(len(text) / 4)
