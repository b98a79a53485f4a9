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
Tokenizer - reduces normalized text to comparison tokens.
"""

import re
from typing import List

MIN_TOKEN_LENGTH = 3

# Structural keywords present in nearly every block; they carry no signal
STOPWORDS = frozenset({
    "return", "const", "let", "var", "function", "class", "new", "if", "else",
    "for", "while", "async", "await", "try", "catch", "switch", "case",
    "default", "import", "export", "from", "true", "false", "null",
    "undefined", "this",
})

_SPLIT = re.compile(r"[\s(){}\[\];,.]+")


def tokenize(normalized_text: str) -> List[str]:
    """Split on whitespace and punctuation, dropping short tokens and stopwords."""
    return [
        token
        for token in _SPLIT.split(normalized_text)
        if len(token) >= MIN_TOKEN_LENGTH and token.lower() not in STOPWORDS
    ]
