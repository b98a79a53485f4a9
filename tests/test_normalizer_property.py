import string

import pytest

pytest.importorskip("hypothesis")
from hypothesis import given, settings, strategies as st

from pattern_detect.normalizer import normalize

pytestmark = [pytest.mark.property]

JS_ALPHABET = string.ascii_letters + string.digits + " \n\t(){}[];,.=+-*/<>!&|'\"`\\_$:?"
LITERAL_SAFE = string.ascii_letters + string.digits + " .,:;!?-_()[]{}"


@settings(max_examples=200, deadline=None)
@given(st.text(alphabet=JS_ALPHABET, max_size=200))
def test_normalize_is_idempotent(text):
    once = normalize(text)
    assert normalize(once) == once


@settings(max_examples=100, deadline=None)
@given(
    st.text(alphabet=LITERAL_SAFE, max_size=40),
    st.text(alphabet=LITERAL_SAFE, max_size=40),
    st.integers(min_value=0, max_value=10**6),
    st.integers(min_value=0, max_value=10**6),
)
def test_literal_values_never_change_the_normal_form(text_a, text_b, num_a, num_b):
    template = 'function send(client) {{\n  client.post("{}", {});\n}}'
    assert normalize(template.format(text_a, num_a)) == normalize(template.format(text_b, num_b))
