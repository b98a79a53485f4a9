from typing import Iterable, List

import pytest

from pattern_detect.models import SourceFile

ORDER_TOTAL = """function calculateTotal(items) {
  let total = 0;
  for (const item of items) {
    if (item.price > 100) {
      total += item.price * item.quantity;
    }
  }
  console.log("computed order total");
  return total;
}"""

# Same logic as ORDER_TOTAL, different names and message
ORDER_SUM = """function sumOrder(products) {
  let sum = 0;
  for (const product of products) {
    if (product.price > 100) {
      sum += product.price * product.quantity;
    }
  }
  console.log("done");
  return sum;
}"""


def unique_function(key: str, size: int = 6) -> str:
    """A block of ``size`` lines whose vocabulary no other key shares."""
    lines = [f"function build_{key}(input) {{"]
    for m in range(size - 2):
        lines.append(f"  input.{key}Field{m}.{key}Call{m}();")
    lines.append("}")
    return "\n".join(lines)


def shared_function(key: str, words: Iterable[str]) -> str:
    """A block that calls every word in ``words`` and nothing else."""
    lines = [f"function build_{key}(input) {{"]
    lines.extend(f"  input.{word}();" for word in words)
    lines.append("}")
    return "\n".join(lines)


def filler_files(count: int, prefix: str = "filler") -> List[SourceFile]:
    return [
        SourceFile(path=f"{prefix}/{n:03d}.js", text=unique_function(f"{prefix}{n}"))
        for n in range(count)
    ]


@pytest.fixture
def order_files() -> List[SourceFile]:
    return [
        SourceFile(path="src/orders.js", text=ORDER_TOTAL),
        SourceFile(path="src/cart.js", text=ORDER_SUM),
    ]


@pytest.fixture
def approx_corpus() -> List[SourceFile]:
    """30 unrelated files plus two files sharing ten rare tokens."""
    words = [f"sharedWord{n}" for n in range(10)]
    return filler_files(30) + [
        SourceFile(path="pair/left.js", text=shared_function("left", words)),
        SourceFile(path="pair/right.js", text=shared_function("right", words)),
    ]
