# Copyright 2026 Firefly Software Solutions Inc
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
Price comparison helpers.

Offer prices are kept as display text ("$1,234", "€890", "1.234,50 €").
Comparing them needs a numeric magnitude, which this module derives on
demand. Nothing here touches currencies: two offers in different currencies
compare by their raw numbers.
"""

from __future__ import annotations

import re
from typing import Iterable, Optional, Sequence, TypeVar

# Space-grouped thousands ("1 234") first, then any digit run with separators
_NUMBER_PATTERN = re.compile(r"\d{1,3}(?:[ \u00a0\u202f]\d{3})+(?:[.,]\d+)?|\d[\d.,]*")
_GROUP_SPACES = re.compile(r"[ \u00a0\u202f]")

T = TypeVar("T")


def _normalise_separators(token: str) -> str:
    last_comma = token.rfind(",")
    last_dot = token.rfind(".")

    if last_comma != -1 and last_dot != -1:
        # Whichever separator comes last is the decimal point
        if last_comma > last_dot:
            return token.replace(".", "").replace(",", ".")
        return token.replace(",", "")

    if last_comma == -1 and last_dot == -1:
        return token

    separator = "," if last_comma != -1 else "."
    groups = token.split(separator)
    if len(groups) > 2 or all(len(group) == 3 for group in groups[1:]):
        return token.replace(separator, "")
    return token.replace(separator, ".")


def derive_price(text: Optional[str]) -> Optional[float]:
    """
    Extract the numeric magnitude from a display price.

    The first number in the string wins. Comma and dot are resolved as
    thousands or decimal separators from their position and grouping.

    Args:
        text: Display price such as "$1,234", "€890" or "907"

    Returns:
        The price as a float, or None when the text holds no number

    Example:
        >>> derive_price("$1,234")
        1234.0
        >>> derive_price("1.234,50 €")
        1234.5
        >>> derive_price("price unavailable") is None
        True
    """
    if not text:
        return None

    match = _NUMBER_PATTERN.search(text)
    if not match:
        return None

    token = _GROUP_SPACES.sub("", match.group(0)).rstrip(".,")
    try:
        return float(_normalise_separators(token))
    except ValueError:
        return None


def cheapest_index(prices: Sequence[Optional[float]]) -> Optional[int]:
    """
    Return the index of the lowest price, ignoring None entries.

    Ties resolve to the first occurrence.
    """
    best: Optional[int] = None
    for index, price in enumerate(prices):
        if price is None:
            continue
        if best is None or price < prices[best]:
            best = index
    return best


def pick_cheapest(items: Iterable[T], price_of) -> Optional[T]:
    """
    Return the item with the lowest derived price.

    Args:
        items: Candidates in their original order
        price_of: Callable returning the display price of an item

    Returns:
        The first item holding the minimum price, or None when no item has
        a parseable price
    """
    candidates = list(items)
    index = cheapest_index([derive_price(price_of(item)) for item in candidates])
    return None if index is None else candidates[index]
