# Copyright (c) Microsoft Corporation.
# Licensed under the MIT License.

"""Edit-distance suggestions for misspelled module and variable references."""

import difflib
from typing import Iterable, Optional


def suggest(
    ref: str, candidates: Iterable[str], n: int = 3, cutoff: float = 0.6
) -> Optional[str]:
    """Return a human-readable suggestion string for *ref*, or None if no close match."""
    if not ref:
        return None
    pool = sorted(dict.fromkeys(candidates))
    matches = difflib.get_close_matches(ref, pool, n=n, cutoff=cutoff)
    return ", ".join(f"'{m}'" for m in matches) if matches else None
