from collections.abc import Sequence
from difflib import get_close_matches

from habitlog.core.errors import AmbiguousError
from habitlog.core.models import Habit

__all__ = ["find_in_pool", "find_in_pool_exact"]

FUZZY_MATCH_CUTOFF = 0.8


def _match_uuid_prefix(ref: str, pool: Sequence[Habit]) -> Habit | None:
    ref_lower = ref.lower()
    matches = [item for item in pool if item.id.startswith(ref_lower)]
    if len(matches) == 1:
        return matches[0]
    if len(matches) > 1:
        exact = next((item for item in matches if item.id == ref_lower), None)
        if exact:
            return exact

        sample = [item.id[:8] for item in matches[:3]]
        raise AmbiguousError(ref, count=len(matches), sample=sample)
    return None


def _match_substring(ref: str, pool: Sequence[Habit]) -> Habit | None:
    ref_lower = ref.lower()
    exact = [item for item in pool if item.name.lower() == ref_lower]
    if len(exact) == 1:
        return exact[0]
    matches = exact or [item for item in pool if ref_lower in item.name.lower()]
    if len(matches) == 1:
        return matches[0]
    if len(matches) > 1:
        sample = [item.name for item in matches[:3]]
        raise AmbiguousError(ref, count=len(matches), sample=sample)
    return None


def _match_fuzzy(ref: str, pool: Sequence[Habit]) -> Habit | None:
    ref_lower = ref.lower()
    names = [item.name.lower() for item in pool]
    matches = get_close_matches(ref_lower, names, n=1, cutoff=FUZZY_MATCH_CUTOFF)
    if matches:
        return next(item for item in pool if item.name.lower() == matches[0])
    return None


def find_in_pool(ref: str, pool: Sequence[Habit]) -> Habit | None:
    if not pool or not ref.strip():
        return None
    return _match_uuid_prefix(ref, pool) or _match_substring(ref, pool) or _match_fuzzy(ref, pool)


def find_in_pool_exact(ref: str, pool: Sequence[Habit]) -> Habit | None:
    if not pool or not ref.strip():
        return None
    return _match_uuid_prefix(ref, pool) or _match_substring(ref, pool)
