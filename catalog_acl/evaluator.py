from __future__ import annotations
from typing import Callable, Iterable, Optional, Sequence, Set, TypeVar

R = TypeVar("R")
T = TypeVar("T")


def first_match(rules: Iterable[R], user: str, *resource: str) -> Optional[R]:
    for rule in rules:
        if rule.matches(user, *resource):
            return rule
    return None


def decide(rules: Iterable[R], user: str, resource: Sequence[str], extract: Callable[[R], bool]) -> bool:
    """First matching rule decides; no matching rule means deny.

    A rule that matches and denies ends the scan, later rules are not consulted.
    """
    rule = first_match(rules, user, *resource)
    if rule is None:
        return False
    return bool(extract(rule))


def filter_allowed(candidates: Iterable[T], allowed: Callable[[T], bool]) -> Set[T]:
    # each candidate is decided on its own so membership always agrees with the single check
    return {candidate for candidate in candidates if allowed(candidate)}
