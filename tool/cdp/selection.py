"""
Target selection policy.

Picks one page target out of a discovery listing, either by exact id or by
URL/title substring filters. Pure functions, no I/O.
"""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Sequence

from .exceptions import CDPTargetNotFoundError

if TYPE_CHECKING:
    from .session import Target


@dataclass(frozen=True)
class SelectionCriteria:
    """
    How to choose a target.

    Attributes:
        target_id: Exact target id; when set, the substring filters are ignored
        url_contains: Case-sensitive substring the target URL must contain
        title_contains: Case-sensitive substring the target title must contain
    """

    target_id: Optional[str] = None
    url_contains: Optional[str] = None
    title_contains: Optional[str] = None


def select_target(
    targets: Sequence["Target"], criteria: Optional[SelectionCriteria] = None
) -> "Target":
    """
    Choose a target according to criteria.

    With no criteria (or empty criteria) the first target wins. Filters keep
    discovery order, so the first surviving target is returned.

    Args:
        targets: Page targets in discovery order
        criteria: Selection criteria

    Returns:
        The selected Target

    Raises:
        CDPTargetNotFoundError: If the list is empty, the exact id is unknown,
            or the filters eliminate every target
    """
    criteria = criteria or SelectionCriteria()

    if not targets:
        raise CDPTargetNotFoundError(
            "No page targets found",
            reason=CDPTargetNotFoundError.NO_TARGETS,
        )

    if criteria.target_id:
        for target in targets:
            if target.id == criteria.target_id:
                return target
        raise CDPTargetNotFoundError(
            f"Target id not found: {criteria.target_id}",
            reason=CDPTargetNotFoundError.NOT_FOUND,
            target_id=criteria.target_id,
        )

    matches = list(targets)
    if criteria.url_contains:
        matches = [t for t in matches if criteria.url_contains in t.url]
    if criteria.title_contains:
        matches = [t for t in matches if criteria.title_contains in t.title]

    if not matches:
        raise CDPTargetNotFoundError(
            "No targets matched the provided filters",
            reason=CDPTargetNotFoundError.NO_MATCH,
            url_pattern=criteria.url_contains,
        )

    return matches[0]
