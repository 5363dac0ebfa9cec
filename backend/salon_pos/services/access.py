# Overview: Branch scoping rules for the acting user.

from __future__ import annotations

from ..errors import AccessDeniedError


GLOBAL_ROLES = ("owner", "developer")


def is_global(actor) -> bool:
    return actor is None or actor.role in GLOBAL_ROLES


def scoped_branch_id(actor, requested_branch_id: int | None) -> int | None:
    """
    Branch filter to apply for `actor`.

    Owners and developers may look at any branch (or all of them); everyone
    else is pinned to their own branch whatever they asked for.
    """
    if is_global(actor):
        return requested_branch_id
    if actor.branch_id is None:
        raise AccessDeniedError("User is not assigned to a branch")
    return actor.branch_id


def ensure_branch_access(actor, branch_id: int) -> None:
    if is_global(actor):
        return
    if actor.branch_id != branch_id:
        raise AccessDeniedError("Access denied to this branch")
