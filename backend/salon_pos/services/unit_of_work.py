# Overview: Transaction boundary shared by every write operation.

from __future__ import annotations


class UnitOfWork:
    """
    One database transaction around a whole write operation.

        with UnitOfWork(session):
            ...  # flushes happen inside, commit happens on clean exit

    Any exception rolls back everything written inside the block and is
    re-raised unchanged.
    """

    def __init__(self, session):
        self.session = session

    def __enter__(self) -> "UnitOfWork":
        return self

    def __exit__(self, exc_type, exc, tb) -> bool:
        if exc_type is not None:
            self.session.rollback()
            return False
        try:
            self.session.commit()
        except Exception:
            self.session.rollback()
            raise
        return False
