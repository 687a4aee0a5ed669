"""
Module: payout_kernel.db.conditional
Responsibility: The single compare-and-swap write primitive.  Every status
    transition in the kernel (payment settlement, manual transitions, ledger
    approve/pay) goes through conditional_update().
Architecture position: Kernel > DB.  Used by services/ only.

Invariants enforced:
    - The precondition is evaluated by the database inside the UPDATE
      statement itself (``UPDATE ... WHERE id = :id AND status = :from``),
      never by a prior read.  Of any number of concurrent attempts on the
      same row, at most one observes rowcount = 1.
    - rowcount = 0 is a normal result ("already handled"), not an error.

Failure modes:
    - DB errors propagate unchanged; the caller's SAVEPOINT decides scope.
"""

from typing import Any

from sqlalchemy import ColumnElement, update
from sqlalchemy.orm import Session


def conditional_update(
    session: Session,
    model: type,
    *where: ColumnElement[bool],
    values: dict[str, Any],
) -> int:
    """
    Apply ``values`` to every ``model`` row matching all ``where`` clauses.

    Returns the number of rows the database reports as changed.  Instances
    already loaded into the session are expired so subsequent reads see the
    stored state.
    """
    stmt = (
        update(model)
        .where(*where)
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    result = session.execute(stmt)
    session.expire_all()
    return result.rowcount or 0
