"""
Module: ledger_kernel.selectors.base
Responsibility: Base class for read-only selectors over the ledger store.
Architecture position: Kernel > Selectors.  May import from db/, models/
    and domain/ (selectors return frozen domain records).

Invariants enforced:
    - Read-only access: selectors MUST NOT call session.add(),
      session.delete(), session.flush() or session.commit().
    - Session ownership: the caller owns the session and its transaction
      scope; selectors never open their own.
"""

from abc import ABC

from sqlalchemy.orm import Session


class BaseSelector(ABC):
    """
    Abstract base class for all selectors.

    Guarantees:
        - session is stored as a public attribute for subclass query use.
        - No commit, flush, add, or delete operations are performed.
    """

    def __init__(self, session: Session):
        self.session = session
