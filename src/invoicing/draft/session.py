"""Draft editing session: recompute trigger and idempotence guard.

The session owns the committed draft and its derivation. Each user edit runs
exactly one derivation pass:

State Machine:
    IDLE → DIRTY → COMPUTING → IDLE

The derivation writes ``discount.amount`` and ``total`` back into the draft.
Those writes are folded in by the session itself and never travel through
:meth:`DraftSession.dispatch`, so leaving COMPUTING can never re-enter DIRTY.
A pass commits (and notifies observers) only when its result differs by value
from what is already committed. An observer that raises is logged and
skipped; the commit and the remaining observers are unaffected.
"""

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum

import structlog
from protean.exceptions import ValidationError

from invoicing.draft.draft import InvoiceDraft, apply_edit
from invoicing.pricing.totals import Derivation, derive_totals

logger = structlog.get_logger(__name__)

Observer = Callable[[InvoiceDraft, Derivation], None]


class SessionState(Enum):
    IDLE = "Idle"
    DIRTY = "Dirty"
    COMPUTING = "Computing"


@dataclass(frozen=True)
class EditOutcome:
    """Result of dispatching one edit.

    ``accepted`` is False when the edit was refused (``notice`` says why);
    ``committed`` is True when a new draft/derivation was committed.
    """

    accepted: bool
    committed: bool
    notice: str | None = None


class DraftSession:
    def __init__(self, draft: InvoiceDraft | None = None):
        self._state = SessionState.IDLE
        self._observers: list[Observer] = []
        initial = draft if draft is not None else InvoiceDraft.blank()
        self._derivation = derive_totals(initial.lines, initial.global_discount)
        self._draft = initial.with_derivation(self._derivation)

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def draft(self) -> InvoiceDraft:
        return self._draft

    @property
    def derivation(self) -> Derivation:
        return self._derivation

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """Register ``observer`` for commits; returns a callable that unsubscribes it."""
        self._observers.append(observer)

        def unsubscribe():
            if observer in self._observers:
                self._observers.remove(observer)

        return unsubscribe

    def dispatch(self, edit) -> EditOutcome:
        """Apply a user edit and run one derivation pass."""
        if self._state is not SessionState.IDLE:
            raise RuntimeError(f"Cannot dispatch {type(edit).__name__} while {self._state.value}")

        self._state = SessionState.DIRTY
        try:
            candidate = apply_edit(edit, self._draft)
        except ValidationError as exc:
            self._state = SessionState.IDLE
            notice = _notice_from(exc)
            logger.warning("Edit refused", edit=type(edit).__name__, notice=notice)
            return EditOutcome(accepted=False, committed=False, notice=notice)
        except Exception:
            self._state = SessionState.IDLE
            raise

        return EditOutcome(accepted=True, committed=self._recompute(candidate))

    def refresh(self) -> bool:
        """Re-run the derivation on the committed draft.

        Returns whether anything was committed; on already-derived state this
        is always False.
        """
        if self._state is not SessionState.IDLE:
            raise RuntimeError(f"Cannot refresh while {self._state.value}")
        self._state = SessionState.DIRTY
        return self._recompute(self._draft)

    def _recompute(self, candidate: InvoiceDraft) -> bool:
        self._state = SessionState.COMPUTING
        try:
            derivation = derive_totals(candidate.lines, candidate.global_discount)
            derived = candidate.with_derivation(derivation)
        finally:
            self._state = SessionState.IDLE

        if derived == self._draft and derivation == self._derivation:
            return False

        self._draft = derived
        self._derivation = derivation

        logger.debug(
            "Draft committed",
            lines=len(derived.lines),
            subtotal=derivation.subtotal,
            tax_total=derivation.tax_total,
            total=derivation.total,
        )
        for observer in list(self._observers):
            # The commit stands; one failing observer must not starve the rest.
            try:
                observer(derived, derivation)
            except Exception:
                logger.exception("Draft observer failed", observer=getattr(observer, "__name__", repr(observer)))
        return True


def _notice_from(exc: ValidationError) -> str:
    messages = getattr(exc, "messages", None)
    if not isinstance(messages, dict):
        return str(exc)
    parts = []
    for values in messages.values():
        parts.extend(values if isinstance(values, list) else [values])
    return "; ".join(str(part) for part in parts)
