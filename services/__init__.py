"""
Reservation & approval engine.

Each module owns one concern: ``identity`` (accounts and sessions),
``venues`` (venue store), ``approval`` (publication workflow), ``ledger``
(reservations) and ``notifications``. Route handlers call into these and
let ``utils.errors.ApiError`` subclasses propagate.
"""
