"""Hand-authored transition graph and phase progression tables."""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from .catalog import InternalStatus, StatusCategory

_S = InternalStatus
_C = StatusCategory

STRICT_TRANSITIONS: Mapping[InternalStatus, tuple[InternalStatus, ...]] = MappingProxyType(
    {
        _S.PENDING: (_S.REVIEWING_REQUEST, _S.IN_CONSULTATION, _S.CANCELLED),
        _S.REVIEWING_REQUEST: (_S.IN_CONSULTATION, _S.AWAITING_CLIENT_INFO, _S.SKETCHING, _S.CANCELLED),
        _S.IN_CONSULTATION: (
            _S.AWAITING_CLIENT_INFO,
            _S.SKETCHING,
            _S.PREPARING_QUOTE,
            _S.ON_HOLD,
            _S.CANCELLED,
        ),
        _S.AWAITING_CLIENT_INFO: (_S.IN_CONSULTATION, _S.ON_HOLD, _S.CANCELLED),
        _S.SKETCHING: (_S.SKETCH_REVIEW, _S.PREPARING_QUOTE, _S.ON_HOLD, _S.CANCELLED),
        _S.SKETCH_REVIEW: (_S.SKETCH_APPROVED, _S.SKETCHING, _S.ON_HOLD, _S.CANCELLED),
        _S.SKETCH_APPROVED: (_S.CREATING_CAD, _S.PREPARING_QUOTE, _S.ON_HOLD, _S.CANCELLED),
        _S.CREATING_CAD: (_S.CAD_REVIEW, _S.ON_HOLD, _S.CANCELLED),
        _S.CAD_REVIEW: (_S.CAD_APPROVED, _S.CAD_REVISION, _S.ON_HOLD, _S.CANCELLED),
        _S.CAD_REVISION: (_S.CAD_REVIEW, _S.ON_HOLD, _S.CANCELLED),
        _S.CAD_APPROVED: (_S.PREPARING_QUOTE, _S.ON_HOLD, _S.CANCELLED),
        _S.PREPARING_QUOTE: (_S.QUOTE_SENT, _S.ON_HOLD, _S.CANCELLED),
        _S.QUOTE_SENT: (_S.QUOTE_APPROVED, _S.QUOTE_REVISION, _S.ON_HOLD, _S.CANCELLED),
        _S.QUOTE_REVISION: (_S.QUOTE_SENT, _S.ON_HOLD, _S.CANCELLED),
        _S.QUOTE_APPROVED: (_S.DEPOSIT_INVOICE_SENT, _S.ORDERING_MATERIALS, _S.ON_HOLD, _S.CANCELLED),
        _S.DEPOSIT_INVOICE_SENT: (_S.DEPOSIT_RECEIVED, _S.ON_HOLD, _S.CANCELLED),
        _S.DEPOSIT_RECEIVED: (
            _S.ORDERING_MATERIALS,
            _S.READY_FOR_PRODUCTION,
            _S.IN_PRODUCTION,
            _S.ON_HOLD,
            _S.CANCELLED,
        ),
        _S.ORDERING_MATERIALS: (_S.MATERIALS_RECEIVED, _S.ON_HOLD, _S.CANCELLED),
        _S.MATERIALS_RECEIVED: (_S.READY_FOR_PRODUCTION, _S.IN_PRODUCTION, _S.ON_HOLD, _S.CANCELLED),
        _S.READY_FOR_PRODUCTION: (_S.IN_PRODUCTION, _S.CASTING, _S.ON_HOLD, _S.CANCELLED),
        _S.IN_PRODUCTION: (
            _S.CASTING,
            _S.SETTING_STONES,
            _S.POLISHING,
            _S.QUALITY_CHECK,
            _S.ON_HOLD,
            _S.CANCELLED,
        ),
        _S.CASTING: (_S.SETTING_STONES, _S.POLISHING, _S.QUALITY_CHECK, _S.ON_HOLD, _S.CANCELLED),
        _S.SETTING_STONES: (_S.POLISHING, _S.QUALITY_CHECK, _S.ON_HOLD, _S.CANCELLED),
        _S.POLISHING: (_S.QUALITY_CHECK, _S.FINAL_PAYMENT_SENT, _S.ON_HOLD, _S.CANCELLED),
        _S.QUALITY_CHECK: (
            _S.FINAL_PAYMENT_SENT,
            _S.PAID_IN_FULL,
            _S.READY_FOR_PICKUP,
            _S.POLISHING,  # rework
            _S.ON_HOLD,
            _S.CANCELLED,
        ),
        _S.FINAL_PAYMENT_SENT: (_S.PAID_IN_FULL, _S.ON_HOLD, _S.CANCELLED),
        _S.PAID_IN_FULL: (_S.READY_FOR_PICKUP, _S.SHIPPED, _S.DELIVERED, _S.COMPLETED),
        _S.READY_FOR_PICKUP: (_S.DELIVERED, _S.COMPLETED),
        _S.SHIPPED: (_S.DELIVERED, _S.COMPLETED),
        _S.DELIVERED: (_S.COMPLETED,),
        _S.COMPLETED: (),
        _S.ON_HOLD: (
            _S.IN_CONSULTATION,
            _S.SKETCHING,
            _S.CREATING_CAD,
            _S.PREPARING_QUOTE,
            _S.IN_PRODUCTION,
            _S.CANCELLED,
        ),
        _S.CANCELLED: (_S.REFUNDED,),
        _S.REFUNDED: (),
    }
)

GENERAL_STATUSES: tuple[InternalStatus, ...] = (_S.AWAITING_CLIENT_INFO, _S.ON_HOLD, _S.CANCELLED)

FORWARD_PHASES: Mapping[StatusCategory, tuple[StatusCategory, ...]] = MappingProxyType(
    {
        _C.INITIAL: (_C.DESIGN, _C.QUOTE),
        _C.DESIGN: (_C.QUOTE, _C.PAYMENT),
        _C.QUOTE: (_C.PAYMENT, _C.PREPARATION),
        _C.PAYMENT: (_C.PREPARATION, _C.PRODUCTION),
        _C.PREPARATION: (_C.PRODUCTION,),
        _C.PRODUCTION: (_C.COMPLETION,),
        _C.COMPLETION: (),
        _C.SPECIAL: (),
    }
)

BACKWARD_PHASES: Mapping[StatusCategory, tuple[StatusCategory, ...]] = MappingProxyType(
    {
        _C.INITIAL: (),
        _C.DESIGN: (_C.INITIAL,),
        _C.QUOTE: (_C.INITIAL, _C.DESIGN),
        _C.PAYMENT: (_C.QUOTE,),
        _C.PREPARATION: (_C.PAYMENT,),
        _C.PRODUCTION: (_C.PREPARATION,),
        _C.COMPLETION: (_C.PRODUCTION,),
        _C.SPECIAL: (),
    }
)

# Status offered when moving forward into a phase.
FORWARD_ENTRY_POINTS: Mapping[StatusCategory, InternalStatus] = MappingProxyType(
    {
        _C.DESIGN: _S.SKETCHING,
        _C.QUOTE: _S.PREPARING_QUOTE,
        _C.PAYMENT: _S.DEPOSIT_INVOICE_SENT,
        _C.PREPARATION: _S.ORDERING_MATERIALS,
        _C.PRODUCTION: _S.IN_PRODUCTION,
        _C.COMPLETION: _S.FINAL_PAYMENT_SENT,
    }
)

# Status offered when stepping back into an earlier phase.
BACKWARD_ENTRY_POINTS: Mapping[StatusCategory, InternalStatus] = MappingProxyType(
    {
        _C.INITIAL: _S.IN_CONSULTATION,
        _C.DESIGN: _S.SKETCHING,
        _C.QUOTE: _S.PREPARING_QUOTE,
        _C.PAYMENT: _S.DEPOSIT_INVOICE_SENT,
        _C.PREPARATION: _S.ORDERING_MATERIALS,
        _C.PRODUCTION: _S.IN_PRODUCTION,
    }
)


@dataclass(frozen=True, slots=True)
class TransitionRules:
    """Bundle of the strict graph plus the phase expansion tables."""

    strict_transitions: Mapping[InternalStatus, tuple[InternalStatus, ...]] = field(
        default_factory=lambda: STRICT_TRANSITIONS
    )
    general_statuses: tuple[InternalStatus, ...] = GENERAL_STATUSES
    forward_phases: Mapping[StatusCategory, tuple[StatusCategory, ...]] = field(
        default_factory=lambda: FORWARD_PHASES
    )
    backward_phases: Mapping[StatusCategory, tuple[StatusCategory, ...]] = field(
        default_factory=lambda: BACKWARD_PHASES
    )
    forward_entry_points: Mapping[StatusCategory, InternalStatus] = field(
        default_factory=lambda: FORWARD_ENTRY_POINTS
    )
    backward_entry_points: Mapping[StatusCategory, InternalStatus] = field(
        default_factory=lambda: BACKWARD_ENTRY_POINTS
    )

    def __post_init__(self) -> None:
        for source, targets in self.strict_transitions.items():
            if not isinstance(source, InternalStatus):
                raise ValueError(f"Unknown source status in transition graph: {source!r}")
            unknown = [target for target in targets if not isinstance(target, InternalStatus)]
            if unknown:
                raise ValueError(f"Unknown target statuses for {source.value}: {unknown!r}")
        missing = [status.value for status in InternalStatus if status not in self.strict_transitions]
        if missing:
            raise ValueError(f"Transition graph has no entry for: {', '.join(missing)}")

    @classmethod
    def default(cls) -> "TransitionRules":
        return cls()

    @property
    def terminal_statuses(self) -> frozenset[InternalStatus]:
        return frozenset(status for status, targets in self.strict_transitions.items() if not targets)

    def strict_targets(self, status: InternalStatus) -> tuple[InternalStatus, ...]:
        return self.strict_transitions.get(status, ())
