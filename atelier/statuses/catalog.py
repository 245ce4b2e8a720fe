"""Static registry of ticket statuses and their display metadata."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping


class StatusCategory(str, Enum):
    """Workflow phases an internal status belongs to."""

    INITIAL = "initial"
    DESIGN = "design"
    QUOTE = "quote"
    PAYMENT = "payment"
    PREPARATION = "preparation"
    PRODUCTION = "production"
    COMPLETION = "completion"
    SPECIAL = "special"


class InternalStatus(str, Enum):
    """Fine-grained statuses tracked by staff."""

    # initial
    PENDING = "pending"
    REVIEWING_REQUEST = "reviewing-request"
    IN_CONSULTATION = "in-consultation"
    AWAITING_CLIENT_INFO = "awaiting-client-info"

    # design
    SKETCHING = "sketching"
    SKETCH_REVIEW = "sketch-review"
    SKETCH_APPROVED = "sketch-approved"
    CREATING_CAD = "creating-cad"
    CAD_REVIEW = "cad-review"
    CAD_REVISION = "cad-revision"
    CAD_APPROVED = "cad-approved"

    # quote
    PREPARING_QUOTE = "preparing-quote"
    QUOTE_SENT = "quote-sent"
    QUOTE_REVISION = "quote-revision"
    QUOTE_APPROVED = "quote-approved"

    # payment
    DEPOSIT_INVOICE_SENT = "deposit-invoice-sent"
    DEPOSIT_RECEIVED = "deposit-received"

    # preparation
    ORDERING_MATERIALS = "ordering-materials"
    MATERIALS_RECEIVED = "materials-received"
    READY_FOR_PRODUCTION = "ready-for-production"

    # production
    IN_PRODUCTION = "in-production"
    CASTING = "casting"
    SETTING_STONES = "setting-stones"
    POLISHING = "polishing"
    QUALITY_CHECK = "quality-check"

    # completion
    FINAL_PAYMENT_SENT = "final-payment-sent"
    PAID_IN_FULL = "paid-in-full"
    READY_FOR_PICKUP = "ready-for-pickup"
    SHIPPED = "shipped"
    DELIVERED = "delivered"
    COMPLETED = "completed"

    # special
    ON_HOLD = "on-hold"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class ClientStatus(str, Enum):
    """Coarse statuses shown to the customer."""

    PENDING_REVIEW = "pending-review"
    IN_CONSULTATION = "in-consultation"
    AWAITING_YOUR_RESPONSE = "awaiting-your-response"
    IN_DESIGN = "in-design"
    QUOTE_PENDING = "quote-pending"
    PAYMENT_PENDING = "payment-pending"
    IN_PRODUCTION = "in-production"
    READY_FOR_DELIVERY = "ready-for-delivery"
    COMPLETED = "completed"
    ON_HOLD = "on-hold"
    CANCELLED = "cancelled"


class StatusColor(str, Enum):
    """Chip colours understood by the admin UI."""

    DEFAULT = "default"
    PRIMARY = "primary"
    SUCCESS = "success"
    WARNING = "warning"
    ERROR = "error"
    INFO = "info"


@dataclass(frozen=True, slots=True)
class StatusDisplayInfo:
    """Human readable metadata attached to a status."""

    label: str
    description: str
    color: StatusColor
    icon: str
    category: StatusCategory | None = None
    requires_action: bool = False


CATEGORY_ORDER: tuple[StatusCategory, ...] = tuple(StatusCategory)

PHASE_NAMES: Mapping[StatusCategory, str] = MappingProxyType(
    {
        StatusCategory.INITIAL: "Initial Review",
        StatusCategory.DESIGN: "Design Process",
        StatusCategory.QUOTE: "Quote & Approval",
        StatusCategory.PAYMENT: "Payment Processing",
        StatusCategory.PREPARATION: "Production Preparation",
        StatusCategory.PRODUCTION: "Production",
        StatusCategory.COMPLETION: "Completion",
        StatusCategory.SPECIAL: "Special Actions",
    }
)

DEFAULT_CLIENT_STATUS = ClientStatus.PENDING_REVIEW


def _internal(
    label: str,
    description: str,
    color: StatusColor,
    icon: str,
    category: StatusCategory,
    requires_action: bool = False,
) -> StatusDisplayInfo:
    return StatusDisplayInfo(
        label=label,
        description=description,
        color=color,
        icon=icon,
        category=category,
        requires_action=requires_action,
    )


_S = InternalStatus
_C = StatusCategory
_K = StatusColor

INTERNAL_STATUS_INFO: Mapping[InternalStatus, StatusDisplayInfo] = MappingProxyType(
    {
        _S.PENDING: _internal("Pending Review", "Request received, awaiting initial review", _K.WARNING, "⏳", _C.INITIAL, True),
        _S.REVIEWING_REQUEST: _internal("Reviewing Request", "Admin reviewing request details", _K.INFO, "👀", _C.INITIAL, True),
        _S.IN_CONSULTATION: _internal("In Consultation", "Discussing requirements with client", _K.INFO, "💬", _C.INITIAL),
        _S.AWAITING_CLIENT_INFO: _internal(
            "Awaiting Client Info", "Waiting for additional information from client", _K.WARNING, "❓", _C.INITIAL
        ),
        _S.SKETCHING: _internal("Sketching", "Creating initial design sketches", _K.PRIMARY, "✏️", _C.DESIGN, True),
        _S.SKETCH_REVIEW: _internal("Sketch Review", "Client reviewing sketches", _K.WARNING, "🎨", _C.DESIGN),
        _S.SKETCH_APPROVED: _internal("Sketch Approved", "Sketches approved, moving to CAD", _K.SUCCESS, "✅", _C.DESIGN),
        _S.CREATING_CAD: _internal("Creating CAD", "Creating 3D CAD model", _K.PRIMARY, "🖥️", _C.DESIGN, True),
        _S.CAD_REVIEW: _internal("CAD Review", "Client reviewing 3D model", _K.WARNING, "🔍", _C.DESIGN),
        _S.CAD_REVISION: _internal("CAD Revision", "Making changes to CAD model", _K.WARNING, "🔄", _C.DESIGN, True),
        _S.CAD_APPROVED: _internal("CAD Approved", "CAD model approved, ready for quote", _K.SUCCESS, "✅", _C.DESIGN),
        _S.PREPARING_QUOTE: _internal("Preparing Quote", "Creating price quotation", _K.INFO, "💰", _C.QUOTE, True),
        _S.QUOTE_SENT: _internal("Quote Sent", "Price quote sent to client", _K.INFO, "📨", _C.QUOTE),
        _S.QUOTE_REVISION: _internal("Quote Revision", "Revising price quote", _K.WARNING, "📝", _C.QUOTE, True),
        _S.QUOTE_APPROVED: _internal("Quote Approved", "Quote approved by client", _K.SUCCESS, "✅", _C.QUOTE),
        _S.DEPOSIT_INVOICE_SENT: _internal(
            "Deposit Invoice Sent", "Deposit invoice sent to client", _K.WARNING, "💸", _C.PAYMENT
        ),
        _S.DEPOSIT_RECEIVED: _internal("Deposit Received", "Deposit payment received", _K.SUCCESS, "💰", _C.PAYMENT),
        _S.ORDERING_MATERIALS: _internal(
            "Ordering Materials", "Ordering stones and metals", _K.PRIMARY, "📦", _C.PREPARATION, True
        ),
        _S.MATERIALS_RECEIVED: _internal(
            "Materials Received", "All materials have arrived", _K.SUCCESS, "📥", _C.PREPARATION
        ),
        _S.READY_FOR_PRODUCTION: _internal(
            "Ready for Production", "All materials ready, can start production", _K.SUCCESS, "🚀", _C.PREPARATION
        ),
        _S.IN_PRODUCTION: _internal("In Production", "Actively creating the piece", _K.PRIMARY, "🔨", _C.PRODUCTION, True),
        _S.CASTING: _internal("Casting", "Casting the metal components", _K.PRIMARY, "⚗️", _C.PRODUCTION, True),
        _S.SETTING_STONES: _internal(
            "Setting Stones", "Setting gemstones into piece", _K.PRIMARY, "💎", _C.PRODUCTION, True
        ),
        _S.POLISHING: _internal("Polishing", "Final polishing and finishing", _K.PRIMARY, "✨", _C.PRODUCTION, True),
        _S.QUALITY_CHECK: _internal(
            "Quality Check", "Final quality control inspection", _K.WARNING, "🔍", _C.PRODUCTION, True
        ),
        _S.FINAL_PAYMENT_SENT: _internal(
            "Final Payment Sent", "Final invoice sent to client", _K.WARNING, "💳", _C.COMPLETION
        ),
        _S.PAID_IN_FULL: _internal("Paid in Full", "Full payment received", _K.SUCCESS, "💰", _C.COMPLETION),
        _S.READY_FOR_PICKUP: _internal(
            "Ready for Pickup", "Piece ready for client pickup", _K.SUCCESS, "📍", _C.COMPLETION
        ),
        _S.SHIPPED: _internal("Shipped", "Shipped to client", _K.INFO, "🚚", _C.COMPLETION),
        _S.DELIVERED: _internal("Delivered", "Successfully delivered to client", _K.SUCCESS, "📦", _C.COMPLETION),
        _S.COMPLETED: _internal("Completed", "Project fully complete", _K.SUCCESS, "🎉", _C.COMPLETION),
        _S.ON_HOLD: _internal("On Hold", "Project temporarily paused", _K.DEFAULT, "⏸️", _C.SPECIAL),
        _S.CANCELLED: _internal("Cancelled", "Project cancelled", _K.ERROR, "❌", _C.SPECIAL),
        _S.REFUNDED: _internal("Refunded", "Payment refunded to client", _K.ERROR, "💸", _C.SPECIAL),
    }
)

CLIENT_STATUS_INFO: Mapping[ClientStatus, StatusDisplayInfo] = MappingProxyType(
    {
        ClientStatus.PENDING_REVIEW: StatusDisplayInfo("Pending Review", "Your request is being reviewed", _K.WARNING, "⏳"),
        ClientStatus.IN_CONSULTATION: StatusDisplayInfo("In Consultation", "We are discussing your project", _K.INFO, "💬"),
        ClientStatus.AWAITING_YOUR_RESPONSE: StatusDisplayInfo(
            "Awaiting Your Response", "We need your input to continue", _K.WARNING, "❓"
        ),
        ClientStatus.IN_DESIGN: StatusDisplayInfo("In Design", "We are creating your design", _K.PRIMARY, "🎨"),
        ClientStatus.QUOTE_PENDING: StatusDisplayInfo("Quote Pending", "We are preparing your quote", _K.INFO, "💰"),
        ClientStatus.PAYMENT_PENDING: StatusDisplayInfo("Payment Pending", "Payment required to continue", _K.WARNING, "💳"),
        ClientStatus.IN_PRODUCTION: StatusDisplayInfo("In Production", "Your piece is being created", _K.PRIMARY, "🔨"),
        ClientStatus.READY_FOR_DELIVERY: StatusDisplayInfo("Ready for Delivery", "Your piece is ready!", _K.SUCCESS, "📦"),
        ClientStatus.COMPLETED: StatusDisplayInfo("Completed", "Project complete!", _K.SUCCESS, "🎉"),
        ClientStatus.ON_HOLD: StatusDisplayInfo("On Hold", "Project temporarily paused", _K.DEFAULT, "⏸️"),
        ClientStatus.CANCELLED: StatusDisplayInfo("Cancelled", "Project cancelled", _K.ERROR, "❌"),
    }
)

INTERNAL_TO_CLIENT: Mapping[InternalStatus, ClientStatus] = MappingProxyType(
    {
        _S.PENDING: ClientStatus.PENDING_REVIEW,
        _S.REVIEWING_REQUEST: ClientStatus.PENDING_REVIEW,
        _S.IN_CONSULTATION: ClientStatus.IN_CONSULTATION,
        _S.AWAITING_CLIENT_INFO: ClientStatus.AWAITING_YOUR_RESPONSE,
        _S.SKETCHING: ClientStatus.IN_DESIGN,
        _S.SKETCH_REVIEW: ClientStatus.AWAITING_YOUR_RESPONSE,
        _S.SKETCH_APPROVED: ClientStatus.IN_DESIGN,
        _S.CREATING_CAD: ClientStatus.IN_DESIGN,
        _S.CAD_REVIEW: ClientStatus.AWAITING_YOUR_RESPONSE,
        _S.CAD_REVISION: ClientStatus.IN_DESIGN,
        _S.CAD_APPROVED: ClientStatus.IN_DESIGN,
        _S.PREPARING_QUOTE: ClientStatus.QUOTE_PENDING,
        _S.QUOTE_SENT: ClientStatus.AWAITING_YOUR_RESPONSE,
        _S.QUOTE_REVISION: ClientStatus.QUOTE_PENDING,
        _S.QUOTE_APPROVED: ClientStatus.PAYMENT_PENDING,
        _S.DEPOSIT_INVOICE_SENT: ClientStatus.PAYMENT_PENDING,
        _S.DEPOSIT_RECEIVED: ClientStatus.IN_PRODUCTION,
        _S.ORDERING_MATERIALS: ClientStatus.IN_PRODUCTION,
        _S.MATERIALS_RECEIVED: ClientStatus.IN_PRODUCTION,
        _S.READY_FOR_PRODUCTION: ClientStatus.IN_PRODUCTION,
        _S.IN_PRODUCTION: ClientStatus.IN_PRODUCTION,
        _S.CASTING: ClientStatus.IN_PRODUCTION,
        _S.SETTING_STONES: ClientStatus.IN_PRODUCTION,
        _S.POLISHING: ClientStatus.IN_PRODUCTION,
        _S.QUALITY_CHECK: ClientStatus.IN_PRODUCTION,
        _S.FINAL_PAYMENT_SENT: ClientStatus.PAYMENT_PENDING,
        _S.PAID_IN_FULL: ClientStatus.READY_FOR_DELIVERY,
        _S.READY_FOR_PICKUP: ClientStatus.READY_FOR_DELIVERY,
        _S.SHIPPED: ClientStatus.READY_FOR_DELIVERY,
        _S.DELIVERED: ClientStatus.COMPLETED,
        _S.COMPLETED: ClientStatus.COMPLETED,
        _S.ON_HOLD: ClientStatus.ON_HOLD,
        _S.CANCELLED: ClientStatus.CANCELLED,
        _S.REFUNDED: ClientStatus.CANCELLED,
    }
)


def coerce_internal_status(value: Any) -> InternalStatus | None:
    """Return the matching :class:`InternalStatus` or ``None`` for unknown input."""

    if isinstance(value, InternalStatus):
        return value
    try:
        return InternalStatus(value)
    except (TypeError, ValueError):
        return None


def coerce_client_status(value: Any) -> ClientStatus | None:
    if isinstance(value, ClientStatus):
        return value
    try:
        return ClientStatus(value)
    except (TypeError, ValueError):
        return None


def coerce_category(value: Any) -> StatusCategory | None:
    if isinstance(value, StatusCategory):
        return value
    try:
        return StatusCategory(value)
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True, slots=True)
class StatusCatalog:
    """Immutable lookup tables for internal and client statuses.

    Every lookup is total: unknown statuses yield ``None`` (or the default
    client status for the mapper) instead of raising.
    """

    internal_info: Mapping[InternalStatus, StatusDisplayInfo] = field(
        default_factory=lambda: INTERNAL_STATUS_INFO
    )
    client_info: Mapping[ClientStatus, StatusDisplayInfo] = field(
        default_factory=lambda: CLIENT_STATUS_INFO
    )
    client_mapping: Mapping[InternalStatus, ClientStatus] = field(
        default_factory=lambda: INTERNAL_TO_CLIENT
    )
    default_client_status: ClientStatus = DEFAULT_CLIENT_STATUS

    def __post_init__(self) -> None:
        missing_info = [status.value for status in InternalStatus if status not in self.internal_info]
        if missing_info:
            raise ValueError(f"Missing display info for internal statuses: {', '.join(missing_info)}")
        uncategorised = [status.value for status, info in self.internal_info.items() if info.category is None]
        if uncategorised:
            raise ValueError(f"Internal statuses without a category: {', '.join(uncategorised)}")
        missing_client = [status.value for status in ClientStatus if status not in self.client_info]
        if missing_client:
            raise ValueError(f"Missing display info for client statuses: {', '.join(missing_client)}")
        unmapped = [status.value for status in InternalStatus if status not in self.client_mapping]
        if unmapped:
            raise ValueError(f"Internal statuses without a client mapping: {', '.join(unmapped)}")

    @classmethod
    def default(cls) -> "StatusCatalog":
        return cls()

    def get_display_info(self, status: Any, is_internal: bool = True) -> StatusDisplayInfo | None:
        """Return display metadata for an internal or client status.

        ``is_internal`` is accepted for API compatibility and ignored: the
        internal table is consulted first, then the client table.
        """

        internal = coerce_internal_status(status)
        if internal is not None and internal in self.internal_info:
            return self.internal_info[internal]
        client = coerce_client_status(status)
        if client is not None:
            return self.client_info.get(client)
        return None

    def get_client_display_info(self, status: Any) -> StatusDisplayInfo | None:
        client = coerce_client_status(status)
        if client is None:
            return None
        return self.client_info.get(client)

    def get_client_status(self, internal_status: Any) -> ClientStatus:
        internal = coerce_internal_status(internal_status)
        if internal is None:
            return self.default_client_status
        return self.client_mapping.get(internal, self.default_client_status)

    def category_of(self, status: Any) -> StatusCategory | None:
        internal = coerce_internal_status(status)
        if internal is None:
            return None
        info = self.internal_info.get(internal)
        return info.category if info is not None else None

    def statuses_by_category(self, category: Any) -> list[InternalStatus]:
        target = coerce_category(category)
        if target is None:
            return []
        return [status for status, info in self.internal_info.items() if info.category == target]

    def action_required_statuses(self) -> list[InternalStatus]:
        return [status for status, info in self.internal_info.items() if info.requires_action]

    def all_internal_statuses(self) -> list[InternalStatus]:
        return list(InternalStatus)

    def all_client_statuses(self) -> list[ClientStatus]:
        return list(ClientStatus)

    def statuses_by_phase(self) -> dict[StatusCategory, list[dict[str, Any]]]:
        """Group internal statuses by workflow phase for organised display."""

        phases: dict[StatusCategory, list[dict[str, Any]]] = {category: [] for category in CATEGORY_ORDER}
        for status, info in self.internal_info.items():
            if info.category is None:
                continue
            phases[info.category].append(
                {
                    "status": status,
                    "label": info.label,
                    "description": info.description,
                    "requires_action": info.requires_action,
                }
            )
        return phases

    def workflow_categories(self) -> list[StatusCategory]:
        return list(CATEGORY_ORDER)

    def workflow_stage(self, status: Any) -> str:
        category = self.category_of(status)
        return category.value if category is not None else "unknown"

    def phase_name(self, category: Any) -> str:
        target = coerce_category(category)
        if target is None:
            return str(category)
        return PHASE_NAMES.get(target, target.value)
