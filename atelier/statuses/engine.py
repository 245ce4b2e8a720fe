from __future__ import annotations

import logging
from enum import Enum
from functools import lru_cache
from typing import Any

from .catalog import (
    CATEGORY_ORDER,
    ClientStatus,
    InternalStatus,
    StatusCatalog,
    StatusCategory,
    StatusDisplayInfo,
    coerce_category,
    coerce_internal_status,
)
from .transitions import TransitionRules

logger = logging.getLogger(__name__)


def _status_text(value: Any) -> str:
    return value.value if isinstance(value, Enum) else str(value)


class StatusWorkflowEngine:
    """Compute legal status changes for custom tickets.

    The engine combines the strict transition graph with phase based
    expansion: siblings in the current phase, the always-available general
    statuses and the entry points of the neighbouring phases. It performs no
    I/O and never raises for unknown statuses.
    """

    def __init__(self, catalog: StatusCatalog | None = None, rules: TransitionRules | None = None) -> None:
        self._catalog = catalog or StatusCatalog.default()
        self._rules = rules or TransitionRules.default()
        self._category_rank = {category: index for index, category in enumerate(CATEGORY_ORDER)}

    @property
    def catalog(self) -> StatusCatalog:
        return self._catalog

    @property
    def rules(self) -> TransitionRules:
        return self._rules

    def initial_status(self) -> InternalStatus:
        return InternalStatus.PENDING

    def is_terminal(self, status: Any) -> bool:
        current = coerce_internal_status(status)
        return current is not None and current in self._rules.terminal_statuses

    def get_display_info(self, status: Any, is_internal: bool = True) -> StatusDisplayInfo | None:
        return self._catalog.get_display_info(status, is_internal)

    def get_client_status(self, internal_status: Any) -> ClientStatus:
        return self._catalog.get_client_status(internal_status)

    def get_statuses_by_category(self, category: Any) -> list[InternalStatus]:
        return self._catalog.statuses_by_category(category)

    def get_action_required_statuses(self) -> list[InternalStatus]:
        return self._catalog.action_required_statuses()

    def get_all_internal_statuses(self) -> list[InternalStatus]:
        return self._catalog.all_internal_statuses()

    def get_all_client_statuses(self) -> list[ClientStatus]:
        return self._catalog.all_client_statuses()

    def phase_entry_points(self, category: Any) -> list[InternalStatus]:
        """Entry statuses of the phases that follow ``category``."""

        current = coerce_category(category)
        if current is None:
            return []
        return [
            self._rules.forward_entry_points[phase]
            for phase in self._rules.forward_phases.get(current, ())
            if phase in self._rules.forward_entry_points and self._catalog.statuses_by_category(phase)
        ]

    def previous_phase_entry_points(self, category: Any) -> list[InternalStatus]:
        """Entry statuses of the phases that precede ``category``."""

        current = coerce_category(category)
        if current is None:
            return []
        return [
            self._rules.backward_entry_points[phase]
            for phase in self._rules.backward_phases.get(current, ())
            if phase in self._rules.backward_entry_points
        ]

    def get_next_possible_statuses(self, current_status: Any) -> list[InternalStatus]:
        current = coerce_internal_status(current_status)
        if current is None:
            return []
        category = self._catalog.category_of(current)
        if category is None or current in self._rules.terminal_statuses:
            return []

        # dict keeps insertion order while suppressing duplicates
        candidates: dict[InternalStatus, None] = {}
        for status in self._rules.strict_targets(current):
            candidates[status] = None
        for status in self._catalog.statuses_by_category(category):
            candidates[status] = None
        for status in self._rules.general_statuses:
            candidates[status] = None
        for status in self.phase_entry_points(category):
            candidates[status] = None
        for status in self.previous_phase_entry_points(category):
            candidates[status] = None
        candidates.pop(current, None)

        return sorted(candidates, key=self._sort_key)

    def is_valid_transition(self, from_status: Any, to_status: Any) -> bool:
        target = coerce_internal_status(to_status)
        valid = target is not None and target in self.get_next_possible_statuses(from_status)
        if not valid:
            logger.debug(
                "Transition not offered by the workflow",
                extra={"from_status": _status_text(from_status), "to_status": _status_text(to_status)},
            )
        return valid

    def _sort_key(self, status: InternalStatus) -> tuple[int, str]:
        info = self._catalog.internal_info[status]
        rank = self._category_rank.get(info.category, len(self._category_rank))
        return rank, info.label.casefold()

    def category_of(self, status: Any) -> StatusCategory | None:
        return self._catalog.category_of(status)


@lru_cache
def get_workflow_engine() -> StatusWorkflowEngine:
    """Return a cached engine built from the default catalog and rules."""

    return StatusWorkflowEngine()
