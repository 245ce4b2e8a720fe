import pytest

from atelier.statuses import (
    CATEGORY_ORDER,
    ClientStatus,
    InternalStatus,
    StatusCatalog,
    StatusCategory,
    StatusColor,
)

GARBAGE_INPUTS = [None, "", "unknown-garbage-status", 42, 3.5, [], {}, ("pending",), "PENDING"]


@pytest.fixture
def catalog() -> StatusCatalog:
    return StatusCatalog.default()


def test_every_internal_status_has_categorised_display_info(catalog):
    for status in InternalStatus:
        info = catalog.get_display_info(status)
        assert info is not None
        assert info.category in CATEGORY_ORDER
        assert info.label


def test_every_client_status_has_display_info(catalog):
    for status in ClientStatus:
        info = catalog.get_client_display_info(status)
        assert info is not None
        assert info.category is None
        assert info.requires_action is False


def test_display_info_accepts_plain_strings(catalog):
    info = catalog.get_display_info("casting")
    assert info is not None
    assert info.label == "Casting"
    assert info.color is StatusColor.PRIMARY
    assert info.category is StatusCategory.PRODUCTION
    assert info.requires_action is True


def test_display_info_ignores_namespace_flag(catalog):
    assert catalog.get_display_info("in-production", True) == catalog.get_display_info("in-production", False)
    assert catalog.get_display_info("awaiting-your-response", True).label == "Awaiting Your Response"


def test_shared_names_resolve_to_internal_metadata(catalog):
    info = catalog.get_display_info("in-production")
    assert info.category is StatusCategory.PRODUCTION
    assert info.description == "Actively creating the piece"


@pytest.mark.parametrize("value", GARBAGE_INPUTS)
def test_lookups_are_total(catalog, value):
    assert catalog.get_display_info(value) is None
    assert catalog.get_client_status(value) is ClientStatus.PENDING_REVIEW
    assert catalog.category_of(value) is None
    assert catalog.workflow_stage(value) == "unknown"


def test_client_status_mapping(catalog):
    assert catalog.get_client_status("casting") is ClientStatus.IN_PRODUCTION
    assert catalog.get_client_status(InternalStatus.SKETCH_REVIEW) is ClientStatus.AWAITING_YOUR_RESPONSE
    assert catalog.get_client_status("refunded") is ClientStatus.CANCELLED
    assert catalog.get_client_status("delivered") is ClientStatus.COMPLETED


def test_every_internal_status_is_mapped(catalog):
    for status in catalog.all_internal_statuses():
        assert catalog.get_client_status(status) in set(ClientStatus)
    assert set(catalog.client_mapping) == set(InternalStatus)


def test_statuses_by_category(catalog):
    assert catalog.statuses_by_category("payment") == [
        InternalStatus.DEPOSIT_INVOICE_SENT,
        InternalStatus.DEPOSIT_RECEIVED,
    ]
    assert catalog.statuses_by_category(StatusCategory.SPECIAL) == [
        InternalStatus.ON_HOLD,
        InternalStatus.CANCELLED,
        InternalStatus.REFUNDED,
    ]
    assert catalog.statuses_by_category("nonsense") == []


def test_action_required_statuses(catalog):
    required = catalog.action_required_statuses()
    assert InternalStatus.PENDING in required
    assert InternalStatus.QUALITY_CHECK in required
    assert InternalStatus.IN_CONSULTATION not in required
    assert InternalStatus.COMPLETED not in required


def test_enumerations_are_complete(catalog):
    assert len(catalog.all_internal_statuses()) == len(InternalStatus) == 34
    assert len(catalog.all_client_statuses()) == len(ClientStatus) == 11


def test_statuses_by_phase_groups_in_category_order(catalog):
    phases = catalog.statuses_by_phase()
    assert list(phases) == list(CATEGORY_ORDER)
    assert [entry["status"] for entry in phases[StatusCategory.QUOTE]] == [
        InternalStatus.PREPARING_QUOTE,
        InternalStatus.QUOTE_SENT,
        InternalStatus.QUOTE_REVISION,
        InternalStatus.QUOTE_APPROVED,
    ]
    first = phases[StatusCategory.INITIAL][0]
    assert first == {
        "status": InternalStatus.PENDING,
        "label": "Pending Review",
        "description": "Request received, awaiting initial review",
        "requires_action": True,
    }


def test_workflow_stage_and_phase_names(catalog):
    assert catalog.workflow_stage("cad-review") == "design"
    assert catalog.phase_name("quote") == "Quote & Approval"
    assert catalog.phase_name(StatusCategory.SPECIAL) == "Special Actions"
    assert catalog.phase_name("archive") == "archive"
    assert catalog.workflow_categories() == list(CATEGORY_ORDER)


def test_catalog_rejects_incomplete_mapping():
    with pytest.raises(ValueError, match="client mapping"):
        StatusCatalog(client_mapping={})
