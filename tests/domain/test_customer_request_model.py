"""Tests for the CustomerRequest document model."""

import json
from datetime import UTC, datetime

import pytest

from intake.schemas.customer_request import CustomerRequest, RequestProduct

pytestmark = pytest.mark.unit

NOW = datetime(2026, 3, 2, 9, 0, tzinfo=UTC)


def base_document(**extra) -> dict:
    return {
        "id": "CRA260001",
        "status": "submitted",
        "createdAt": NOW.isoformat(),
        "updatedAt": NOW.isoformat(),
        **extra,
    }


def test_legacy_flat_product_folded_into_products():
    request = CustomerRequest.model_validate(
        base_document(clientName="Acme", tyreSize="315/80R22.5", loadsKg=9000, otherRequirements="Galvanized")
    )
    assert len(request.products) == 1
    product = request.products[0]
    assert product.tyre_size == "315/80R22.5"
    assert product.loads_kg == 9000
    assert product.product_comments == "Galvanized"
    assert request.client_name == "Acme"
    assert request.other_requirements == "Galvanized"


def test_product_comments_fall_back_to_other_requirements():
    product = RequestProduct.model_validate({"otherRequirements": "Hot-dip"})
    assert product.product_comments == "Hot-dip"

    explicit = RequestProduct.model_validate({"otherRequirements": "Hot-dip", "productComments": "Paint"})
    assert explicit.product_comments == "Paint"


def test_product_defaults():
    product = RequestProduct()
    assert product.finish == "Black Primer default"
    assert product.studs_pcd_mode == "standard"


def test_document_uses_camel_case_and_iso_dates():
    request = CustomerRequest.model_validate(
        base_document(
            products=[{"tyreSize": "385/65R22.5"}],
            history=[{"id": "h-1", "status": "submitted", "timestamp": NOW.isoformat(), "userId": "2"}],
        )
    )
    document = json.loads(request.to_document())
    assert document["createdAt"].startswith("2026-03-02T09:00:00")
    assert document["products"][0]["tyreSize"] == "385/65R22.5"
    assert "created_at" not in document
    assert document["history"][0]["userId"] == "2"


def test_document_round_trip_keeps_history_order():
    history = [
        {"id": f"h-{n}", "status": status, "timestamp": NOW.isoformat()}
        for n, status in enumerate(["draft", "submitted", "clarification_needed", "submitted"])
    ]
    request = CustomerRequest.model_validate(base_document(products=[{}], history=history))
    restored = CustomerRequest.from_document(request.to_document())
    assert restored == request
    assert [h.id for h in restored.history] == ["h-0", "h-1", "h-2", "h-3"]


def test_unknown_document_keys_ignored():
    request = CustomerRequest.model_validate(base_document(products=[{}], legacyFlag=True))
    assert not hasattr(request, "legacyFlag")


def test_non_finite_price_rejected():
    with pytest.raises(ValueError):
        CustomerRequest.model_validate(base_document(products=[{}], sellingPrice=float("nan")))
