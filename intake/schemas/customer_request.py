"""CustomerRequest document models.

The persisted JSON document and the HTTP API both use camelCase keys;
Python code uses the snake_case attribute names. The document is the
source of truth for a request, see ``intake.db.models.customer_request``.
"""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

from intake.domain.roles import Role
from intake.domain.statuses import RequestStatus


class CamelModel(BaseModel):
    """Base model serialized with camelCase aliases, populated by either name."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        allow_inf_nan=False,
    )


class Actor(CamelModel):
    """User performing an operation. ``role`` is None for trusted callers."""

    user_id: str
    user_name: str = ""
    role: Role | None = None


class Attachment(CamelModel):
    """File metadata plus a payload reference (URL or data: URI)."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    type: str = ""
    size: int | None = None
    url: str = ""
    uploaded_at: datetime
    uploaded_by: str = ""


class HistoryEntry(CamelModel):
    """One status transition. Never edited after it is appended."""

    model_config = ConfigDict(frozen=True)

    id: str
    status: RequestStatus
    timestamp: datetime
    user_id: str = ""
    user_name: str = ""
    comment: str | None = None


class RequestProduct(CamelModel):
    """Technical specification for one physical product line."""

    axle_location: str = ""
    axle_location_other: str = ""
    articulation_type: str = ""
    articulation_type_other: str = ""
    configuration_type: str = ""
    configuration_type_other: str = ""
    loads_kg: float | None = None
    speeds_kmh: float | None = None
    tyre_size: str = ""
    track_mm: float | None = None
    studs_pcd_mode: Literal["standard", "special"] = "standard"
    studs_pcd_standard_selections: list[str] = Field(default_factory=list)
    studs_pcd_special_text: str = ""
    wheel_base: str = ""
    finish: str = "Black Primer default"
    brake_type: str | None = None
    brake_size: str = ""
    suspension: str = ""
    product_comments: str = ""
    attachments: list[Attachment] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _legacy_comments(cls, data: Any) -> Any:
        # Older products stored their free text under otherRequirements
        if isinstance(data, dict) and "productComments" not in data and "product_comments" not in data:
            legacy = data.get("otherRequirements")
            if isinstance(legacy, str):
                data = {**data, "productComments": legacy}
        return data


def _legacy_product(data: dict[str, Any]) -> dict[str, Any]:
    """Fold the flat product fields of a single-product request into one product."""
    product: dict[str, Any] = {}
    for name, field in RequestProduct.model_fields.items():
        if field.alias in data:
            product[field.alias] = data[field.alias]
        elif name in data:
            product[name] = data[name]
    if "productComments" not in product and isinstance(data.get("otherRequirements"), str):
        product["productComments"] = data["otherRequirements"]
    return product


def normalize_products(data: dict[str, Any]) -> dict[str, Any]:
    """Give a legacy single-product payload a one-element ``products`` list.

    Flat product keys that are not request fields are dropped from the result.
    """
    if data.get("products"):
        return data
    request_keys = {key for name, field in CustomerRequest.model_fields.items() for key in (name, field.alias)}
    normalized = {key: value for key, value in data.items() if key in request_keys}
    normalized["products"] = [_legacy_product(data)]
    return normalized


class CustomerRequest(CamelModel):
    """A customer quote / feasibility request and its audit history."""

    id: str
    status: RequestStatus
    version: int = 1
    created_at: datetime
    updated_at: datetime
    created_by: str = ""
    created_by_name: str = ""

    # General information
    client_name: str = ""
    client_contact: str = ""
    application_vehicle: str = ""
    application_vehicle_other: str = ""
    country: str = ""
    expected_qty: int | None = None
    repeatability: str = ""
    expected_delivery_selections: list[str] = Field(default_factory=list)
    working_condition: str = ""
    working_condition_other: str = ""
    usage_type: str = ""
    usage_type_other: str = ""
    environment: str = ""
    environment_other: str = ""
    other_requirements: str = ""
    attachments: list[Attachment] = Field(default_factory=list)
    products: list[RequestProduct] = Field(min_length=1)

    history: list[HistoryEntry] = Field(default_factory=list)

    # Clarification stage
    clarification_comment: str | None = None
    clarification_response: str | None = None

    # Design stage
    acceptance_message: str | None = None
    expected_design_reply_date: datetime | None = None
    design_result_comments: str | None = None
    design_result_attachments: list[Attachment] = Field(default_factory=list)

    # Costing stage
    costing_notes: str | None = None
    selling_price: float | None = None
    calculated_margin: float | None = None
    incoterm: str | None = None
    delivery_leadtime: str | None = None
    costing_attachments: list[Attachment] = Field(default_factory=list)

    # Sales follow-up stage
    sales_final_price: float | None = None
    sales_feedback_comment: str | None = None
    sales_attachments: list[Attachment] = Field(default_factory=list)

    @model_validator(mode="before")
    @classmethod
    def _normalize_products(cls, data: Any) -> Any:
        if isinstance(data, dict):
            return normalize_products(data)
        return data

    def to_document(self) -> str:
        """Serialize to the persisted JSON document."""
        return self.model_dump_json(by_alias=True)

    @classmethod
    def from_document(cls, document: str | bytes) -> "CustomerRequest":
        """Parse a persisted JSON document."""
        return cls.model_validate_json(document)
