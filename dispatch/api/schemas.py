"""Pydantic request / response schemas for the REST API."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from dispatch.domain.enums import AuditAction, TripStatus
from dispatch.services.base import TripDetails


# ── Requests ──────────────────────────────────────────────────────────


class TripCreateRequest(BaseModel):
    full_name: str = Field(..., min_length=1, max_length=120)
    phone_number: str = Field(..., min_length=1, max_length=32)
    business_type: Optional[str] = Field(None, max_length=120)
    load_description: str = Field(..., min_length=1)
    pickup_location: str = Field(..., min_length=1)
    dropoff_location: str = Field(..., min_length=1)
    pickup_time: datetime


class AssignDriverRequest(BaseModel):
    driver_id: Optional[str] = None
    agreed_fare: Optional[Decimal] = None
    expected_version: Optional[int] = Field(
        None,
        description="Version the dispatcher saw; the write is rejected if the trip moved on.",
    )


class AdvanceStatusRequest(BaseModel):
    target: Optional[TripStatus] = Field(
        None, description="Defaults to the next status in the lifecycle."
    )
    expected_version: Optional[int] = None


class VerificationRequest(BaseModel):
    customer_amount: Optional[Decimal] = None
    driver_amount: Optional[Decimal] = None
    expected_version: Optional[int] = None


class CustomerCorrectionRequest(BaseModel):
    full_name: Optional[str] = Field(None, max_length=120)
    business_type: Optional[str] = Field(None, max_length=120)


class SettleRequest(BaseModel):
    driver_id: str
    trip_ids: list[str] = Field(
        ...,
        min_length=1,
        description="Exactly the trip ids shown on the driver's statement.",
    )


# ── Responses ─────────────────────────────────────────────────────────


class CustomerResponse(BaseModel):
    id: str
    full_name: str
    phone_number: str
    business_type: Optional[str] = None

    model_config = {"from_attributes": True}


class DriverResponse(BaseModel):
    id: str
    full_name: str
    phone_number: str
    vehicle_type: str
    registration_number: str
    sacco_affiliation: Optional[str] = None
    reliability_score: int
    corridors: list[str] = []

    model_config = {"from_attributes": True}


class TripResponse(BaseModel):
    id: str
    customer_id: str
    driver_id: Optional[str] = None
    load_description: str
    pickup_location: str
    dropoff_location: str
    pickup_time: datetime
    agreed_fare: Optional[Decimal] = None
    platform_commission: Optional[Decimal] = None
    status: TripStatus
    customer_verified_amount: Optional[Decimal] = None
    driver_verified_amount: Optional[Decimal] = None
    commission_paid: bool
    commission_settled: bool
    version: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    customer: Optional[CustomerResponse] = None
    driver: Optional[DriverResponse] = None

    model_config = {"from_attributes": True}

    @classmethod
    def from_details(cls, details: TripDetails) -> "TripResponse":
        return cls.model_validate(details.trip).model_copy(
            update={
                "customer": CustomerResponse.model_validate(details.customer)
                if details.customer
                else None,
                "driver": DriverResponse.model_validate(details.driver)
                if details.driver
                else None,
            }
        )


class BoardColumn(BaseModel):
    status: TripStatus
    trips: list[TripResponse] = []


class VerificationResponse(BaseModel):
    trip: TripResponse
    outcome: Optional[str] = Field(
        None, description="VERIFICATION_MATCH, VERIFICATION_MISMATCH, or null if not yet comparable."
    )
    message: Optional[str] = None


class StatementTripResponse(BaseModel):
    id: str
    load_description: str
    pickup_location: str
    dropoff_location: str
    pickup_time: datetime
    agreed_fare: Optional[Decimal] = None
    platform_commission: Optional[Decimal] = None

    model_config = {"from_attributes": True}


class StatementResponse(BaseModel):
    driver_id: str
    driver: Optional[DriverResponse] = None
    trip_ids: list[str]
    trips: list[StatementTripResponse]
    total_fare: Decimal
    total_commission: Decimal

    model_config = {"from_attributes": True}


class StatementsResponse(BaseModel):
    currency: str
    outstanding_total: Decimal
    statements: list[StatementResponse]


class SettlementResponse(BaseModel):
    driver_id: str
    settled_trip_ids: list[str]
    already_settled_trip_ids: list[str]
    total_commission: Decimal
    message: str

    model_config = {"from_attributes": True}


class TimelineStepResponse(BaseModel):
    status: TripStatus
    label: str
    description: str
    state: str

    model_config = {"from_attributes": True}


class TrackingResponse(BaseModel):
    trip_id: str
    load_description: str
    pickup_location: str
    dropoff_location: str
    pickup_time: Optional[datetime] = None
    status: TripStatus
    status_label: str
    status_description: str
    agreed_fare: Optional[Decimal] = None
    driver_name: Optional[str] = None
    driver_phone: Optional[str] = None
    timeline: list[TimelineStepResponse]

    model_config = {"from_attributes": True}


class AuditEventResponse(BaseModel):
    id: Optional[int] = None
    table_name: str
    record_id: str
    action: AuditAction
    old_data: Optional[dict] = None
    new_data: Optional[dict] = None
    message: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class HealthResponse(BaseModel):
    status: str = "ok"


class ErrorResponse(BaseModel):
    detail: str
