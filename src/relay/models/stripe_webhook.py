"""Stripe-side models for the payment description flow."""

from collections.abc import Mapping
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field

MAX_DESCRIPTION_LENGTH = 500


def as_mapping(obj: Any) -> Mapping[str, Any]:
    """Return a Stripe object (or plain dict) as a read-only mapping."""
    if obj is None:
        return {}
    if isinstance(obj, Mapping):
        return obj
    if hasattr(obj, "to_dict"):
        return obj.to_dict()
    raise TypeError(f"Cannot read {type(obj).__name__} as a mapping")


def expandable_id(value: Any) -> str | None:
    """Return the id of a Stripe reference that may or may not be expanded.

    Stripe sends unexpanded references as plain id strings and expanded
    ones as objects with an ``id`` field.
    """
    if not value:
        return None
    if isinstance(value, str):
        return value
    if isinstance(value, Mapping):
        return value.get("id") or None
    return getattr(value, "id", None) or None


class PaymentEvent(BaseModel):
    """A verified Stripe webhook event.

    Only the parts the relay reads are kept: the event id and type tag
    and the nested ``data.object`` payload.
    """

    model_config = ConfigDict(frozen=True)

    event_id: str | None = Field(
        default=None,
        description="Stripe event ID (evt_xxx)",
        examples=["evt_1ABC123DEF456"],
    )
    event_type: str = Field(
        ...,
        description="Stripe event type",
        examples=["payment_intent.succeeded", "charge.succeeded"],
    )
    data_object: dict[str, Any] = Field(
        default_factory=dict,
        description="The event's data.object payload",
    )

    @classmethod
    def from_stripe(cls, event: Mapping[str, Any]) -> "PaymentEvent":
        """Build from a parsed Stripe event (plain dict or stripe.Event)."""
        event = as_mapping(event)
        data = as_mapping(event.get("data"))
        return cls(
            event_id=event.get("id"),
            event_type=event.get("type") or "",
            data_object=dict(as_mapping(data.get("object"))),
        )


class PaymentReferences(BaseModel):
    """Identifiers pulled out of a payment event."""

    model_config = ConfigDict(frozen=True)

    payment_intent_id: str | None = None
    charge_id: str | None = None


class ChargeRecord(BaseModel):
    """The parts of a Stripe Charge the relay reads."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Stripe Charge ID (ch_xxx)")
    metadata: dict[str, str] = Field(
        default_factory=dict,
        description="Charge metadata; Stripe lowercases the keys",
    )
    payment_intent: str | None = Field(
        default=None,
        description="Parent PaymentIntent ID (pi_xxx) if any",
    )

    @classmethod
    def from_stripe(cls, charge: Mapping[str, Any]) -> "ChargeRecord":
        """Build from a Stripe Charge object or dict."""
        charge = as_mapping(charge)
        metadata = as_mapping(charge.get("metadata"))
        return cls(
            id=charge["id"],
            metadata={str(k): str(v) for k, v in metadata.items()},
            payment_intent=expandable_id(charge.get("payment_intent")),
        )


class PaymentIntentUpdate(BaseModel):
    """Description and metadata written back onto a PaymentIntent."""

    model_config = ConfigDict(frozen=True)

    description: str = Field(..., max_length=MAX_DESCRIPTION_LENGTH)
    metadata: dict[str, str] = Field(default_factory=dict)


class ProcessingOutcome(BaseModel):
    """What the webhook handler did with one event."""

    result: Literal["updated", "ignored", "skipped"]
    reason: str | None = None
    payment_intent_id: str | None = None
    charge_id: str | None = None
    order_id: str | None = None
    description: str | None = None
