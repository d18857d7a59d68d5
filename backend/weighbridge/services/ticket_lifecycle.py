# Overview: Pure derivation rules for weigh tickets; no database, no Flask.

"""
Weigh-ticket lifecycle engine.

A ticket models a vehicle crossing the scale twice: once loaded (gross) and
once empty (tare), in either order of data entry. Given a creation payload,
or the current ticket plus a partial update, the functions here compute the
column assignments that keep the derived fields consistent:

- net_weight = gross_weight - tare_weight whenever both are known
- status is inferred from which weights are known unless set explicitly
- weigh_in_time / weigh_out_time record the first instant each weight was
  captured and are never moved afterwards

Patches are plain dicts built from the keys actually present in the request
(see validation.validate_payload): a missing key means "leave alone", a key
mapped to None means "clear".
"""

from __future__ import annotations

import random
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Mapping, Optional

from ..models.tickets import TICKET_STATUSES
from ..validation import ValidationError

STATUS_PENDING = "pending"
STATUS_COMPLETED = "completed"

DEFAULT_UNIT = "kg"

# Simple columns copied straight from the patch
SIMPLE_FIELDS = ("customer_id", "vehicle_id", "material", "unit", "notes")
WEIGHT_FIELDS = ("gross_weight", "tare_weight")
UPDATABLE_FIELDS = frozenset(SIMPLE_FIELDS + WEIGHT_FIELDS + ("status",))
CREATABLE_FIELDS = frozenset(SIMPLE_FIELDS + WEIGHT_FIELDS)

TicketPatch = Mapping[str, Any]


@dataclass(frozen=True)
class TicketSnapshot:
    """The parts of a stored ticket the update rules depend on."""
    gross_weight: Optional[float]
    tare_weight: Optional[float]
    weigh_in_time: Optional[datetime] = None
    weigh_out_time: Optional[datetime] = None

    @classmethod
    def of(cls, ticket) -> "TicketSnapshot":
        return cls(
            gross_weight=ticket.gross_weight,
            tare_weight=ticket.tare_weight,
            weigh_in_time=ticket.weigh_in_time,
            weigh_out_time=ticket.weigh_out_time,
        )


def generate_ticket_number(today: date, rng: random.Random | None = None) -> str:
    """<YYYY-MM-DD>-<4 digit random suffix>, suffix in 1000..9999."""
    rng = rng or random
    return f"{today.strftime('%Y-%m-%d')}-{rng.randint(1000, 9999)}"


def _net(gross: Optional[float], tare: Optional[float]) -> Optional[float]:
    if gross is None or tare is None:
        return None
    return gross - tare


def _check_status(status: Any) -> None:
    if status not in TICKET_STATUSES:
        raise ValidationError(
            f"status must be one of: {', '.join(TICKET_STATUSES)}"
        )


def derive_create(patch: TicketPatch, now: datetime) -> dict:
    """
    Column values for a brand new ticket (ticket_number excluded).

    A ticket created with only a gross weight is a first weighing: it gets a
    weigh-in time but no weigh-out time and stays pending.
    """
    material = patch.get("material")
    if material is None or (isinstance(material, str) and not material.strip()):
        raise ValidationError("Material is required")

    gross = patch.get("gross_weight")
    tare = patch.get("tare_weight")
    net = _net(gross, tare)

    return {
        "customer_id": patch.get("customer_id"),
        "vehicle_id": patch.get("vehicle_id"),
        "material": material,
        "gross_weight": gross,
        "tare_weight": tare,
        "net_weight": net,
        "unit": patch.get("unit") or DEFAULT_UNIT,
        "notes": patch.get("notes"),
        "status": STATUS_COMPLETED if net is not None else STATUS_PENDING,
        "weigh_in_time": now if gross is not None else None,
        "weigh_out_time": now if net is not None else None,
    }


def _first_capture(previous: Optional[float], new: Optional[float], stamped: Optional[datetime]) -> bool:
    # Zero counts as "no reading yet" on both sides; an existing stamp is final.
    return stamped is None and not previous and bool(new)


def derive_update(current: TicketSnapshot, patch: TicketPatch, now: datetime) -> dict:
    """
    Staged column assignments for a partial update.

    Only keys present in ``patch`` are considered. Raises ValidationError when
    the patch holds no updatable field, so callers never issue an empty write.
    updated_at is left to the caller.
    """
    recognised = [k for k in patch if k in UPDATABLE_FIELDS]
    if not recognised:
        raise ValidationError("No update fields provided")

    staged: dict = {}

    for key in SIMPLE_FIELDS:
        if key in patch:
            staged[key] = patch[key]

    if "material" in staged and staged["material"] is None:
        raise ValidationError("Material is required")

    if "gross_weight" in patch:
        staged["gross_weight"] = patch["gross_weight"]
        if _first_capture(current.gross_weight, patch["gross_weight"], current.weigh_in_time):
            staged["weigh_in_time"] = now

    if "tare_weight" in patch:
        staged["tare_weight"] = patch["tare_weight"]
        if _first_capture(current.tare_weight, patch["tare_weight"], current.weigh_out_time):
            staged["weigh_out_time"] = now

    final_gross = patch["gross_weight"] if "gross_weight" in patch else current.gross_weight
    final_tare = patch["tare_weight"] if "tare_weight" in patch else current.tare_weight

    net = _net(final_gross, final_tare)
    if net is not None or "gross_weight" in patch or "tare_weight" in patch:
        # Clearing either weight clears the derived net as well.
        staged["net_weight"] = net

    if "status" in patch:
        _check_status(patch["status"])
        staged["status"] = patch["status"]
    elif net is not None:
        staged["status"] = STATUS_COMPLETED
    elif final_gross is not None or final_tare is not None:
        staged["status"] = STATUS_PENDING

    return staged
