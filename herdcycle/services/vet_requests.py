from __future__ import annotations

import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..db import atomic
from ..exceptions import ConflictError, NotFoundError
from ..models import REQUEST_APPROVED, REQUEST_PENDING, REQUEST_REJECTED, Farm, Vet, VetRequest, utcnow

logger = logging.getLogger(__name__)


def send_vet_request(db: Session, vet: Vet, farm: Farm, message: Optional[str] = None) -> VetRequest:
    if farm in vet.farms:
        raise ConflictError("Vet is already assigned to this farm.")

    existing = (
        db.query(VetRequest)
        .filter(VetRequest.vet_id == vet.id)
        .filter(VetRequest.farm_id == farm.id)
        .filter(VetRequest.status == REQUEST_PENDING)
        .first()
    )
    if existing is not None:
        raise ConflictError("Vet already has a pending request for this farm.")

    request = VetRequest(
        vet_id=vet.id,
        farm_id=farm.id,
        status=REQUEST_PENDING,
        message=message,
        requested_at=utcnow(),
    )
    with atomic(db):
        db.add(request)
    logger.info(f"Vet {vet.id} requested access to farm {farm.id}")
    return request


def _pending_for_farm(db: Session, farm: Farm, request_id: int) -> VetRequest:
    request = (
        db.query(VetRequest)
        .filter(VetRequest.id == request_id)
        .filter(VetRequest.farm_id == farm.id)
        .filter(VetRequest.status == REQUEST_PENDING)
        .first()
    )
    if request is None:
        raise NotFoundError("Pending vet request", request_id)
    return request


def approve_vet_request(db: Session, farm: Farm, request_id: int) -> VetRequest:
    request = _pending_for_farm(db, farm, request_id)
    with atomic(db):
        request.status = REQUEST_APPROVED
        request.responded_at = utcnow()
        if request.vet not in farm.vets:
            farm.vets.append(request.vet)
    logger.info(f"Vet {request.vet_id} assigned to farm {farm.id}")
    return request


def reject_vet_request(db: Session, farm: Farm, request_id: int) -> VetRequest:
    request = _pending_for_farm(db, farm, request_id)
    with atomic(db):
        request.status = REQUEST_REJECTED
        request.responded_at = utcnow()
    return request


def cancel_vet_request(db: Session, vet: Vet, request_id: int) -> None:
    request = (
        db.query(VetRequest)
        .filter(VetRequest.id == request_id)
        .filter(VetRequest.vet_id == vet.id)
        .filter(VetRequest.status == REQUEST_PENDING)
        .first()
    )
    if request is None:
        raise NotFoundError("Pending vet request", request_id)
    with atomic(db):
        db.delete(request)


def pending_requests(db: Session, farm: Farm) -> List[VetRequest]:
    return (
        db.query(VetRequest)
        .filter(VetRequest.farm_id == farm.id)
        .filter(VetRequest.status == REQUEST_PENDING)
        .order_by(VetRequest.requested_at.desc(), VetRequest.id.desc())
        .all()
    )


def vet_requests(db: Session, vet: Vet) -> List[VetRequest]:
    return (
        db.query(VetRequest)
        .filter(VetRequest.vet_id == vet.id)
        .order_by(VetRequest.requested_at.desc(), VetRequest.id.desc())
        .all()
    )


def assigned_farms(vet: Vet) -> List[Farm]:
    return sorted(vet.farms, key=lambda f: f.id)
