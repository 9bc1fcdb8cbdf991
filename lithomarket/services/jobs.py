# lithomarket/services/jobs.py
from __future__ import annotations

import datetime as dt
import logging
import math
from collections import abc
from typing import Any, Dict, List, Mapping, Optional

from flask import current_app
from sqlalchemy import or_

from lithomarket.database import db
from lithomarket.errors import InvalidParameter, InvalidTransition, NotFound, Unauthorized, ValidationError
from lithomarket.models import SimulationModel, User
from lithomarket.models_job import Job, JobStatus
from lithomarket.models_transaction import TransactionType
from lithomarket.services.job_ids import format_job_id, next_job_id, parse_job_id
from lithomarket.services.ledger import currency, mock_tx_hash, record_transaction
from lithomarket.services.licensing import authorize, get_model
from lithomarket.services.pricing import estimate, format_amount, to_wei

log = logging.getLogger(__name__)

ACTIVE_LIMIT = 5
RECENT_RESULTS_LIMIT = 4

# queued -> processing -> {completed, failed}; processing -> processing = avance
TRANSITIONS = {
    JobStatus.queued: {JobStatus.processing, JobStatus.failed},
    JobStatus.processing: {JobStatus.processing, JobStatus.completed, JobStatus.failed},
    JobStatus.completed: set(),
    JobStatus.failed: set(),
}


# ---------------------------------------------------------
# Validación de parámetros (acepta strings de formularios)
# ---------------------------------------------------------
def _coerce_number(value: Any) -> Optional[float]:
    if isinstance(value, bool) or value is None:
        return None
    if isinstance(value, (int, float)):
        num = float(value)
    else:
        s = str(value).strip()
        if not s:
            return None
        try:
            num = float(s)
        except ValueError:
            return None
    if math.isnan(num) or math.isinf(num):
        return None
    return num


def _plain(num: float):
    return int(num) if num.is_integer() else num


def validate_job_params(data: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Valida el payload de envío. Junta TODOS los errores antes de fallar.
    Devuelve los valores normalizados (números como int/float).
    """
    if not isinstance(data, abc.Mapping):
        raise ValidationError([{"field": "body", "message": "Expected a JSON object"}])

    errors: List[Dict[str, str]] = []
    clean: Dict[str, Any] = {}

    def fail(field: str, message: str) -> None:
        errors.append({"field": field, "message": message})

    name = data.get("name")
    if not isinstance(name, str) or len(name) < 3:
        fail("name", "Job name must be at least 3 characters")
    else:
        clean["name"] = name

    model_id = data.get("modelId")
    model_id = "" if model_id is None else str(model_id).strip()
    if not model_id:
        fail("modelId", "Please select a model")
    else:
        clean["modelId"] = model_id

    for field in ("resolution", "wavelength"):
        num = _coerce_number(data.get(field))
        if num is None:
            fail(field, f"{field.capitalize()} must be a number")
        elif num <= 0:
            fail(field, f"{field.capitalize()} must be positive")
        else:
            clean[field] = _plain(num)

    na = _coerce_number(data.get("numericalAperture"))
    if na is None:
        fail("numericalAperture", "Numerical aperture must be a number")
    elif na < 0:
        fail("numericalAperture", "Numerical aperture must be at least 0")
    elif na > 1:
        fail("numericalAperture", "Numerical aperture must be at most 1")
    else:
        clean["numericalAperture"] = _plain(na)

    its = _coerce_number(data.get("iterations"))
    if its is None or not its.is_integer() or its <= 0:
        fail("iterations", "Iterations must be a positive integer")
    else:
        clean["iterations"] = int(its)

    if errors:
        raise ValidationError(errors)
    return clean


def mask_file_reference(job_code: str, original_filename: Optional[str]) -> Optional[str]:
    """
    Nombre determinista de la máscara: <base>/<JOB-n>.<ext>.
    Solo calcula la URL; la subida la hace el servicio de almacenamiento.
    """
    if not original_filename:
        return None
    # "mask.gds" y ".gds" => gds; sin punto => bin
    ext = original_filename.rsplit(".", 1)[1] if "." in original_filename else ""
    ext = ext or "bin"
    base = current_app.config.get("MASK_STORAGE_BASE_URL", "").rstrip("/")
    return f"{base}/{job_code}.{ext}"


# ---------------------------------------------------------
# Envío de jobs
# ---------------------------------------------------------
def submit_job(
    data: Mapping[str, Any],
    user_id: int,
    mask_filename: Optional[str] = None,
) -> Dict[str, Any]:
    """
    1) valida  2) licencia  3) modelo  4) costo  5) JOB id
    6) referencia de máscara  7) job + transacción 'job_payment' en un solo commit
    8) devuelve el job con costo formateado y nombre del modelo
    """
    params = validate_job_params(data)

    user = db.session.get(User, user_id)
    if user is None:
        raise NotFound("User", user_id)

    if not authorize(user.id, params["modelId"]):
        raise Unauthorized(user_id=user.id, model_id=params["modelId"])

    model = get_model(params["modelId"])

    cost = estimate(model.price, params["resolution"], params["iterations"])

    try:
        job_code = format_job_id(next_job_id())
        tx_hash = mock_tx_hash()

        job = Job(
            job_id=job_code,
            user_id=user.id,
            model_id=model.id,
            name=params["name"],
            status=JobStatus.queued,
            progress=0,
            parameters={
                "resolution": params["resolution"],
                "wavelength": params["wavelength"],
                "numericalAperture": params["numericalAperture"],
                "iterations": params["iterations"],
            },
            mask_file_url=mask_file_reference(job_code, mask_filename),
            cost=cost,
            transaction_hash=tx_hash,
        )
        db.session.add(job)
        db.session.flush()

        record_transaction(
            user_id=user.id,
            tx_type=TransactionType.job_payment,
            amount=cost,
            amount_in_wei=to_wei(cost),
            tx_hash=tx_hash,
            from_address=user.wallet_address,
            to_address=current_app.config.get("JOB_PAYMENT_CONTRACT_ADDRESS"),
            job=job,
            meta={"jobId": job_code},
        )
        db.session.commit()
    except Exception:
        db.session.rollback()
        log.exception("submit_job failed user=%s model=%s", user.id, model.id)
        raise

    log.info("job %s queued user=%s model=%s cost=%s", job_code, user.id, model.id, cost)

    out = job.to_dict()
    out.update({
        "jobId": job_code,
        "cost": format_amount(cost, currency()),
        "modelName": model.name,
    })
    return out


# ---------------------------------------------------------
# Avance de estado (lo usa el procesador externo de jobs)
# ---------------------------------------------------------
def advance_job(
    job_code: str,
    status: str,
    progress: Optional[int] = None,
    result_file_url: Optional[str] = None,
    result_image_url: Optional[str] = None,
) -> Job:
    job = db.session.query(Job).filter(Job.job_id == job_code).first()
    if job is None:
        raise NotFound("Job", job_code)

    if status not in TRANSITIONS.get(job.status, set()):
        raise InvalidTransition(job_code, job.status, status)

    if progress is not None and not 0 <= int(progress) <= 100:
        raise InvalidParameter("progress", progress, "progress must be between 0 and 100")

    job.status = status
    if progress is not None:
        job.progress = int(progress)

    if status == JobStatus.completed:
        number = parse_job_id(job.job_id)
        base = current_app.config.get("RESULT_STORAGE_BASE_URL", "").rstrip("/")
        job.progress = 100
        job.result_id = f"RES-{number}"
        job.result_file_url = result_file_url or f"{base}/res-{number}.zip"
        job.result_image_url = result_image_url
    if status in (JobStatus.completed, JobStatus.failed):
        job.completed_at = dt.datetime.utcnow()

    db.session.commit()
    log.info("job %s -> %s (%s%%)", job.job_id, job.status, job.progress)
    return job


# ---------------------------------------------------------
# Consultas
# ---------------------------------------------------------
def _summary(job: Job, full: bool = False) -> Dict[str, Any]:
    d = job.to_dict(full=full)
    d["cost"] = format_amount(job.cost, currency())
    return d


def _user_jobs(user_id: int):
    return (
        db.session.query(Job)
        .outerjoin(SimulationModel, Job.model_id == SimulationModel.id)
        .filter(Job.user_id == user_id)
    )


def list_jobs(user_id: int, status: Optional[str] = None, search: Optional[str] = None) -> List[Dict[str, Any]]:
    q = _user_jobs(user_id)

    if status and status != "all_statuses":
        q = q.filter(Job.status == status)

    if search:
        like = f"%{search}%"
        q = q.filter(or_(
            Job.name.ilike(like),
            Job.job_id.ilike(like),
            SimulationModel.name.ilike(like),
        ))

    rows = q.order_by(Job.submitted_at.desc(), Job.id.desc()).all()
    return [_summary(j) for j in rows]


def active_jobs(user_id: int) -> List[Dict[str, Any]]:
    rows = (
        _user_jobs(user_id)
        .filter(Job.status.in_(JobStatus.ACTIVE))
        .order_by(Job.submitted_at.desc(), Job.id.desc())
        .limit(ACTIVE_LIMIT)
        .all()
    )
    return [_summary(j) for j in rows]


def _owned_job(job_code: str, user_id: int) -> Optional[Job]:
    return (
        db.session.query(Job)
        .filter(Job.job_id == job_code, Job.user_id == user_id)
        .first()
    )


def get_job(job_code: str, user_id: int) -> Optional[Dict[str, Any]]:
    job = _owned_job(job_code, user_id)
    if job is None:
        return None
    return _summary(job, full=True)


def job_results(job_code: str, user_id: int) -> Optional[Dict[str, Any]]:
    job = _owned_job(job_code, user_id)
    if job is None or job.status != JobStatus.completed or not job.result_id:
        return None
    return {
        "id": job.job_id,
        "name": job.name,
        "status": job.status,
        "completedAt": job.completed_at.isoformat() if job.completed_at else None,
        "resultId": job.result_id,
        "resultFileUrl": job.result_file_url,
        "resultImageUrl": job.result_image_url,
        "modelName": job.model.name if job.model else None,
    }


def result_file_url(job_code: str, user_id: int) -> Optional[str]:
    job = _owned_job(job_code, user_id)
    if job is None or job.status != JobStatus.completed:
        return None
    return job.result_file_url or None


def recent_results(user_id: int) -> List[Dict[str, Any]]:
    rows = (
        _user_jobs(user_id)
        .filter(Job.status == JobStatus.completed, Job.result_id.isnot(None))
        .order_by(Job.completed_at.desc(), Job.id.desc())
        .limit(RECENT_RESULTS_LIMIT)
        .all()
    )
    return [
        {
            "id": j.result_id,
            "jobId": j.job_id,
            "modelName": j.model.name if j.model else None,
            "completedAt": j.completed_at.isoformat() if j.completed_at else None,
            "status": j.status,
            "imageUrl": j.result_image_url,
        }
        for j in rows
    ]
