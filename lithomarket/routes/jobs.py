# lithomarket/routes/jobs.py
from __future__ import annotations

from flask import Blueprint, current_app, jsonify, redirect, request

from lithomarket.services import jobs as job_service
from lithomarket.utils_auth import get_request_user_id, require_wallet

bp = Blueprint("jobs", __name__, url_prefix="/api/jobs")


@bp.get("")
@require_wallet
def list_jobs():
    items = job_service.list_jobs(
        get_request_user_id(),
        status=request.args.get("statusFilter"),
        search=request.args.get("searchTerm"),
    )
    return jsonify({"jobs": items})


@bp.get("/active")
@require_wallet
def active_jobs():
    return jsonify(job_service.active_jobs(get_request_user_id()))


@bp.get("/results/recent")
@require_wallet
def recent_results():
    return jsonify(job_service.recent_results(get_request_user_id()))


@bp.get("/<job_id>")
@require_wallet
def get_job(job_id: str):
    job = job_service.get_job(job_id, get_request_user_id())
    if not job:
        return jsonify({"message": "Job not found"}), 404
    return jsonify(job)


@bp.get("/<job_id>/results")
@require_wallet
def job_results(job_id: str):
    results = job_service.job_results(job_id, get_request_user_id())
    if not results:
        return jsonify({"message": "Job results not found"}), 404
    return jsonify(results)


@bp.get("/<job_id>/results/download")
@require_wallet
def download_results(job_id: str):
    url = job_service.result_file_url(job_id, get_request_user_id())
    if not url:
        return jsonify({"message": "Result file not found"}), 404
    return redirect(url)


@bp.post("")
@require_wallet
def submit_job():
    # multipart (formulario con maskFile) o JSON
    if request.files or request.form:
        data = request.form.to_dict()
    else:
        data = request.get_json(silent=True) or {}

    mask = request.files.get("maskFile")
    mask_name = (mask.filename or "").strip() if mask else None

    job = job_service.submit_job(data, get_request_user_id(), mask_filename=mask_name or None)
    current_app.logger.info("JOB_SUBMITTED id=%s cost=%s", job["jobId"], job["cost"])
    return jsonify(job), 201
