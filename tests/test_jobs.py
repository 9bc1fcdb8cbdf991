"""
Job submission, state machine and job queries.
"""

from decimal import Decimal
from unittest.mock import patch

import pytest

from lithomarket import db
from lithomarket.errors import InvalidParameter, InvalidTransition, NotFound, Unauthorized, ValidationError
from lithomarket.models_job import Job, JobSequence, JobStatus
from lithomarket.models_transaction import Transaction, TransactionType
from lithomarket.services import jobs as job_service

from conftest import make_job


# ---------------------------------------------------------
# validación
# ---------------------------------------------------------
def test_validation_reports_every_bad_field():
    with pytest.raises(ValidationError) as exc:
        job_service.validate_job_params({
            "name": "ab",
            "modelId": "",
            "resolution": -1,
            "wavelength": "abc",
            "numericalAperture": 1.5,
            "iterations": 0,
        })
    assert exc.value.fields == [
        "name", "modelId", "resolution", "wavelength", "numericalAperture", "iterations",
    ]


def test_validation_coerces_form_strings():
    clean = job_service.validate_job_params({
        "name": "Form run",
        "modelId": 3,
        "resolution": "2.5",
        "wavelength": "193",
        "numericalAperture": "0",
        "iterations": "1500",
    })
    assert clean == {
        "name": "Form run",
        "modelId": "3",
        "resolution": 2.5,
        "wavelength": 193,
        "numericalAperture": 0,
        "iterations": 1500,
    }


def test_fractional_iterations_rejected(job_params):
    job_params["iterations"] = "10.5"
    with pytest.raises(ValidationError) as exc:
        job_service.validate_job_params(job_params)
    assert exc.value.fields == ["iterations"]


# ---------------------------------------------------------
# envío
# ---------------------------------------------------------
def test_submit_licensed_job_end_to_end(app, buyer, paid_model, licensed, job_params):
    out = job_service.submit_job(job_params, buyer.id)

    assert out["jobId"] == "JOB-1000"
    assert out["id"] == "JOB-1000"
    assert out["status"] == "queued"
    assert out["progress"] == 0
    assert out["cost"] == "0.445 MATIC"
    assert out["modelName"] == "Advanced Gate Pattern v2"

    job = db.session.query(Job).one()
    assert job.cost == Decimal("0.445")
    assert job.parameters == {
        "resolution": 4, "wavelength": 193, "numericalAperture": 0.93, "iterations": 1200,
    }
    assert job.mask_file_url is None

    tx = db.session.query(Transaction).one()
    assert tx.type == TransactionType.job_payment
    assert tx.job_id == job.id
    assert tx.amount == job.cost
    assert tx.amount_in_wei == "445000000000000000"
    assert tx.tx_hash == job.transaction_hash
    assert tx.from_address == buyer.wallet_address
    assert tx.to_address == app.config["JOB_PAYMENT_CONTRACT_ADDRESS"]
    assert tx.meta == {"jobId": "JOB-1000"}


def test_consecutive_submissions_get_distinct_ids(buyer, paid_model, licensed, job_params):
    first = job_service.submit_job(job_params, buyer.id)
    second = job_service.submit_job(job_params, buyer.id)
    assert (first["jobId"], second["jobId"]) == ("JOB-1000", "JOB-1001")
    assert db.session.query(Transaction).count() == 2


def test_submit_continues_after_existing_jobs(buyer, paid_model, licensed, job_params):
    make_job(buyer, paid_model, "JOB-4821")
    out = job_service.submit_job(job_params, buyer.id)
    assert out["jobId"] == "JOB-4822"


def test_free_model_needs_no_license(buyer, free_model, job_params):
    job_params["modelId"] = free_model.id
    out = job_service.submit_job(job_params, buyer.id)
    assert out["cost"] == "0.000 MATIC"
    assert db.session.query(Transaction).one().amount == 0


def test_unlicensed_submission_creates_nothing(buyer, paid_model, job_params):
    with pytest.raises(Unauthorized):
        job_service.submit_job(job_params, buyer.id)

    assert db.session.query(Job).count() == 0
    assert db.session.query(Transaction).count() == 0
    assert db.session.query(JobSequence).count() == 0


def test_invalid_params_fail_before_license_check(buyer, paid_model, job_params):
    job_params["resolution"] = 0
    with pytest.raises(ValidationError):
        job_service.submit_job(job_params, buyer.id)


def test_unknown_model(buyer, job_params):
    job_params["modelId"] = "9999"
    with pytest.raises(NotFound):
        job_service.submit_job(job_params, buyer.id)


def test_mask_file_reference_uses_job_id(app, buyer, paid_model, licensed, job_params):
    out = job_service.submit_job(job_params, buyer.id, mask_filename="layer_m1.gds")
    base = app.config["MASK_STORAGE_BASE_URL"].rstrip("/")
    assert out["maskFileUrl"] == f"{base}/JOB-1000.gds"


def test_mask_without_extension(app):
    base = app.config["MASK_STORAGE_BASE_URL"].rstrip("/")
    assert job_service.mask_file_reference("JOB-7", "mask") == f"{base}/JOB-7.bin"
    assert job_service.mask_file_reference("JOB-7", None) is None


def test_ledger_failure_rolls_back_job(buyer, paid_model, licensed, job_params):
    with patch("lithomarket.services.jobs.record_transaction", side_effect=RuntimeError("ledger down")):
        with pytest.raises(RuntimeError):
            job_service.submit_job(job_params, buyer.id)

    assert db.session.query(Job).count() == 0
    assert db.session.query(Transaction).count() == 0
    # el id no se consumió
    out = job_service.submit_job(job_params, buyer.id)
    assert out["jobId"] == "JOB-1000"


# ---------------------------------------------------------
# máquina de estados
# ---------------------------------------------------------
def test_job_lifecycle(app, buyer, paid_model):
    make_job(buyer, paid_model, "JOB-1000")

    job = job_service.advance_job("JOB-1000", JobStatus.processing, progress=40)
    assert (job.status, job.progress, job.completed_at) == ("processing", 40, None)

    job = job_service.advance_job("JOB-1000", JobStatus.processing, progress=80)
    assert job.progress == 80

    job = job_service.advance_job("JOB-1000", JobStatus.completed, result_image_url="https://img/1.png")
    base = app.config["RESULT_STORAGE_BASE_URL"].rstrip("/")
    assert job.progress == 100
    assert job.result_id == "RES-1000"
    assert job.result_file_url == f"{base}/res-1000.zip"
    assert job.result_image_url == "https://img/1.png"
    assert job.completed_at is not None


def test_queued_job_can_fail(buyer, paid_model):
    make_job(buyer, paid_model, "JOB-1000")
    job = job_service.advance_job("JOB-1000", JobStatus.failed)
    assert job.status == "failed"
    assert job.completed_at is not None
    assert job.result_id is None


@pytest.mark.parametrize("start,target", [
    (JobStatus.queued, JobStatus.completed),
    (JobStatus.queued, JobStatus.queued),
    (JobStatus.completed, JobStatus.processing),
    (JobStatus.failed, JobStatus.queued),
    (JobStatus.processing, "paused"),
])
def test_illegal_transitions(buyer, paid_model, start, target):
    make_job(buyer, paid_model, "JOB-1000", status=start)
    with pytest.raises(InvalidTransition):
        job_service.advance_job("JOB-1000", target)


def test_progress_out_of_range(buyer, paid_model):
    make_job(buyer, paid_model, "JOB-1000")
    with pytest.raises(InvalidParameter):
        job_service.advance_job("JOB-1000", JobStatus.processing, progress=120)


def test_advance_unknown_job(app):
    with pytest.raises(NotFound):
        job_service.advance_job("JOB-1", JobStatus.processing)


# ---------------------------------------------------------
# consultas
# ---------------------------------------------------------
def test_list_filters_and_search(buyer, author, paid_model, cheap_model):
    make_job(buyer, paid_model, "JOB-1000", name="Gate sweep")
    make_job(buyer, cheap_model, "JOB-1001", status=JobStatus.processing, name="Roughness check")
    make_job(author, paid_model, "JOB-1002", name="Someone else")

    assert {j["id"] for j in job_service.list_jobs(buyer.id)} == {"JOB-1000", "JOB-1001"}
    assert [j["id"] for j in job_service.list_jobs(buyer.id, status="processing")] == ["JOB-1001"]
    assert len(job_service.list_jobs(buyer.id, status="all_statuses")) == 2
    assert [j["id"] for j in job_service.list_jobs(buyer.id, search="sweep")] == ["JOB-1000"]
    assert [j["id"] for j in job_service.list_jobs(buyer.id, search="edge rough")] == ["JOB-1001"]
    assert [j["id"] for j in job_service.list_jobs(buyer.id, search="1001")] == ["JOB-1001"]


def test_get_job_is_scoped_to_owner(buyer, author, paid_model):
    make_job(buyer, paid_model, "JOB-1000", cost="0.445")
    got = job_service.get_job("JOB-1000", buyer.id)
    assert got["cost"] == "0.445 MATIC"
    assert got["parameters"]["iterations"] == 1000
    assert job_service.get_job("JOB-1000", author.id) is None


def test_results_only_for_completed_jobs(buyer, paid_model):
    make_job(buyer, paid_model, "JOB-1000", status=JobStatus.processing)
    assert job_service.job_results("JOB-1000", buyer.id) is None
    assert job_service.result_file_url("JOB-1000", buyer.id) is None

    job_service.advance_job("JOB-1000", JobStatus.completed)
    res = job_service.job_results("JOB-1000", buyer.id)
    assert res["resultId"] == "RES-1000"
    assert res["modelName"] == paid_model.name
    assert job_service.result_file_url("JOB-1000", buyer.id) == res["resultFileUrl"]
    assert [r["id"] for r in job_service.recent_results(buyer.id)] == ["RES-1000"]


def test_non_mapping_payload_is_a_validation_error():
    with pytest.raises(ValidationError) as exc:
        job_service.validate_job_params(["name", "modelId"])
    assert exc.value.fields == ["body"]


@pytest.mark.parametrize("filename,ext", [
    ("layer.m1.gds", "gds"),
    (".gds", "gds"),
    ("mask", "bin"),
    ("mask.", "bin"),
])
def test_mask_extension(app, filename, ext):
    assert job_service.mask_file_reference("JOB-9", filename).endswith(f"/JOB-9.{ext}")
