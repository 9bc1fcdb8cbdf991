# lithomarket/seed.py
"""
Datos de demo: usuarios, catálogo, licencias, jobs, transacciones y docs.
Se ejecuta con `flask --app lithomarket seed`.
"""
from __future__ import annotations

import datetime as dt
import logging
import secrets
from decimal import Decimal

from lithomarket.database import db
from lithomarket.models import Documentation, ModelLicense, SimulationModel, User
from lithomarket.models_job import Job, JobSequence
from lithomarket.models_transaction import Transaction, TransactionType
from lithomarket.services.job_ids import parse_job_id, reset_sequence
from lithomarket.services.ledger import mock_tx_hash
from lithomarket.services.pricing import to_wei

log = logging.getLogger(__name__)

CONTRACT_ADDRESS = "0x0000000000000000000000000000000000000001"

USERS = [
    {"username": "john_smith", "wallet_address": "0x71Ce042A9B246bF89f77AAcfC8A4319f5D95551A", "email": "john@example.com"},
    {"username": "alice_wong", "wallet_address": "0x93B6e9F19Bd70A128D69d63a84DcBBBdA2578B2", "email": "alice@example.com"},
    {"username": "semiconductor_expert", "wallet_address": "0x4a27c8F749D19B121D324F97ffaDB00D46489aE1", "email": "expert@example.com"},
]

MODELS = [
    {
        "name": "Advanced EUV Mask Defect Analysis",
        "description": "High precision model for EUV pattern analysis",
        "price": "0.15", "category": "EUV Lithography", "rating": "4.5", "num_reviews": 27,
        "features": ["Defect detection", "Pattern fidelity", "EUV-optimized"],
        "image_url": "https://images.unsplash.com/photo-1592664474574-33de548ece4c",
    },
    {
        "name": "FinFET Process Simulation",
        "description": "Complete 7nm process with optimized parameters",
        "price": "0.22", "category": "FinFET Process", "rating": "5.0", "num_reviews": 32,
        "features": ["7nm process", "High aspect ratio", "Production-ready"],
        "image_url": "https://images.unsplash.com/photo-1504384308090-c894fdcc538d",
    },
    {
        "name": "Multi-Patterning Optimization",
        "description": "Reduces edge placement errors by up to 35%",
        "price": "0.18", "category": "Multi-Patterning", "rating": "4.2", "num_reviews": 19,
        "features": ["SADP compatible", "Error reduction", "Yield improvement"],
    },
    {
        "name": "Advanced Gate Pattern v2",
        "description": "Optimized gate patterning for 5nm node with variability control",
        "price": "0.20", "category": "Gate Patterning", "rating": "4.7", "num_reviews": 23,
        "features": ["5nm node", "Variability control", "Metal gate compatible"],
    },
    {
        "name": "Line Edge Roughness Analysis",
        "description": "Advanced analysis of line edge roughness with statistical modeling",
        "price": "0.12", "category": "Line Edge Roughness", "rating": "4.3", "num_reviews": 15,
        "features": ["Statistical modeling", "Roughness quantification", "Pattern fidelity"],
    },
    {
        "name": "DRAM Cell Patterning",
        "description": "Optimized patterning solution for high-density DRAM cells",
        "price": "0.25", "category": "DRAM Cell", "rating": "4.8", "num_reviews": 18,
        "features": ["High density", "Minimal capacitance", "Low leakage"],
    },
    {
        "name": "Aerial Image Preview",
        "description": "Free quick-look aerial image model for sanity checks before paid runs",
        "price": "0", "category": "EUV Lithography", "rating": "3.9", "num_reviews": 41,
        "features": ["Free", "Fast preview"],
    },
]

# (job_id, índice de modelo, nombre, estado, progreso, parámetros, costo, horas atrás, horas hasta completar)
JOBS = [
    ("JOB-3892", 3, "Gate pattern simulation with 5nm resolution", "processing", 75,
     {"resolution": 5, "wavelength": 193, "numericalAperture": 0.93, "iterations": 1000}, "0.05", 3, None),
    ("JOB-3891", 4, "Edge roughness analysis for 7nm features", "queued", 0,
     {"resolution": 2, "wavelength": 193, "numericalAperture": 0.85, "iterations": 2000}, "0.08", 4, None),
    ("JOB-3889", 2, "SADP simulation for memory array", "processing", 24,
     {"resolution": 3, "wavelength": 193, "numericalAperture": 0.90, "iterations": 1500}, "0.12", 6, None),
    ("JOB-3880", 3, "Gate pattern with optimization", "completed", 100,
     {"resolution": 4, "wavelength": 193, "numericalAperture": 0.93, "iterations": 1200}, "0.07", 48, 12),
    ("JOB-3870", 4, "Edge roughness for critical dimension", "completed", 100,
     {"resolution": 2.5, "wavelength": 193, "numericalAperture": 0.88, "iterations": 1800}, "0.09", 72, 12),
]

DOCS = [
    ("Introduction to LithoMarket", "getting-started", "introduction", 1,
     "<div class=\"prose\"><p>LithoMarket is a marketplace for lithography simulation models. "
     "Browse and license models, submit simulation jobs with custom parameters and track "
     "their status and results.</p></div>"),
    ("Connecting Your Wallet", "getting-started", "connecting-wallet", 2,
     "<div class=\"prose\"><p>Request a sign-in challenge for your wallet address, sign the "
     "message and send it to <code>/api/auth/wallet/connect</code>.</p></div>"),
    ("Browsing the Marketplace", "getting-started", "browsing-marketplace", 3,
     "<div class=\"prose\"><p>Filter models by category, price range or search term. "
     "Free models can be used without a license.</p></div>"),
    ("REST API Overview", "api-reference", "api-overview", 1,
     "<div class=\"prose\"><p>All endpoints live under <code>/api</code> and return JSON.</p></div>"),
    ("Job Submission API", "api-reference", "job-submission-api", 2,
     "<div class=\"prose\"><p><code>POST /api/jobs</code> with <code>name</code>, <code>modelId</code>, "
     "<code>resolution</code>, <code>wavelength</code>, <code>numericalAperture</code> and "
     "<code>iterations</code>; optional <code>maskFile</code> upload.</p></div>"),
    ("Model Submission Requirements", "model-guidelines", "model-submission-requirements", 1,
     "<div class=\"prose\"><p>Models must document their supported nodes, inputs and "
     "expected runtime.</p></div>"),
    ("Running Your First Simulation", "tutorials", "first-simulation", 1,
     "<div class=\"prose\"><p>Pick a licensed or free model, upload a mask file and submit. "
     "Cost grows with finer resolution and more iterations.</p></div>"),
]


def _random_address() -> str:
    return "0x" + secrets.token_hex(20)


def _get_or_create_users():
    users = []
    for data in USERS:
        u = db.session.query(User).filter(User.username == data["username"]).first()
        if u is None:
            u = User(**data)
            db.session.add(u)
        users.append(u)
    db.session.flush()
    return users


def clear_catalog() -> None:
    """Borra modelos, jobs, licencias, transacciones y docs (los usuarios se conservan)."""
    for model in (Transaction, Job, JobSequence, ModelLicense, SimulationModel, Documentation):
        db.session.query(model).delete()
    db.session.flush()


def seed_demo_data() -> dict:
    clear_catalog()
    john, alice, expert = _get_or_create_users()
    now = dt.datetime.utcnow()

    models = []
    for token_id, data in enumerate(MODELS, start=1):
        m = SimulationModel(
            **{**data, "price": Decimal(data["price"]), "rating": Decimal(data["rating"])},
            price_in_wei=to_wei(data["price"]),
            author_id=expert.id,
            author_address=expert.wallet_address,
            contract_address=_random_address(),
            token_id=token_id,
            metadata_uri=f"ipfs://Qm123456789abcdef/{token_id}",
        )
        db.session.add(m)
        models.append(m)
    db.session.flush()

    for idx in (0, 3):
        db.session.add(ModelLicense(
            user_id=john.id,
            model_id=models[idx].id,
            wallet_address=john.wallet_address,
            transaction_hash=mock_tx_hash(),
        ))

    jobs = []
    for code, midx, name, status, progress, params, cost, hours_ago, took in JOBS:
        number = parse_job_id(code)
        submitted = now - dt.timedelta(hours=hours_ago)
        job = Job(
            job_id=code,
            user_id=john.id,
            model_id=models[midx].id,
            name=name,
            status=status,
            progress=progress,
            parameters=params,
            mask_file_url=f"https://storage.example.com/masks/job-{number}.gds",
            cost=Decimal(cost),
            transaction_hash=mock_tx_hash(),
            submitted_at=submitted,
        )
        if took is not None:
            job.completed_at = submitted + dt.timedelta(hours=took)
            job.result_id = f"RES-{number}"
            job.result_file_url = f"https://storage.example.com/results/res-{number}.zip"
            job.result_image_url = MODELS[midx].get("image_url")
        db.session.add(job)
        jobs.append(job)
    db.session.flush()

    # el contador arranca después del mayor JOB sembrado
    reset_sequence(max(parse_job_id(code) for code, *_ in JOBS))

    db.session.add_all([
        Transaction(
            user_id=john.id, type=TransactionType.job_payment, amount=Decimal("0.12"),
            amount_in_wei=to_wei("0.12"), tx_hash=mock_tx_hash(),
            from_address=john.wallet_address, to_address=CONTRACT_ADDRESS,
            job_id=jobs[2].id, meta={"jobId": jobs[2].job_id},
            created_at=now - dt.timedelta(hours=6),
        ),
        Transaction(
            user_id=john.id, type=TransactionType.model_purchase, amount=Decimal("0.18"),
            amount_in_wei=to_wei("0.18"), tx_hash=mock_tx_hash(),
            from_address=john.wallet_address, to_address=expert.wallet_address,
            model_id=models[2].id, meta={"modelName": models[2].name},
            created_at=now - dt.timedelta(days=2),
        ),
        Transaction(
            user_id=john.id, type=TransactionType.deposit, amount=Decimal("1.00"),
            amount_in_wei=to_wei("1.00"), tx_hash=mock_tx_hash(),
            from_address=alice.wallet_address, to_address=john.wallet_address,
            meta={"from": "External Wallet"},
            created_at=now - dt.timedelta(days=3),
        ),
    ])

    for title, category, slug, order, content in DOCS:
        db.session.add(Documentation(
            title=title, category=category, slug=slug, sort_order=order, content=content,
        ))

    db.session.commit()
    counts = {
        "users": db.session.query(User).count(),
        "models": len(models),
        "jobs": len(jobs),
        "documentation": len(DOCS),
    }
    log.info("seed done: %s", counts)
    return counts
