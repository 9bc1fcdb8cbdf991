"""
Shared fixtures: app on in-memory SQLite, Flask test client and a small catalog.
"""

from decimal import Decimal

import pytest

from lithomarket import create_app, db
from lithomarket.config import TestingConfig
from lithomarket.models import ModelLicense, SimulationModel, User
from lithomarket.models_job import Job, JobStatus
from lithomarket.services.pricing import to_wei
from lithomarket.utils_auth import SESSION_WALLET_KEY


BUYER_WALLET = "0x" + "b" * 40
AUTHOR_WALLET = "0x" + "a" * 40


@pytest.fixture
def app():
    app = create_app(TestingConfig)
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def author(app):
    user = User(username="model_author", wallet_address=AUTHOR_WALLET)
    db.session.add(user)
    db.session.commit()
    return user


@pytest.fixture
def buyer(app):
    user = User(username="buyer", wallet_address=BUYER_WALLET, email="buyer@example.com")
    db.session.add(user)
    db.session.commit()
    return user


def make_model(author, name, price, category="EUV Lithography", rating="4.5"):
    model = SimulationModel(
        name=name,
        description=f"{name} description",
        price=Decimal(price),
        price_in_wei=to_wei(price),
        author_id=author.id,
        author_address=author.wallet_address,
        category=category,
        rating=Decimal(rating),
        features=["test"],
    )
    db.session.add(model)
    db.session.commit()
    return model


@pytest.fixture
def paid_model(author):
    return make_model(author, "Advanced Gate Pattern v2", "0.20", category="Gate Patterning", rating="4.7")


@pytest.fixture
def cheap_model(author):
    return make_model(author, "Line Edge Roughness Analysis", "0.10", category="Line Edge Roughness", rating="4.3")


@pytest.fixture
def free_model(author):
    return make_model(author, "Aerial Image Preview", "0", rating="3.9")


@pytest.fixture
def licensed(buyer, paid_model):
    lic = ModelLicense(
        user_id=buyer.id,
        model_id=paid_model.id,
        wallet_address=buyer.wallet_address,
        transaction_hash="0x" + "1" * 64,
    )
    db.session.add(lic)
    db.session.commit()
    return lic


def make_job(user, model, job_id, status=JobStatus.queued, cost="0.10", **extra):
    job = Job(
        job_id=job_id,
        user_id=user.id,
        model_id=model.id,
        name=extra.pop("name", f"Simulation {job_id}"),
        status=status,
        progress=extra.pop("progress", 0),
        parameters={"resolution": 5, "wavelength": 193, "numericalAperture": 0.9, "iterations": 1000},
        cost=Decimal(cost),
        **extra,
    )
    db.session.add(job)
    db.session.commit()
    return job


def login(client, user):
    with client.session_transaction() as sess:
        sess[SESSION_WALLET_KEY] = user.wallet_address


@pytest.fixture
def job_params(paid_model):
    return {
        "name": "Gate run at 4nm",
        "modelId": str(paid_model.id),
        "resolution": 4,
        "wavelength": 193,
        "numericalAperture": 0.93,
        "iterations": 1200,
    }
