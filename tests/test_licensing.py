"""
License gate and purchase flow.
"""

from decimal import Decimal

import pytest

from lithomarket import db
from lithomarket.errors import AlreadyLicensed, NotFound
from lithomarket.models import ModelLicense
from lithomarket.models_transaction import Transaction, TransactionType
from lithomarket.services.licensing import authorize, has_license, purchase


def test_free_model_is_open_to_everyone(buyer, free_model):
    assert authorize(buyer.id, free_model.id) is True
    # no implicit license row is created
    assert db.session.query(ModelLicense).count() == 0


def test_paid_model_without_license_is_denied(buyer, paid_model):
    assert authorize(buyer.id, paid_model.id) is False


def test_paid_model_with_license_is_allowed(buyer, paid_model, licensed):
    assert authorize(buyer.id, paid_model.id) is True
    assert authorize(buyer.id, str(paid_model.id)) is True


def test_license_is_per_user(author, buyer, paid_model, licensed):
    assert authorize(author.id, paid_model.id) is False


def test_unknown_model_is_not_found(buyer):
    with pytest.raises(NotFound):
        authorize(buyer.id, 9999)


def test_non_numeric_model_id_is_not_found(buyer):
    with pytest.raises(NotFound):
        authorize(buyer.id, "not-a-model")


def test_purchase_creates_license_and_ledger_entry(buyer, author, paid_model):
    out = purchase(paid_model.id, buyer.id)

    assert out["success"] is True
    assert out["modelId"] == paid_model.id
    assert out["price"] == "0.200 MATIC"
    assert out["transactionHash"].startswith("0x")
    assert len(out["transactionHash"]) == 66

    assert has_license(buyer.id, paid_model.id)
    tx = db.session.query(Transaction).one()
    assert tx.type == TransactionType.model_purchase
    assert tx.amount == Decimal("0.20")
    assert tx.amount_in_wei == "200000000000000000"
    assert tx.to_address == author.wallet_address
    assert tx.model_id == paid_model.id
    assert tx.tx_hash == out["transactionHash"]

    assert authorize(buyer.id, paid_model.id) is True


def test_duplicate_purchase_is_rejected_without_new_rows(buyer, paid_model):
    purchase(paid_model.id, buyer.id)

    with pytest.raises(AlreadyLicensed):
        purchase(paid_model.id, buyer.id)

    assert db.session.query(ModelLicense).count() == 1
    assert db.session.query(Transaction).count() == 1


def test_purchase_of_missing_model(buyer):
    with pytest.raises(NotFound):
        purchase(424242, buyer.id)
    assert db.session.query(Transaction).count() == 0


def test_purchase_by_missing_user(paid_model):
    with pytest.raises(NotFound) as exc:
        purchase(paid_model.id, 9999)
    assert exc.value.what == "User"
