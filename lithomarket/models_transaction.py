# lithomarket/models_transaction.py
from __future__ import annotations

from lithomarket.database import db
from lithomarket.models import utcnow


class TransactionType:
    job_payment = "job_payment"
    model_purchase = "model_purchase"
    deposit = "deposit"


class Transaction(db.Model):
    """
    Movimiento del ledger (simulado, no hay cadena real).

    - type: 'job_payment' | 'model_purchase' | 'deposit'
    - amount: importe decimal; amount_in_wei: el mismo importe * 10^18 (string)
    - tx_hash: hash hex aleatorio (mock)
    - job_id / model_id: referencia opcional según el tipo
    - meta: JSON libre (jobId, modelName, ...). Columna "metadata" en la BD.
    """

    __tablename__ = "transactions"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)

    type = db.Column(db.String(32), nullable=False)
    amount = db.Column(db.Numeric(20, 10), nullable=False)
    amount_in_wei = db.Column(db.String(80), nullable=False)
    tx_hash = db.Column(db.String(80), nullable=False)

    from_address = db.Column(db.String(64), nullable=True)
    to_address = db.Column(db.String(64), nullable=True)

    job_id = db.Column(db.Integer, db.ForeignKey("jobs.id"), nullable=True)
    model_id = db.Column(db.Integer, db.ForeignKey("models.id"), nullable=True)

    status = db.Column(db.String(32), nullable=False, default="confirmed")
    # "metadata" está reservado en los modelos declarativos
    meta = db.Column("metadata", db.JSON, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    job = db.relationship("Job")
    model = db.relationship("SimulationModel")

    def __repr__(self) -> str:
        return (
            f"<Transaction id={self.id} type={self.type} "
            f"amount={self.amount} tx={self.tx_hash[:10]}>"
        )
