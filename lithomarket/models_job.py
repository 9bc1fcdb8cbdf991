# lithomarket/models_job.py
from __future__ import annotations

from lithomarket.database import db
from lithomarket.models import utcnow


class JobStatus:
    queued = "queued"
    processing = "processing"
    completed = "completed"
    failed = "failed"

    ALL = (queued, processing, completed, failed)
    ACTIVE = (queued, processing)


class Job(db.Model):
    __tablename__ = "jobs"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    # Identificador visible: JOB-<n> (único, creciente)
    job_id = db.Column(db.String(32), nullable=False, unique=True)

    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True, index=True)
    model_id = db.Column(db.Integer, db.ForeignKey("models.id"), nullable=False)

    name = db.Column(db.String(255), nullable=False)
    status = db.Column(db.String(32), nullable=False, default=JobStatus.queued)  # queued|processing|completed|failed
    progress = db.Column(db.Integer, nullable=False, default=0)
    parameters = db.Column(db.JSON, nullable=False)

    mask_file_url = db.Column(db.String(1024), nullable=True)

    # se fija al enviar; nunca se recalcula
    cost = db.Column(db.Numeric(20, 10), nullable=False)
    transaction_hash = db.Column(db.String(80), nullable=True)

    submitted_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    completed_at = db.Column(db.DateTime, nullable=True)

    result_id = db.Column(db.String(32), nullable=True)
    result_file_url = db.Column(db.String(1024), nullable=True)
    result_image_url = db.Column(db.String(1024), nullable=True)

    model = db.relationship("SimulationModel")
    user = db.relationship("User")

    def to_dict(self, full: bool = True) -> dict:
        """
        full=True => incluye parámetros, máscara y hash de la transacción
        """
        base = {
            "id": self.job_id,
            "name": self.name,
            "status": self.status,
            "progress": self.progress,
            "submittedAt": self.submitted_at.isoformat() if self.submitted_at else None,
            "completedAt": self.completed_at.isoformat() if self.completed_at else None,
            "modelId": self.model_id,
            "modelName": self.model.name if self.model else None,
            "resultId": self.result_id,
            "resultImageUrl": self.result_image_url,
        }
        if full:
            base["parameters"] = self.parameters
            base["maskFileUrl"] = self.mask_file_url
            base["resultFileUrl"] = self.result_file_url
            base["transactionHash"] = self.transaction_hash
        return base

    def __repr__(self) -> str:
        return f"<Job {self.job_id} user={self.user_id} status={self.status}>"


class JobSequence(db.Model):
    """
    Contador con nombre para los JOB ids. Se incrementa con un UPDATE atómico
    dentro de la transacción que inserta el job.
    """

    __tablename__ = "job_sequences"

    name = db.Column(db.String(32), primary_key=True)
    last_value = db.Column(db.Integer, nullable=False)

    def __repr__(self) -> str:
        return f"<JobSequence {self.name}={self.last_value}>"
