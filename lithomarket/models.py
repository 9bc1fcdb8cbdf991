# lithomarket/models.py
from __future__ import annotations

import datetime as dt

from lithomarket.database import db


def utcnow():
    return dt.datetime.utcnow()


# ---------------------------------------------------------
# USUARIOS (identificados por wallet)
# ---------------------------------------------------------
class User(db.Model):
    __tablename__ = "users"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    username = db.Column(db.String(255), unique=True, nullable=False)
    wallet_address = db.Column(db.String(64), unique=True, nullable=True, index=True)
    email = db.Column(db.String(255), nullable=True, index=True)

    # Login con Google (opcional; un usuario puede tener wallet, Google o ambos)
    name = db.Column(db.String(255), nullable=True)
    google_id = db.Column(db.String(64), unique=True, nullable=True)
    avatar = db.Column(db.String(1024), nullable=True)
    last_login = db.Column(db.DateTime, nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    licenses = db.relationship("ModelLicense", back_populates="user", lazy="dynamic")

    def __repr__(self) -> str:
        return f"<User id={self.id} username={self.username} wallet={self.wallet_address}>"


# ---------------------------------------------------------
# CATÁLOGO DE MODELOS DE SIMULACIÓN
# ---------------------------------------------------------
class SimulationModel(db.Model):
    """
    Entrada del catálogo. price == 0 => modelo gratis (licencia implícita).
    """

    __tablename__ = "models"
    __table_args__ = (
        db.CheckConstraint("price >= 0", name="price_non_negative"),
    )

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    name = db.Column(db.String(255), nullable=False)
    description = db.Column(db.Text, nullable=False, default="")

    price = db.Column(db.Numeric(20, 10), nullable=False)
    price_in_wei = db.Column(db.String(80), nullable=False)

    author_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    author_address = db.Column(db.String(64), nullable=True)

    category = db.Column(db.String(120), nullable=False, index=True)
    features = db.Column(db.JSON, nullable=True, default=list)
    rating = db.Column(db.Numeric(3, 1), nullable=True, default=0)
    num_reviews = db.Column(db.Integer, nullable=True, default=0)

    contract_address = db.Column(db.String(64), nullable=True)
    token_id = db.Column(db.Integer, nullable=True)
    metadata_uri = db.Column(db.String(512), nullable=True)
    image_url = db.Column(db.String(1024), nullable=True)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    author = db.relationship("User", foreign_keys=[author_id])

    @property
    def is_free(self) -> bool:
        return self.price == 0

    def __repr__(self) -> str:
        return f"<SimulationModel id={self.id} name={self.name!r} price={self.price}>"


# ---------------------------------------------------------
# LICENCIAS (una por par usuario/modelo)
# ---------------------------------------------------------
class ModelLicense(db.Model):
    __tablename__ = "model_licenses"
    __table_args__ = (
        db.UniqueConstraint("user_id", "model_id", name="uq_model_licenses_user_model"),
    )

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=False, index=True)
    model_id = db.Column(db.Integer, db.ForeignKey("models.id"), nullable=False, index=True)
    wallet_address = db.Column(db.String(64), nullable=True)
    transaction_hash = db.Column(db.String(80), nullable=False)

    acquired_at = db.Column(db.DateTime, nullable=False, default=utcnow)

    user = db.relationship("User", back_populates="licenses")
    model = db.relationship("SimulationModel")

    def __repr__(self) -> str:
        return f"<ModelLicense id={self.id} user={self.user_id} model={self.model_id}>"


# ---------------------------------------------------------
# DOCUMENTACIÓN (artículos de ayuda)
# ---------------------------------------------------------
class Documentation(db.Model):
    __tablename__ = "documentation"

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    title = db.Column(db.String(255), nullable=False)
    content = db.Column(db.Text, nullable=False)
    category = db.Column(db.String(120), nullable=False)
    slug = db.Column(db.String(255), nullable=False, unique=True)
    sort_order = db.Column(db.Integer, nullable=False, default=0)

    created_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    updated_at = db.Column(db.DateTime, nullable=True, onupdate=utcnow)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "title": self.title,
            "content": self.content,
            "category": self.category,
            "slug": self.slug,
            "sortOrder": self.sort_order,
            "createdAt": self.created_at.isoformat() if self.created_at else None,
            "updatedAt": self.updated_at.isoformat() if self.updated_at else None,
        }
