# lithomarket/errors.py
"""
Excepciones del marketplace.

Jerarquía:
    MarketplaceError (base)
    ├── ValidationError    - parámetros del job inválidos (400, lista todos los campos)
    ├── InvalidParameter   - entrada fuera de rango para el estimador (400)
    ├── Unauthorized       - sin licencia para un modelo de pago (403)
    ├── NotFound           - modelo/job inexistente (404)
    ├── AlreadyLicensed    - compra duplicada (409)
    ├── InvalidTransition  - cambio de estado no permitido (409)
    └── CorruptState       - secuencia de JOB ids ilegible (500)

Los servicios lanzan; los blueprints traducen a JSON con `status_code`.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional


class MarketplaceError(Exception):
    status_code = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        return {"message": self.message}


class ValidationError(MarketplaceError):
    """
    Datos de job inválidos. `errors` trae TODOS los campos violados,
    no solo el primero: [{"field": "resolution", "message": "..."}].
    """

    status_code = 400

    def __init__(self, errors: List[Dict[str, str]], message: str = "Invalid job data"):
        super().__init__(message, {"fields": [e["field"] for e in errors]})
        self.errors = errors

    @property
    def fields(self) -> List[str]:
        return [e["field"] for e in self.errors]

    def to_dict(self) -> Dict[str, Any]:
        return {"message": self.message, "errors": self.errors}


class InvalidParameter(MarketplaceError):
    status_code = 400

    def __init__(self, name: str, value: Any, message: Optional[str] = None):
        super().__init__(message or f"{name} must be positive", {"parameter": name, "value": value})
        self.name = name
        self.value = value


class Unauthorized(MarketplaceError):
    status_code = 403

    def __init__(self, message: str = "You don't have a license for this model", **details):
        super().__init__(message, details)


class NotFound(MarketplaceError):
    status_code = 404

    def __init__(self, what: str, ident: Any = None):
        message = f"{what} not found"
        super().__init__(message, {"id": ident} if ident is not None else None)
        self.what = what
        self.ident = ident


class AlreadyLicensed(MarketplaceError):
    status_code = 409

    def __init__(self, user_id: int, model_id: int):
        super().__init__(
            "You already own a license for this model",
            {"user_id": user_id, "model_id": model_id},
        )


class InvalidTransition(MarketplaceError):
    status_code = 409

    def __init__(self, job_id: str, current: str, target: str):
        super().__init__(
            f"Job {job_id} cannot move from {current} to {target}",
            {"job_id": job_id, "from": current, "to": target},
        )
        self.current = current
        self.target = target


class CorruptState(MarketplaceError):
    """
    Estado persistido ilegible (p.ej. un job_id que no sigue JOB-<n>).
    Es un defecto de operador: se reporta, no se esconde.
    """

    status_code = 500
