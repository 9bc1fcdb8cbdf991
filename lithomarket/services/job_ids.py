# lithomarket/services/job_ids.py
"""
Asignación de identificadores JOB-<n>.

El contador vive en la tabla job_sequences y se incrementa con un único
UPDATE ... SET last_value = last_value + 1 dentro de la transacción del
llamador. Dos envíos simultáneos quedan serializados por el lock de la fila
(SQLite: lock de escritura de la BD), así que nunca obtienen el mismo valor.

Si la fila aún no existe (BD nueva o migrada desde datos antiguos) se siembra
UNA vez desde el último job insertado: JOB-<n> => n + 1, o 1000 si no hay jobs.
El INSERT de siembra va en un savepoint: en Postgres un UPDATE de 0 filas no
bloquea nada, así que dos primeros envíos pueden competir; el perdedor
choca con la PK y reintenta el UPDATE.
"""
from __future__ import annotations

import logging
import re

from sqlalchemy import select, update
from sqlalchemy.exc import IntegrityError

from lithomarket.database import db
from lithomarket.errors import CorruptState
from lithomarket.models_job import Job, JobSequence

log = logging.getLogger(__name__)

SEQUENCE_NAME = "job"
FIRST_JOB_NUMBER = 1000
JOB_ID_PREFIX = "JOB-"
_JOB_ID_RE = re.compile(r"^JOB-(\d+)$")


def format_job_id(number: int) -> str:
    return f"{JOB_ID_PREFIX}{number}"


def parse_job_id(job_id: str) -> int:
    m = _JOB_ID_RE.match(job_id or "")
    if not m:
        raise CorruptState(
            f"Stored job identifier {job_id!r} does not match JOB-<digits>",
            {"job_id": job_id},
        )
    return int(m.group(1))


def _seed_value() -> int:
    last = db.session.execute(
        select(Job.job_id).order_by(Job.id.desc()).limit(1)
    ).scalar_one_or_none()
    if last is None:
        return FIRST_JOB_NUMBER
    return parse_job_id(last) + 1


def _increment() -> int:
    result = db.session.execute(
        update(JobSequence)
        .where(JobSequence.name == SEQUENCE_NAME)
        .values(last_value=JobSequence.last_value + 1)
        .execution_options(synchronize_session=False)
    )
    return result.rowcount


def next_job_id() -> int:
    """
    Devuelve el siguiente número de job. No hace commit: el incremento se
    confirma (o se revierte) junto con el job que lo usa.
    """
    if _increment() == 0:
        value = _seed_value()
        try:
            # savepoint: si otro envío sembró la fila primero, solo se pierde este INSERT
            with db.session.begin_nested():
                db.session.add(JobSequence(name=SEQUENCE_NAME, last_value=value))
        except IntegrityError:
            log.info("job sequence seeded by a concurrent submission, retrying increment")
            if _increment() == 0:
                raise CorruptState("Job sequence row vanished during allocation")
        else:
            log.info("job sequence seeded at %s", value)
            return value

    return db.session.execute(
        select(JobSequence.last_value).where(JobSequence.name == SEQUENCE_NAME)
    ).scalar_one()


def reset_sequence(value: int) -> None:
    """Fija el contador (seed/mantenimiento). El próximo id será value + 1."""
    seq = db.session.get(JobSequence, SEQUENCE_NAME)
    if seq is None:
        db.session.add(JobSequence(name=SEQUENCE_NAME, last_value=value))
    else:
        seq.last_value = value
