# lithomarket/cli.py
from __future__ import annotations

import click
from flask import Flask

from lithomarket.errors import MarketplaceError


def register_cli(app: Flask) -> None:
    @app.cli.command("seed")
    def seed_command():
        """Carga datos de demo (borra catálogo, jobs y transacciones previos)."""
        from lithomarket.seed import seed_demo_data

        counts = seed_demo_data()
        click.echo(f"Seed OK: {counts}")

    @app.cli.command("advance-job")
    @click.argument("job_id")
    @click.argument("status")
    @click.option("--progress", type=int, default=None, help="0-100")
    @click.option("--result-url", default=None, help="URL del archivo de resultados")
    @click.option("--image-url", default=None, help="URL de la imagen de resultado")
    def advance_job_command(job_id, status, progress, result_url, image_url):
        """Mueve un job por su máquina de estados (hook del procesador externo)."""
        from lithomarket.services.jobs import advance_job

        try:
            job = advance_job(
                job_id,
                status,
                progress=progress,
                result_file_url=result_url,
                result_image_url=image_url,
            )
        except MarketplaceError as e:
            raise click.ClickException(e.message)
        click.echo(f"{job.job_id}: {job.status} ({job.progress}%)")
