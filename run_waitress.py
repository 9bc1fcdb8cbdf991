# run_waitress.py
# Sirve la app Flask con Waitress (producción).
# Sin LITHOMARKET_ENV se usa ProductionConfig: DEBUG apagado y sin login de wallet sin verificar.
import os

from waitress import serve

from lithomarket import create_app
from lithomarket.config import config_for

if __name__ == "__main__":
    application = create_app(config_for(default="production"))
    host = os.getenv("HOST", "127.0.0.1")
    port = int(os.getenv("PORT", "8000"))
    threads = int(os.getenv("WAITRESS_THREADS", "8"))
    print(f"[Waitress] Sirviendo en http://{host}:{port} (debug={application.debug})")
    serve(application, listen=f"{host}:{port}", threads=threads)
