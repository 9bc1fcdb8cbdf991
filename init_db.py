# init_db.py
# Crea las tablas (si faltan) y lista lo que hay en la BD configurada.
from sqlalchemy import inspect

from lithomarket import create_app, db

app = create_app()

with app.app_context():
    db.create_all()
    insp = inspect(db.engine)
    print("DB URI =>", app.config["SQLALCHEMY_DATABASE_URI"])
    print("Tablas ahora:", insp.get_table_names())
