# print_routes.py
# Lista las rutas de la API: método, regla, endpoint y si exigen wallet.
from lithomarket import create_app

app = create_app()

print("== LithoMarket API ==")
for rule in sorted(app.url_map.iter_rules(), key=lambda r: (r.rule, r.endpoint)):
    if rule.endpoint == "static":
        continue
    view = app.view_functions[rule.endpoint]
    wallet = "wallet" if getattr(view, "__wrapped__", None) is not None else ""
    methods = ",".join(sorted(rule.methods - {"HEAD", "OPTIONS"}))
    print(f"{methods:10s} {rule.rule:45s} {rule.endpoint:32s} {wallet}")
