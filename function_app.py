import os, json
import logging
import azure.functions as func

app = func.FunctionApp(http_auth_level=func.AuthLevel.ANONYMOUS)

# Only try dotenv locally (Azure sets WEBSITE_SITE_NAME on hosted apps)
IS_AZURE = bool(os.getenv("WEBSITE_SITE_NAME"))
if not IS_AZURE:
    from dotenv import load_dotenv
    load_dotenv()

logging.basicConfig(level=os.getenv("LOG_LEVEL", "INFO"))

REGISTERED: list[str] = []
FAILURES: list[str] = []

def _try(modpath: str, name: str):
    try:
        mod = __import__(modpath, fromlist=["bp"])
        app.register_functions(getattr(mod, "bp"))
        REGISTERED.append(name)
    except Exception:
        logging.getLogger(__name__).exception(f"Failed to register {name} routes")
        FAILURES.append(name)

# 🔹 Register AT STARTUP so the Functions host discovers HTTP triggers
_try("routes.auth", "auth")
_try("routes.watchlist", "watchlist")
_try("routes.feedback", "feedback")
_try("routes.admin_routes", "admin")

@app.function_name(name="Ping")
@app.route(route="ping", methods=["GET"])
def ping(req: func.HttpRequest) -> func.HttpResponse:
    return func.HttpResponse("Server is up and running!", mimetype="text/plain")

# Diagnostics (read-only)
@app.function_name(name="Diag")
@app.route(route="_diag", methods=["GET"])
def diag(req: func.HttpRequest) -> func.HttpResponse:
    return func.HttpResponse(
        json.dumps({"registered": REGISTERED, "failures": FAILURES}),
        mimetype="application/json"
    )
