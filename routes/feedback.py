import azure.functions as func
from utils.cors import json_response, get_json_body, handle_errors
from services.container import get_services

bp = func.Blueprint()


@bp.function_name(name="Feedback")
@bp.route(route="feedback", methods=["POST", "OPTIONS"],
          auth_level=func.AuthLevel.ANONYMOUS)
@handle_errors
def feedback(req: func.HttpRequest) -> func.HttpResponse:
    data = get_json_body(req)
    result = get_services().feedback.submit(data.get("email"), data.get("message"))
    return json_response(result, 200)
