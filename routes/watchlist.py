import azure.functions as func
import logging
from utils.cors import json_response, get_json_body, handle_errors
from auth.deps import require_auth, current_identity
from services.container import get_services

logger = logging.getLogger(__name__)
bp = func.Blueprint()


@bp.function_name(name="Watchlist")
@bp.route(route="watchlist", methods=["GET", "POST", "OPTIONS"],
          auth_level=func.AuthLevel.ANONYMOUS)
@handle_errors
@require_auth
def watchlist(req: func.HttpRequest) -> func.HttpResponse:
    user_id = current_identity().user_id
    service = get_services().watchlist

    if req.method == "GET":
        return json_response(service.list(user_id), 200)

    # POST
    body = get_json_body(req)
    result = service.add(user_id, body.get("movieId"), body.get("movieData"))
    return json_response(result, 201)


@bp.function_name(name="WatchlistItem")
@bp.route(route="watchlist/{movie_id}", methods=["DELETE", "OPTIONS"],
          auth_level=func.AuthLevel.ANONYMOUS)
@handle_errors
@require_auth
def watchlist_item(req: func.HttpRequest) -> func.HttpResponse:
    result = get_services().watchlist.remove(
        current_identity().user_id, req.route_params.get("movie_id")
    )
    return json_response(result, 200)
