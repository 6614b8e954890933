import azure.functions as func
import logging
from utils.cors import json_response, handle_errors
from auth.deps import admin_required, current_identity
from services.container import get_services

logger = logging.getLogger(__name__)
bp = func.Blueprint()


@bp.function_name(name="AdminStats")
@bp.route(route="admin/stats", methods=["GET", "OPTIONS"],
          auth_level=func.AuthLevel.ANONYMOUS)
@handle_errors
@admin_required
def admin_stats(req: func.HttpRequest) -> func.HttpResponse:
    logger.info(f"Admin stats requested by {current_identity().email}")
    return json_response(get_services().admin.stats(), 200)


@bp.function_name(name="AdminFeedbacks")
@bp.route(route="admin/feedbacks", methods=["GET", "OPTIONS"],
          auth_level=func.AuthLevel.ANONYMOUS)
@handle_errors
@admin_required
def admin_feedbacks(req: func.HttpRequest) -> func.HttpResponse:
    return json_response(get_services().admin.feedbacks(), 200)


@bp.function_name(name="AdminUserDetail")
@bp.route(route="admin/user/{user_id}", methods=["GET", "OPTIONS"],
          auth_level=func.AuthLevel.ANONYMOUS)
@handle_errors
@admin_required
def admin_user_detail(req: func.HttpRequest) -> func.HttpResponse:
    detail = get_services().admin.user_detail(req.route_params.get("user_id"))
    return json_response(detail, 200)
