import azure.functions as func
import logging
from utils.cors import json_response, get_json_body, handle_errors
from auth.deps import require_auth, current_identity
from services.container import get_services
from services.storage_service import parse_multipart

logger = logging.getLogger(__name__)
bp = func.Blueprint()


@bp.function_name(name="SignupRequest")
@bp.route(route="auth/signup-request", methods=["POST", "OPTIONS"],
          auth_level=func.AuthLevel.ANONYMOUS)
@handle_errors
def signup_request(req: func.HttpRequest) -> func.HttpResponse:
    """
    Start (or restart) signup for an email address.

    Creates an unverified account, or refreshes name/password/OTP on an
    existing unverified one, and emails a 6-digit OTP.

    Raises:
        400: Missing fields or email already registered and verified
        500: Email delivery or server error
    """
    data = get_json_body(req)
    result = get_services().accounts.signup_request(
        data.get("name"), data.get("email"), data.get("password")
    )
    return json_response(result, 200)


@bp.function_name(name="VerifySignupOtp")
@bp.route(route="auth/verify-signup-otp", methods=["POST", "OPTIONS"],
          auth_level=func.AuthLevel.ANONYMOUS)
@handle_errors
def verify_signup_otp(req: func.HttpRequest) -> func.HttpResponse:
    """
    Confirm signup with the emailed OTP.

    Raises:
        400: Invalid or expired OTP, or already verified
        404: No account for the email
    """
    data = get_json_body(req)
    result = get_services().accounts.verify_signup_otp(data.get("email"), data.get("otp"))
    return json_response(result, 200)


@bp.function_name(name="Login")
@bp.route(route="auth/login", methods=["POST", "OPTIONS"],
          auth_level=func.AuthLevel.ANONYMOUS)
@handle_errors
def login(req: func.HttpRequest) -> func.HttpResponse:
    """
    Authenticate with email and password.

    Returns the session token together with name, email, role and profilePic.

    Raises:
        400: Missing fields or invalid credentials
        403: Email not verified yet
    """
    data = get_json_body(req)
    result = get_services().accounts.login(data.get("email"), data.get("password"))
    return json_response(result, 200)


@bp.function_name(name="Me")
@bp.route(route="auth/me", methods=["GET", "OPTIONS"],
          auth_level=func.AuthLevel.ANONYMOUS)
@handle_errors
@require_auth
def me(req: func.HttpRequest) -> func.HttpResponse:
    profile = get_services().accounts.get_profile(current_identity().user_id)
    return json_response(profile, 200)


@bp.function_name(name="UpdateProfile")
@bp.route(route="auth/update", methods=["PUT", "OPTIONS"],
          auth_level=func.AuthLevel.ANONYMOUS)
@handle_errors
@require_auth
def update_profile(req: func.HttpRequest) -> func.HttpResponse:
    """
    Update the caller's name and/or password.

    Changing the password requires currentPassword.
    """
    data = get_json_body(req)
    result = get_services().accounts.update_profile(
        current_identity().user_id,
        name=data.get("name"),
        current_password=data.get("currentPassword"),
        new_password=data.get("newPassword"),
    )
    return json_response(result, 200)


@bp.function_name(name="ForgotPassword")
@bp.route(route="auth/forgot-password", methods=["POST", "OPTIONS"],
          auth_level=func.AuthLevel.ANONYMOUS)
@handle_errors
def forgot_password(req: func.HttpRequest) -> func.HttpResponse:
    """
    Email a one-hour password reset link.

    Raises:
        404: No account for the email
        500: Email delivery failed
    """
    data = get_json_body(req)
    result = get_services().accounts.forgot_password(data.get("email"))
    return json_response(result, 200)


@bp.function_name(name="ResetPassword")
@bp.route(route="auth/reset-password", methods=["POST", "OPTIONS"],
          auth_level=func.AuthLevel.ANONYMOUS)
@handle_errors
def reset_password(req: func.HttpRequest) -> func.HttpResponse:
    data = get_json_body(req)
    result = get_services().accounts.reset_password(data.get("token"), data.get("newPassword"))
    return json_response(result, 200)


@bp.function_name(name="UploadProfilePic")
@bp.route(route="auth/upload-dp", methods=["POST", "OPTIONS"],
          auth_level=func.AuthLevel.ANONYMOUS)
@handle_errors
@require_auth
def upload_profile_pic(req: func.HttpRequest) -> func.HttpResponse:
    """
    Replace the caller's profile picture.

    Expects multipart/form-data with the image in the ``profilePic`` field.
    Returns the stored relative path.
    """
    file = parse_multipart(req, field="profilePic")
    result = get_services().accounts.upload_profile_image(
        current_identity().user_id, file["content_type"], file["data"]
    )
    return json_response(result, 200)
