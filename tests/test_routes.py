"""End-to-end checks through the HTTP handlers, using the in-memory services."""
import pytest
from sqlalchemy import text

import routes.admin_routes as admin_routes
import routes.auth as auth_routes
import routes.feedback as feedback_routes
import routes.watchlist as watchlist_routes
from models import UserRole
from conftest import body_of, call, get_user, make_request
from test_storage_service import multipart, png_bytes


def _signup_verify_login(session_factory, name="Alice", email="alice@x.com", password="pw1"):
    resp = call(auth_routes.signup_request, make_request(
        "POST", "/api/auth/signup-request", {"name": name, "email": email, "password": password}))
    assert resp.status_code == 200

    otp = get_user(session_factory, email).email_otp
    resp = call(auth_routes.verify_signup_otp, make_request(
        "POST", "/api/auth/verify-signup-otp", {"email": email, "otp": otp}))
    assert resp.status_code == 200

    resp = call(auth_routes.login, make_request(
        "POST", "/api/auth/login", {"email": email, "password": password}))
    assert resp.status_code == 200
    return body_of(resp)["token"]


def test_full_account_flow(services, session_factory):
    token = _signup_verify_login(session_factory)

    resp = call(auth_routes.me, make_request("GET", "/api/auth/me", token=token))
    assert resp.status_code == 200
    assert body_of(resp) == {"name": "Alice", "email": "alice@x.com", "role": "user", "profilePic": ""}

    resp = call(auth_routes.update_profile, make_request(
        "PUT", "/api/auth/update", {"name": "Al", "currentPassword": "pw1", "newPassword": "pw2"}, token=token))
    assert resp.status_code == 200

    resp = call(auth_routes.login, make_request(
        "POST", "/api/auth/login", {"email": "alice@x.com", "password": "pw2"}))
    assert body_of(resp)["name"] == "Al"


def test_error_body_shape(services):
    resp = call(auth_routes.verify_signup_otp, make_request(
        "POST", "/api/auth/verify-signup-otp", {"email": "ghost@x.com", "otp": "123456"}))
    assert resp.status_code == 404
    assert body_of(resp) == {"error": "not_found", "message": "User not found"}


def test_signup_conflict_is_400(services, session_factory):
    _signup_verify_login(session_factory)
    resp = call(auth_routes.signup_request, make_request(
        "POST", "/api/auth/signup-request", {"name": "A", "email": "alice@x.com", "password": "x"}))
    assert resp.status_code == 400
    assert body_of(resp)["error"] == "conflict"


def test_unverified_login_is_403(services):
    call(auth_routes.signup_request, make_request(
        "POST", "/api/auth/signup-request", {"name": "A", "email": "a@x.com", "password": "x"}))
    resp = call(auth_routes.login, make_request(
        "POST", "/api/auth/login", {"email": "a@x.com", "password": "x"}))
    assert resp.status_code == 403


def test_invalid_json_is_400(services):
    resp = call(auth_routes.login, make_request("POST", "/api/auth/login", body=b"{not json"))
    assert resp.status_code == 400
    assert body_of(resp)["error"] == "bad_request"


def test_options_preflight(services):
    resp = call(watchlist_routes.watchlist, make_request("OPTIONS", "/api/watchlist"))
    assert resp.status_code == 204
    assert resp.headers["Access-Control-Allow-Origin"] == "*"


@pytest.mark.parametrize("token", [None, "garbage"])
def test_protected_routes_need_valid_token(services, token):
    resp = call(auth_routes.me, make_request("GET", "/api/auth/me", token=token))
    assert resp.status_code == 401
    assert body_of(resp)["error"] == "unauthorized"


def test_watchlist_routes(services, session_factory):
    token = _signup_verify_login(session_factory)
    movie = {"movieId": 550, "movieData": {"title": "Fight Club"}}

    resp = call(watchlist_routes.watchlist, make_request("POST", "/api/watchlist", movie, token=token))
    assert resp.status_code == 201
    resp = call(watchlist_routes.watchlist, make_request("POST", "/api/watchlist", movie, token=token))
    assert resp.status_code == 400
    assert body_of(resp)["message"] == "Movie already in watchlist"

    resp = call(watchlist_routes.watchlist, make_request("GET", "/api/watchlist", token=token))
    assert [i["movieId"] for i in body_of(resp)] == [550]

    for _ in range(2):
        resp = call(watchlist_routes.watchlist_item, make_request(
            "DELETE", "/api/watchlist/550", token=token, route_params={"movie_id": "550"}))
        assert resp.status_code == 200

    resp = call(watchlist_routes.watchlist, make_request("GET", "/api/watchlist", token=token))
    assert body_of(resp) == []


def test_password_reset_routes(services, session_factory, mailer):
    _signup_verify_login(session_factory)

    resp = call(auth_routes.forgot_password, make_request(
        "POST", "/api/auth/forgot-password", {"email": "alice@x.com"}))
    assert resp.status_code == 200
    reset_token = get_user(session_factory, "alice@x.com").reset_password_token

    resp = call(auth_routes.reset_password, make_request(
        "POST", "/api/auth/reset-password", {"token": reset_token, "newPassword": "brand-new"}))
    assert resp.status_code == 200

    resp = call(auth_routes.reset_password, make_request(
        "POST", "/api/auth/reset-password", {"token": reset_token, "newPassword": "again"}))
    assert resp.status_code == 400
    assert body_of(resp)["error"] == "invalid_or_expired"


def test_upload_profile_picture(services, session_factory):
    token = _signup_verify_login(session_factory)
    body, ctype = multipart("profilePic", "me.png", "image/png", png_bytes())

    resp = call(auth_routes.upload_profile_pic, make_request(
        "POST", "/api/auth/upload-dp", body=body, token=token, headers={"Content-Type": ctype}))

    assert resp.status_code == 200
    path = body_of(resp)["path"]
    assert path.startswith("uploads/profilePics/")
    assert get_user(session_factory, "alice@x.com").profile_pic == path


def test_upload_rejects_non_image(services, session_factory):
    token = _signup_verify_login(session_factory)
    body, ctype = multipart("profilePic", "me.txt", "text/plain", b"hello")
    resp = call(auth_routes.upload_profile_pic, make_request(
        "POST", "/api/auth/upload-dp", body=body, token=token, headers={"Content-Type": ctype}))
    assert resp.status_code == 400


def test_admin_routes_require_admin(services, session_factory, make_user):
    user_token = _signup_verify_login(session_factory)
    make_user(email="root@x.com", password="root", role=UserRole.ADMIN)
    admin_token = body_of(call(auth_routes.login, make_request(
        "POST", "/api/auth/login", {"email": "root@x.com", "password": "root"})))["token"]

    resp = call(admin_routes.admin_stats, make_request("GET", "/api/admin/stats", token=user_token))
    assert resp.status_code == 403
    assert body_of(resp)["message"] == "Access denied: Admins only"

    resp = call(admin_routes.admin_stats, make_request("GET", "/api/admin/stats", token=admin_token))
    assert resp.status_code == 200
    assert body_of(resp)["totalUsers"] == 2

    call(feedback_routes.feedback, make_request(
        "POST", "/api/feedback", {"email": "alice@x.com", "message": "great app"}))
    resp = call(admin_routes.admin_feedbacks, make_request("GET", "/api/admin/feedbacks", token=admin_token))
    assert [f["message"] for f in body_of(resp)] == ["great app"]

    alice_id = str(get_user(session_factory, "alice@x.com").id)
    resp = call(admin_routes.admin_user_detail, make_request(
        "GET", f"/api/admin/user/{alice_id}", token=admin_token, route_params={"user_id": alice_id}))
    assert resp.status_code == 200
    assert body_of(resp)["feedbacks"][0]["message"] == "great app"

    resp = call(admin_routes.admin_user_detail, make_request(
        "GET", "/api/admin/user/nope", token=admin_token, route_params={"user_id": "nope"}))
    assert resp.status_code == 404


def test_feedback_validation(services):
    resp = call(feedback_routes.feedback, make_request("POST", "/api/feedback", {"email": "a@x.com"}))
    assert resp.status_code == 400
    assert body_of(resp)["message"] == "Email and message are required"


def test_store_failure_is_generic_500(services, session_factory):
    with session_factory() as db:
        db.execute(text("DROP TABLE feedbacks"))
        db.commit()

    resp = call(feedback_routes.feedback, make_request(
        "POST", "/api/feedback", {"email": "a@x.com", "message": "hi"}))
    assert resp.status_code == 500
    assert body_of(resp) == {"error": "internal", "message": "Server error"}


@pytest.mark.parametrize("fn,url,body", [
    (auth_routes.signup_request, "/api/auth/signup-request",
     {"name": "Alice", "email": "alice@x.com", "password": 123456}),
    (auth_routes.signup_request, "/api/auth/signup-request",
     {"name": "Alice", "email": "alice@x.com", "password": "x" * 80}),
    (auth_routes.login, "/api/auth/login", {"email": 5, "password": "pw1"}),
    (auth_routes.forgot_password, "/api/auth/forgot-password", {"email": ["alice@x.com"]}),
    (auth_routes.reset_password, "/api/auth/reset-password", {"token": 1, "newPassword": "pw"}),
    (feedback_routes.feedback, "/api/feedback", {"email": "a@x.com", "message": {"text": "hi"}}),
])
def test_malformed_fields_are_400(services, fn, url, body):
    resp = call(fn, make_request("POST", url, body))
    assert resp.status_code == 400
    assert body_of(resp)["error"] == "bad_request"


@pytest.mark.parametrize("movie_id", ["--5", "²", "99999999999"])
def test_malformed_movie_id_in_route_is_400(services, session_factory, movie_id):
    token = _signup_verify_login(session_factory)
    resp = call(watchlist_routes.watchlist_item, make_request(
        "DELETE", f"/api/watchlist/{movie_id}", token=token, route_params={"movie_id": movie_id}))
    assert resp.status_code == 400
    assert body_of(resp)["error"] == "bad_request"


def test_long_new_password_on_update_is_400(services, session_factory):
    token = _signup_verify_login(session_factory)
    resp = call(auth_routes.update_profile, make_request(
        "PUT", "/api/auth/update", {"currentPassword": "pw1", "newPassword": "x" * 80}, token=token))
    assert resp.status_code == 400
    assert body_of(resp)["message"] == "Password must be at most 72 bytes"
