"""
Provides the JSON API of the portal.

Every response uses the same envelope. Successful responses look like
``{"statusCode": 200, "data": {...}, "message": "...", "success": true}``,
and failures like ``{"success": false, "message": "...", "errors": [],
"data": null}``, with the HTTP status of the failure.
"""

from typing import Optional
from datetime import timedelta
from http import HTTPStatus
import logging

from flask import Blueprint, Response, current_app, jsonify, \
    make_response, request
from werkzeug.datastructures import MultiDict

from ..auth.decorators import scoped
from ..controllers import authentication, papers, registration
from ..controllers.util import ResponseData

logger = logging.getLogger(__name__)
blueprint = Blueprint('api', __name__, url_prefix='/api/v1')


def _form_data() -> MultiDict:
    """
    Request parameters, from a JSON body or from form fields.

    JSON values are coerced to strings, as form fields would be; a list
    becomes a repeated field, and ``null`` is treated as absent.
    """
    if not request.is_json:
        return request.form
    payload = request.get_json(silent=True)
    if not isinstance(payload, dict):
        return MultiDict()
    data = MultiDict()
    for key, value in payload.items():
        values = value if isinstance(value, list) else [value]
        for item in values:
            if item is not None:
                data.add(key, str(item))
    return data


def respond(result: ResponseData, message: str) -> Response:
    """Wrap controller data in the success envelope."""
    data, code, headers = result
    cookies = data.pop('cookies', None)
    response: Response = make_response(jsonify({
        'statusCode': int(code),
        'data': data,
        'message': message,
        'success': True
    }), code, headers)
    set_cookies(response, cookies)
    return response


def _cookie_params() -> dict:
    # SameSite=Lax allows links to authenticated views using GET requests.
    return dict(httponly=True, samesite='Lax',
                secure=bool(current_app.config['AUTH_COOKIE_SECURE']))


def set_cookies(response: Response, cookies: Optional[dict]) -> None:
    """
    Update a :class:`.Response` with cookies in controller data.

    Controllers seeking to update cookies must include a ``cookies`` key in
    their response data, mapping a cookie key to ``(value, seconds)``.
    """
    if not cookies:
        return None
    for cookie_key, (cookie_value, expires) in cookies.items():
        cookie_name = current_app.config[f'{cookie_key.upper()}_COOKIE_NAME']
        response.set_cookie(cookie_name, cookie_value,
                            max_age=timedelta(seconds=expires),
                            **_cookie_params())


def unset_cookies(response: Response) -> None:
    """Clear both token cookies."""
    for cookie_key in ('access_token', 'refresh_token'):
        cookie_name = current_app.config[f'{cookie_key.upper()}_COOKIE_NAME']
        response.delete_cookie(cookie_name, **_cookie_params())


@blueprint.route('/healthcheck', methods=['GET'])
def healthcheck() -> Response:
    """Get if the app is running."""
    return respond(({'status': 'OK'}, HTTPStatus.OK, {}), 'Server is healthy')


@blueprint.route('/users/register', methods=['POST'])
def register() -> Response:
    """Begin a registration, and send a one-time code."""
    return respond(registration.begin_registration(_form_data()),
                   'OTP sent to your email. Please verify to complete '
                   'registration.')


@blueprint.route('/users/verify-otp', methods=['POST'])
def verify_otp() -> Response:
    """Verify a one-time code, and create the account."""
    return respond(registration.verify(_form_data()),
                   'User registered successfully')


@blueprint.route('/users/resend-otp', methods=['POST'])
def resend_otp() -> Response:
    """Send a fresh one-time code."""
    return respond(registration.resend(_form_data()),
                   'OTP resent successfully')


@blueprint.route('/users/login', methods=['POST'])
def login() -> Response:
    """Log in with e-mail, password and role."""
    return respond(authentication.login(_form_data()),
                   'User logged in successfully')


@blueprint.route('/users/logout', methods=['POST'])
@scoped()
def logout() -> Response:
    """Log out, and clear the token cookies."""
    response = respond(authentication.logout(request.auth),
                       'User logged out successfully')
    unset_cookies(response)
    return response


@blueprint.route('/users/refresh-token', methods=['POST'])
def refresh_token() -> Response:
    """Rotate the token pair."""
    cookie_name = current_app.config['REFRESH_TOKEN_COOKIE_NAME']
    token = request.cookies.get(cookie_name) \
        or _form_data().get('refreshToken')
    return respond(authentication.refresh(token),
                   'Access token refreshed successfully')


@blueprint.route('/users/me', methods=['GET'])
@scoped()
def me() -> Response:
    """Describe the authenticated account."""
    return respond(authentication.current_user(request.auth),
                   'User fetched successfully')


@blueprint.route('/papers/submit', methods=['POST'])
@scoped()
def submit_paper() -> Response:
    """Submit a new paper."""
    return respond(papers.submit(_form_data(), request.files),
                   'Paper submitted successfully')


@blueprint.route('/papers/update/<paper_id>', methods=['PUT'])
@scoped()
def update_paper(paper_id: str) -> Response:
    """Update a paper, resetting its status."""
    return respond(papers.update(paper_id, request.auth, _form_data(),
                                 request.files),
                   'Paper updated successfully, status reset to submitted')


@blueprint.route('/papers/delete/<paper_id>', methods=['DELETE'])
@scoped()
def delete_paper(paper_id: str) -> Response:
    """Delete a paper."""
    return respond(papers.remove(paper_id, request.auth),
                   'Paper deleted successfully')


@blueprint.route('/papers/status/<paper_id>', methods=['PUT'])
@scoped(admin=True)
def update_paper_status(paper_id: str) -> Response:
    """Set the review status of a paper."""
    return respond(papers.set_status(paper_id, request.auth, _form_data()),
                   'Paper status updated and author notified')


@blueprint.route('/papers/', methods=['GET'])
@scoped(admin=True)
def list_papers() -> Response:
    """List every paper."""
    return respond(papers.list_all(request.auth),
                   'Papers fetched successfully')


@blueprint.route('/papers/user/<email>', methods=['GET'])
@scoped()
def list_user_papers(email: str) -> Response:
    """List the papers submitted with an e-mail address."""
    return respond(papers.list_by_author(email),
                   'User papers fetched successfully')
