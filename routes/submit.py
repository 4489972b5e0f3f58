# routes/submit.py
from flask import Blueprint, current_app, make_response, redirect, render_template, request

from core.handler import OutcomeKind

submit_bp = Blueprint('submit', __name__)


def plain_text(body: str, status: int, headers: dict = None):
    response = make_response(body, status)
    response.mimetype = 'text/plain'
    response.headers.update(headers or {})
    return response


# Every method is routed here so that non-POST requests get the handler's
# plain-text 405 instead of Flask's HTML one.
@submit_bp.route('/submit', methods=['GET', 'HEAD', 'POST', 'PUT', 'PATCH', 'DELETE', 'OPTIONS'],
                 provide_automatic_options=False)
@submit_bp.route('/submit.php', methods=['GET', 'HEAD', 'POST', 'PUT', 'PATCH', 'DELETE', 'OPTIONS'],
                 provide_automatic_options=False)
def submit():
    handler = current_app.extensions['submission_handler']
    # Only POST bodies are parsed
    if request.method != handler.ALLOWED_METHOD:
        outcome = handler.reject_method(request.method)
    else:
        outcome = handler.handle(request.method, request.form, request.host)

    if outcome.kind in (OutcomeKind.METHOD_REJECTED, OutcomeKind.VALIDATION_FAILED):
        return plain_text(outcome.message, outcome.status_code, outcome.headers)

    redirect_url = current_app.config.get('SUCCESS_REDIRECT_URL')
    if outcome.sent and redirect_url:
        return redirect(redirect_url, code=302)

    return render_template(
        'result.html',
        sent=outcome.sent,
        recipient=handler.recipient,
        form_url=current_app.config.get('FORM_URL'),
    ), outcome.status_code
