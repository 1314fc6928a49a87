"""
Dashboard routes.

Shows:
- Message form
- Analysis results (raw score + tier) or a status banner
- Saved history for logged-in users

Each request builds a DashboardController with the app's scorer and store and
renders its final state. The analyzed (message, score) pair travels between
requests as a signed token, so saving stores exactly what was scored.
"""

from __future__ import annotations
from flask import Blueprint, render_template, request, current_app
from toxicity_dashboard.extensions import get_scorer, get_store
from toxicity_dashboard.services.analysis_token import InvalidAnalysisToken, load_analysis, sign_analysis
from toxicity_dashboard.services.dashboard import (
    Analyzed,
    DashboardController,
    Error,
    ERROR_VALIDATION,
    Saved,
)
from toxicity_dashboard.utils.auth import optional_auth, get_current_user_id
from toxicity_dashboard.utils.validation import ERROR_MESSAGES, validate_text

dashboard_bp = Blueprint("dashboard", __name__, url_prefix="/dashboard")


def _controller(state=None) -> DashboardController:
    return DashboardController(
        scorer=get_scorer(),
        store=get_store(),
        owner_id=get_current_user_id(),
        state=state,
    )


def _render(controller: DashboardController, message: str = ""):
    """Render the controller's state, then close it so nothing updates after the response."""
    try:
        if controller.history is None:
            controller.fetch_user_history()

        state = controller.state
        analysis_token = None
        if isinstance(state, (Analyzed, Saved)):
            message = state.message
        if isinstance(state, Analyzed):
            analysis_token = sign_analysis(state.message, state.score, state.analysis_id)

        return render_template(
            "dashboard/index.html",
            state=state,
            message=message,
            analysis_token=analysis_token,
            history=controller.history,
        )
    finally:
        controller.close()


@dashboard_bp.route("/")
@optional_auth
def index():
    """Empty form plus the user's saved history."""
    return _render(_controller())


@dashboard_bp.route("/analyze", methods=["POST"])
@optional_auth
def analyze():
    """Score the submitted message and show the result."""
    message = request.form.get("message", "")
    controller = _controller()

    _, error_code = validate_text(message, current_app.config.get("MAX_TEXT_LENGTH", 20000))
    if error_code:
        controller.state = Error(ERROR_MESSAGES[error_code], ERROR_VALIDATION)
    else:
        controller.handle_analyze(message)

    return _render(controller, message)


@dashboard_bp.route("/save", methods=["POST"])
@optional_auth
def save():
    """Save the analysis carried by the form's signed token for the logged-in user."""
    state = None
    message = ""
    try:
        analysis = load_analysis(request.form.get("analysis_token", ""))
        state = Analyzed(analysis.message, analysis.score, analysis.analysis_id)
        message = analysis.message
    except InvalidAnalysisToken as e:
        current_app.logger.warning(f"Rejected analysis token on save: {e}")

    controller = _controller(state)
    controller.save()
    return _render(controller, message)
