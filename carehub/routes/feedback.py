"""
Policy Feedback Routes

FLOW OVERVIEW
- /api/feedback [POST]
  • Bearer gate; policy name and feedback required, attributed to the caller's full name.
- /api/feedback [GET]
  • Admin gate; newest-first feedback for review.
"""

from flask import Blueprint, request, jsonify, g, current_app
from ..models import db, PolicyFeedback
from ..utils.auth_utils import token_required, admin_required
from ..utils.error_handlers import error_response
from ..utils.validators import require_fields, sanitize_input

feedback_bp = Blueprint('feedback', __name__)


@feedback_bp.route('', methods=['POST'])
@token_required
def submit_feedback():
    data = request.get_json(silent=True) or {}
    check = require_fields(data, ('policy_name', 'feedback'), 'Please fill out all fields.')
    if not check.is_valid:
        return error_response(check.error_message, 400)

    profile = g.current_profile
    try:
        feedback = PolicyFeedback(
            policy_name=sanitize_input(data['policy_name'], 255),
            feedback=sanitize_input(data['feedback'], 5000),
            submitted_by=profile.full_name or profile.email
        )
        db.session.add(feedback)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error submitting feedback: {str(e)}")
        return error_response('Failed to submit feedback. Please try again.', 500)

    return jsonify({
        'success': True,
        'message': 'Thank you for your feedback! It has been submitted for review.',
        'feedback': feedback.to_dict()
    }), 201


@feedback_bp.route('')
@admin_required
def list_feedback():
    rows = PolicyFeedback.query.order_by(PolicyFeedback.created_at.desc()).all()
    return jsonify({'success': True, 'feedback': [row.to_dict() for row in rows]})
