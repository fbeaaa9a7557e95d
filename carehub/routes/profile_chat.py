"""
Profile Chat Routes

FLOW OVERVIEW
- /api/profile-chat/starter [GET]
  • Random conversation starter.
- /api/profile-chat/message [POST]
  • Assistant reply to the conversation so far.
- /api/profile-chat/summary [GET, POST]
  • Caller's stored work profile / summarize the conversation and merge it into
    the stored profile once it is long enough.
"""

from flask import Blueprint, request, jsonify, g
from ..models import db, EmployeeProfile
from ..utils.auth_utils import token_required
from ..utils.error_handlers import error_response
from ..utils.profile_chat import profile_chat, DISABLED_SUMMARY, EMPTY_SUMMARY, FAILED_SUMMARY

profile_chat_bp = Blueprint('profile_chat', __name__)


def _messages(data):
    messages = data.get('messages')
    if not isinstance(messages, list) or not messages:
        return None
    cleaned = []
    for message in messages:
        if not isinstance(message, dict) or message.get('role') not in ('system', 'user', 'assistant'):
            return None
        cleaned.append({'role': message['role'], 'content': str(message.get('content') or '')})
    return cleaned


@profile_chat_bp.route('/starter')
@token_required
def starter():
    return jsonify({'success': True, 'message': profile_chat.random_starter()})


@profile_chat_bp.route('/message', methods=['POST'])
@token_required
def message():
    messages = _messages(request.get_json(silent=True) or {})
    if messages is None:
        return error_response('messages must be a non-empty list of chat messages', 400)
    return jsonify({'success': True, 'reply': profile_chat.chat_response(messages)})


@profile_chat_bp.route('/summary')
@token_required
def get_summary():
    record = EmployeeProfile.query.filter_by(user_id=g.current_profile.user_id).first()
    return jsonify({'success': True, 'profile': record.to_dict() if record else None})


@profile_chat_bp.route('/summary', methods=['POST'])
@token_required
def summarize():
    """Summarize the conversation into the caller's work profile"""
    messages = _messages(request.get_json(silent=True) or {})
    if messages is None:
        return error_response('messages must be a non-empty list of chat messages', 400)
    if not profile_chat.should_summarize(messages):
        return error_response('Conversation is too short to summarize', 400)

    record = EmployeeProfile.query.filter_by(user_id=g.current_profile.user_id).first()
    summary = profile_chat.summarize_conversation(messages, record.summary if record else None)
    if summary in (DISABLED_SUMMARY, EMPTY_SUMMARY, FAILED_SUMMARY):
        return error_response(summary, 503)

    if record is None:
        record = EmployeeProfile(user_id=g.current_profile.user_id)
        db.session.add(record)
    record.summary = summary
    db.session.commit()
    return jsonify({'success': True, 'profile': record.to_dict()})
