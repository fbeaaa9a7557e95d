"""
Policy Assistant Routes

FLOW OVERVIEW
- /api/rag [POST]
  • action=sync  (admin): pull the Notion database and refresh embeddings.
  • action=query (staff): search relevant policies → answer with confidence and sources.
  • Anything else → 400 "Invalid action or missing parameters".
- /api/rag/status [GET]
  • Readiness flag, corpus/sync statistics and last sync time.
"""

from flask import Blueprint, request, jsonify, g, current_app
from ..utils.auth_utils import token_required
from ..utils.error_handlers import error_response
from ..utils.notion_extractor import sync_notion_content, get_sync_status
from ..utils.rag_service import rag_service

rag_bp = Blueprint('rag', __name__)


@rag_bp.route('', methods=['POST'])
@token_required
def rag():
    """Sync the policy corpus or answer a policy question"""
    data = request.get_json(silent=True) or {}
    action = data.get('action')

    try:
        database_id = data.get('databaseId')
        if action == 'sync' and isinstance(database_id, str) and database_id.strip():
            if not g.current_profile.is_admin():
                return error_response('Admin access required', 403)
            current_app.logger.info(f"Policy sync requested by {g.current_profile.email}")
            result = sync_notion_content(database_id.strip())
            return jsonify(result)

        query = data.get('query')
        if action == 'query' and isinstance(query, str) and query.strip():
            response = rag_service.get_response_with_context(query.strip())
            return jsonify({'success': True, 'data': response.to_dict()})

        return error_response('Invalid action or missing parameters', 400)
    except Exception as e:
        current_app.logger.error(f"RAG API error: {str(e)}", exc_info=True)
        return error_response(str(e) or 'Internal server error', 500)


@rag_bp.route('/status')
@token_required
def status():
    return jsonify({
        'success': True,
        'ready': rag_service.is_system_ready(),
        'stats': rag_service.get_system_stats(),
        'sync': get_sync_status()
    })
