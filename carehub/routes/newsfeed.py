"""
Newsfeed Routes

FLOW OVERVIEW
- /api/webhooks/newsfeed [POST]
  • Shared-secret gate (X-Webhook-Secret when configured) → system post with
    keyword categorization and optional scheduling. Other methods → 405.
- /api/posts [GET, POST]
  • Bearer gate; newest-first feed / create a staff post.
- /api/posts/<id>/comments [POST]
  • Bearer gate; add a comment.
- /api/posts/<id>/like [POST]
  • Bearer gate; toggle the caller's like.
"""

import hmac
from flask import Blueprint, request, jsonify, g, current_app
from ..models import db, Post, PostComment, PostLike
from ..utils.auth_utils import token_required
from ..utils.error_handlers import error_response
from ..utils.newsfeed import build_webhook_post
from ..utils.validators import require_fields, sanitize_input

newsfeed_bp = Blueprint('newsfeed', __name__)


@newsfeed_bp.route('/webhooks/newsfeed', methods=['GET', 'PUT', 'PATCH', 'DELETE', 'POST'])
def newsfeed_webhook():
    """Ingest an industry update from an external automation"""
    if request.method != 'POST':
        return error_response('Method not allowed', 405)

    secret = current_app.config.get('NEWSFEED_WEBHOOK_SECRET')
    if secret:
        provided = request.headers.get('X-Webhook-Secret') or ''
        if not hmac.compare_digest(provided, secret):
            current_app.logger.warning('Newsfeed webhook rejected: bad secret')
            return error_response('Unauthorized', 401)

    payload = request.get_json(silent=True) or {}
    if not isinstance(payload.get('content'), str) or not payload['content'].strip():
        return error_response('Content is required', 400)

    try:
        post = build_webhook_post(payload)
        db.session.add(post)
        db.session.commit()
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Newsfeed webhook error: {str(e)}", exc_info=True)
        return error_response('Internal server error', 500)

    current_app.logger.info(f"Newsfeed post created: {post.id} ({post.category}/{post.priority})")
    return jsonify({
        'success': True,
        'message': 'Post created successfully',
        'post': post.to_dict()
    }), 201


@newsfeed_bp.route('/posts')
@token_required
def list_posts():
    posts = Post.query.order_by(Post.created_at.desc()).all()
    return jsonify({'success': True, 'posts': [post.to_dict(include_comments=True) for post in posts]})


@newsfeed_bp.route('/posts', methods=['POST'])
@token_required
def create_post():
    data = request.get_json(silent=True) or {}
    check = require_fields(data, ('content',), 'Content is required')
    if not check.is_valid:
        return error_response(check.error_message, 400)

    profile = g.current_profile
    post = Post(
        title=sanitize_input(data.get('title'), 255) or None,
        content=sanitize_input(data['content'], 10000),
        category=data.get('category'),
        priority=data.get('priority'),
        author_id=profile.user_id,
        author_name=profile.full_name or profile.email,
        author_role=profile.role,
        author_type='user'
    )
    db.session.add(post)
    db.session.commit()
    return jsonify({'success': True, 'post': post.to_dict()}), 201


@newsfeed_bp.route('/posts/<post_id>/comments', methods=['POST'])
@token_required
def add_comment(post_id):
    post = db.session.get(Post, post_id)
    if post is None:
        return error_response('Post not found', 404)

    data = request.get_json(silent=True) or {}
    check = require_fields(data, ('content',), 'Comment cannot be empty')
    if not check.is_valid:
        return error_response(check.error_message, 400)

    profile = g.current_profile
    comment = PostComment(
        post_id=post.id,
        author_id=profile.user_id,
        author_name=profile.full_name or profile.email,
        author_role=profile.role,
        content=sanitize_input(data['content'], 5000)
    )
    db.session.add(comment)
    db.session.commit()
    return jsonify({'success': True, 'comment': comment.to_dict()}), 201


@newsfeed_bp.route('/posts/<post_id>/like', methods=['POST'])
@token_required
def toggle_like(post_id):
    """Like the post, or remove the caller's existing like"""
    post = db.session.get(Post, post_id)
    if post is None:
        return error_response('Post not found', 404)

    user_id = g.current_profile.user_id
    existing = PostLike.query.filter_by(post_id=post.id, user_id=user_id).first()
    if existing:
        db.session.delete(existing)
        liked = False
    else:
        db.session.add(PostLike(post_id=post.id, user_id=user_id))
        liked = True
    db.session.commit()

    like_count = PostLike.query.filter_by(post_id=post.id).count()
    return jsonify({'success': True, 'liked': liked, 'like_count': like_count})
