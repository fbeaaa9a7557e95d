"""
Newsfeed webhook ingestion.

FLOW OVERVIEW
- build_webhook_post(payload, now)
  1) Apply system-author defaults (category, priority, author).
  2) Auto-categorize from content keywords when no category was given.
  3) Auto-prioritize from content keywords when no priority was given.
  4) A future `scheduled_for` becomes the post's created_at; invalid dates post now.
"""

import logging
from datetime import datetime, timezone

from ..models import Post, SYSTEM_AUTHOR_ID

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = 'Industry Update'
DEFAULT_PRIORITY = 'medium'
DEFAULT_AUTHOR_NAME = 'AgedCare Insights'
SYSTEM_AUTHOR_ROLE = 'Industry Research Bot'

# (keywords, category, priority override) checked in order, first match wins
CATEGORY_RULES = (
    (('regulation', 'compliance', 'acfi'), 'Regulatory Update', 'high'),
    (('best practice', 'quality', 'care standard'), 'Best Practice', None),
    (('funding', 'financial', 'budget'), 'Financial Update', 'high'),
    (('training', 'education', 'skill'), 'Training & Development', None),
)

PRIORITY_RULES = (
    (('urgent', 'immediate', 'critical'), 'high'),
    (('update', 'change', 'new'), 'medium'),
)


def categorize(content, category=None, priority=None):
    """Return (category, priority) after keyword-based defaults"""
    text = content.lower()
    resolved_category = category or DEFAULT_CATEGORY
    resolved_priority = priority or DEFAULT_PRIORITY

    if not category:
        for keywords, rule_category, rule_priority in CATEGORY_RULES:
            if any(keyword in text for keyword in keywords):
                resolved_category = rule_category
                if rule_priority:
                    resolved_priority = rule_priority
                break

    if not priority:
        for keywords, rule_priority in PRIORITY_RULES:
            if any(keyword in text for keyword in keywords):
                resolved_priority = rule_priority
                break

    return resolved_category, resolved_priority


def parse_scheduled_for(value, now):
    """Future schedule time as naive UTC, or None"""
    if not value:
        return None
    try:
        scheduled = datetime.fromisoformat(str(value).replace('Z', '+00:00'))
    except ValueError:
        logger.warning(f"Invalid scheduled_for date, posting immediately: {value}")
        return None
    if scheduled.tzinfo is not None:
        scheduled = scheduled.astimezone(timezone.utc).replace(tzinfo=None)
    return scheduled if scheduled > now else None


def build_webhook_post(payload, now=None):
    """Create an unsaved Post from a webhook payload (content already validated)"""
    now = now or datetime.utcnow()
    content = payload['content'].strip()
    category, priority = categorize(content, payload.get('category'), payload.get('priority'))

    post = Post(
        title=payload.get('title') or None,
        content=content,
        category=category,
        priority=priority,
        author_id=SYSTEM_AUTHOR_ID,
        author_name=payload.get('author_name') or DEFAULT_AUTHOR_NAME,
        author_role=SYSTEM_AUTHOR_ROLE,
        author_type='system'
    )
    scheduled = parse_scheduled_for(payload.get('scheduled_for'), now)
    if scheduled is not None:
        post.created_at = scheduled
    return post
