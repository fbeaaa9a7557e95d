"""
Tests for newsfeed webhook ingestion and staff posts.
"""

from datetime import datetime, timedelta

import pytest

from carehub.models import Post, PostLike, SYSTEM_AUTHOR_ID
from carehub.utils.newsfeed import categorize, parse_scheduled_for, build_webhook_post

NOW = datetime(2024, 6, 1, 12, 0, 0)


class TestCategorize:

    @pytest.mark.parametrize('content, expected', [
        ('Compliance obligations announced', ('Regulatory Update', 'high')),
        ('Quality indicators report released', ('Best Practice', 'medium')),
        ('Government funding boost for providers', ('Financial Update', 'high')),
        ('Training resources for dementia care', ('Training & Development', 'medium')),
        ('Sector wrap for the week', ('Industry Update', 'medium')),
        ('Critical shortage of nurses', ('Industry Update', 'high')),
        ('Quality framework update', ('Best Practice', 'medium')),
        ('Urgent quality alert', ('Best Practice', 'high')),
    ])
    def test_keyword_rules(self, content, expected):
        assert categorize(content) == expected

    def test_priority_keywords_override_category_priority(self):
        assert categorize('Regulation change for home care') == ('Regulatory Update', 'medium')

    def test_explicit_values_win(self):
        assert categorize('Urgent compliance news', category='Events', priority='low') == ('Events', 'low')

    def test_explicit_category_still_prioritized(self):
        assert categorize('Urgent notice', category='Events') == ('Events', 'high')


class TestScheduling:

    def test_future_date(self):
        assert parse_scheduled_for('2024-06-02T09:30:00', NOW) == datetime(2024, 6, 2, 9, 30)

    def test_timezone_normalized_to_utc(self):
        assert parse_scheduled_for('2024-06-02T10:00:00+10:00', NOW) == datetime(2024, 6, 2, 0, 0)
        assert parse_scheduled_for('2024-06-02T00:00:00Z', NOW) == datetime(2024, 6, 2, 0, 0)

    def test_past_and_invalid_dates_ignored(self):
        assert parse_scheduled_for('2024-05-01T00:00:00', NOW) is None
        assert parse_scheduled_for('tomorrow', NOW) is None
        assert parse_scheduled_for(None, NOW) is None

    def test_build_webhook_post(self):
        post = build_webhook_post({
            'content': '  Funding round opens  ',
            'title': 'Funding',
            'scheduled_for': '2024-06-03T00:00:00'
        }, now=NOW)
        assert post.content == 'Funding round opens'
        assert post.category == 'Financial Update'
        assert post.author_id == SYSTEM_AUTHOR_ID
        assert post.author_name == 'AgedCare Insights'
        assert post.author_role == 'Industry Research Bot'
        assert post.author_type == 'system'
        assert post.created_at == datetime(2024, 6, 3)


class TestWebhook:

    def test_other_methods_rejected(self, client, db_session):
        for method in ('get', 'put', 'patch', 'delete'):
            response = getattr(client, method)('/api/webhooks/newsfeed')
            assert response.status_code == 405
            assert response.get_json()['error'] == 'Method not allowed'

    def test_content_required(self, client, db_session):
        response = client.post('/api/webhooks/newsfeed', json={'content': '   '})
        assert response.status_code == 400
        assert response.get_json()['error'] == 'Content is required'

    def test_creates_system_post(self, client, db_session):
        response = client.post('/api/webhooks/newsfeed', json={
            'content': 'Critical update to the Aged Care Act compliance rules',
            'author_name': 'Sector Watch'
        })
        assert response.status_code == 201
        data = response.get_json()
        assert data['message'] == 'Post created successfully'
        assert data['post']['category'] == 'Regulatory Update'
        assert data['post']['priority'] == 'high'
        assert data['post']['author_name'] == 'Sector Watch'
        assert Post.query.count() == 1

    def test_secret_checked_when_configured(self, app, client, db_session):
        app.config['NEWSFEED_WEBHOOK_SECRET'] = 'hook-secret'
        denied = client.post('/api/webhooks/newsfeed', json={'content': 'News'},
                             headers={'X-Webhook-Secret': 'wrong'})
        assert denied.status_code == 401
        allowed = client.post('/api/webhooks/newsfeed', json={'content': 'News'},
                              headers={'X-Webhook-Secret': 'hook-secret'})
        assert allowed.status_code == 201


class TestPosts:

    def test_feed_is_newest_first(self, client, db_session, staff_headers):
        db_session.add_all([
            Post(content='Older', author_id='a', author_name='A', author_role='staff',
                 created_at=datetime.utcnow() - timedelta(days=1)),
            Post(content='Newer', author_id='a', author_name='A', author_role='staff',
                 created_at=datetime.utcnow()),
        ])
        db_session.commit()
        posts = client.get('/api/posts', headers=staff_headers).get_json()['posts']
        assert [p['content'] for p in posts] == ['Newer', 'Older']
        assert posts[0]['comments'] == []

    def test_create_post_uses_caller(self, client, staff_headers):
        response = client.post('/api/posts', headers=staff_headers, json={'content': 'Morning tea at 10'})
        assert response.status_code == 201
        post = response.get_json()['post']
        assert post['author_name'] == 'Casey Carer'
        assert post['author_type'] == 'user'

    def test_create_post_requires_content(self, client, staff_headers):
        assert client.post('/api/posts', headers=staff_headers, json={}).status_code == 400

    def test_comment_and_like(self, client, staff_headers):
        post_id = client.post('/api/posts', headers=staff_headers,
                              json={'content': 'Welcome'}).get_json()['post']['id']

        comment = client.post(f'/api/posts/{post_id}/comments', headers=staff_headers,
                              json={'content': 'Thanks!'})
        assert comment.status_code == 201
        assert client.post(f'/api/posts/{post_id}/comments', headers=staff_headers,
                           json={'content': ''}).status_code == 400

        liked = client.post(f'/api/posts/{post_id}/like', headers=staff_headers).get_json()
        assert liked['liked'] is True
        assert liked['like_count'] == 1
        unliked = client.post(f'/api/posts/{post_id}/like', headers=staff_headers).get_json()
        assert unliked['liked'] is False
        assert PostLike.query.count() == 0

        posts = client.get('/api/posts', headers=staff_headers).get_json()['posts']
        assert posts[0]['comment_count'] == 1

    def test_unknown_post(self, client, staff_headers):
        assert client.post('/api/posts/missing/like', headers=staff_headers).status_code == 404
