"""
Tests for health, metrics, error envelopes and CLI commands.
"""

from carehub.models import db


def test_health(client):
    response = client.get('/health')
    assert response.status_code == 200
    assert response.get_json()['status'] == 'healthy'


def test_metrics_exposition(client):
    client.get('/health')
    response = client.get('/api/metrics')
    assert response.status_code == 200
    assert response.mimetype == 'text/plain'
    body = response.get_data(as_text=True)
    assert 'carehub_http_requests_total' in body
    assert 'carehub_http_request_latency_seconds' in body


def test_unknown_route_is_json(client):
    response = client.get('/api/does-not-exist')
    assert response.status_code == 404
    assert response.get_json() == {'success': False, 'error': 'Not found'}


def test_wrong_method_is_json(client):
    response = client.get('/auth/login')
    assert response.status_code == 405
    assert response.get_json()['error'] == 'Method not allowed'


def test_init_db_command(app):
    result = app.test_cli_runner().invoke(args=['init-db'])
    assert result.exit_code == 0
    assert 'Database tables created' in result.output
    with app.app_context():
        assert 'profiles' in db.inspect(db.engine).get_table_names()
