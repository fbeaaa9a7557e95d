"""
API Routes

FLOW OVERVIEW
- /api/metrics [GET]
  • Prometheus text exposition.
"""

from flask import Blueprint, Response
from ..utils.prom_metrics import metrics_latest, CONTENT_TYPE_LATEST

api_bp = Blueprint('api', __name__)


@api_bp.route('/metrics')
def metrics():
    """Expose Prometheus metrics"""
    return Response(metrics_latest(), mimetype=CONTENT_TYPE_LATEST)
