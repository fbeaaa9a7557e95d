"""
Main Routes

FLOW OVERVIEW
- /health [GET]
  • JSON health check.
- /scorm/player/<course_id> [GET]
  • HTML page hosting a SCORM course in an iframe with a SCORM 1.2 `window.API`.
"""

from datetime import datetime
from flask import Blueprint, jsonify, render_template
from ..models import db, Course
from ..utils.error_handlers import error_response
from ..utils.scorm_runtime import DEFAULT_CMI, SCORE_PATTERN

main_bp = Blueprint('main', __name__)


@main_bp.route('/health')
def health():
    """Health check endpoint"""
    return jsonify({'status': 'healthy', 'timestamp': datetime.utcnow().isoformat()})


@main_bp.route('/scorm/player/<course_id>')
def scorm_player(course_id):
    """SCORM player; the embedded API authenticates commits with the stored bearer token"""
    course = db.session.get(Course, course_id)
    if course is None or course.course_type != 'scorm' or not course.scorm_package_path:
        return error_response('SCORM course not found', 404)

    launch_path = course.scorm_package_path + (course.scorm_entry_point or 'index.html')
    return render_template(
        'scorm/player.html',
        course=course,
        launch_path=launch_path,
        default_cmi=DEFAULT_CMI,
        score_pattern=SCORE_PATTERN.pattern
    )
