"""
SCORM Routes

FLOW OVERVIEW
- /api/scorm/upload [POST]
  • Admin gate; store the ZIP under uploads/, create a placeholder course,
    extract and re-host the package, return the parsed manifest.
- /api/scorm/content [GET], /api/scorm/content/<path> [GET]
  • Serve a re-hosted package file with SCORM-friendly headers.
- /api/scorm/commit [POST]
  • Bearer gate; upsert the learner's CMI tracking row for a course.
    Completed/passed marks the learner's assignment progress 100.
- /api/scorm/validate/<course_id> [GET]
  • Admin gate; dependency check of a course's re-hosted content.
"""

from datetime import datetime
from flask import Blueprint, request, jsonify, g, current_app, Response
from werkzeug.utils import secure_filename

from ..models import db, Course, CourseAssignment, ScormTracking
from ..utils.auth_utils import token_required, admin_required
from ..utils.error_handlers import error_response
from ..utils.scorm_package import (
    ScormPackageError, process_scorm_package, validate_scorm_package, proxy_content_type_for
)
from ..utils.scorm_runtime import apply_cmi_to_tracking, is_completed_status
from ..utils.storage import LocalStorage, StorageError

scorm_bp = Blueprint('scorm', __name__)

PLACEHOLDER_TITLE = 'Processing SCORM Package...'

SCORM_CSP = '; '.join([
    "default-src 'self' * 'unsafe-inline' 'unsafe-eval' data: blob:",
    "script-src 'self' * 'unsafe-inline' 'unsafe-eval'",
    "style-src 'self' * 'unsafe-inline'",
    "img-src 'self' * data: blob:",
    "font-src 'self' * data:",
    "connect-src 'self' * data: blob:",
    "frame-src 'self' * data: blob:",
])


@scorm_bp.route('/upload', methods=['POST'])
@admin_required
def upload_package():
    """Upload and process a SCORM 1.2 ZIP package"""
    upload = request.files.get('file')
    if upload is None or not upload.filename:
        return error_response('No file provided', 400)

    original_name = secure_filename(upload.filename)
    if not original_name.lower().endswith('.zip'):
        return error_response('Please upload a ZIP file containing a SCORM package', 400)

    timestamp = datetime.utcnow().strftime('%Y-%m-%dT%H-%M-%S-%fZ')
    file_name = f"scorm-{timestamp}-{original_name}"

    try:
        LocalStorage.bucket().upload(f"uploads/{file_name}", upload.read(), upsert=False)
    except StorageError as e:
        return error_response(f"Upload failed: {str(e)}", 500)

    course = Course(
        title=PLACEHOLDER_TITLE,
        description='SCORM course being processed',
        course_type='scorm',
        is_mandatory=False,
        created_by=g.current_profile.user_id
    )
    db.session.add(course)
    db.session.commit()
    course_id = course.id

    try:
        manifest = process_scorm_package(file_name, course_id)
    except (ScormPackageError, StorageError) as e:
        current_app.logger.warning(f"SCORM package rejected: {str(e)}")
        return error_response(str(e), 400)
    except Exception as e:
        current_app.logger.error(f"SCORM processing error: {str(e)}", exc_info=True)
        return error_response(f"SCORM processing failed: {str(e)}", 500)

    return jsonify({
        'success': True,
        'courseId': course_id,
        'manifest': manifest.to_dict(),
        'message': 'SCORM package processed successfully'
    }), 201


@scorm_bp.route('/content')
def content():
    """Proxy a stored package file so SCORM content runs same-origin"""
    file_path = request.args.get('path')
    if not file_path:
        return Response('Missing path parameter', status=400)
    return serve_content(file_path)


@scorm_bp.route('/content/<path:file_path>')
def content_by_path(file_path):
    """Path-style alias so relative links inside a package resolve"""
    return serve_content(file_path)


def serve_content(file_path):
    try:
        data = LocalStorage.bucket().download(file_path)
    except StorageError as e:
        current_app.logger.info(f"SCORM content miss for {file_path}: {str(e)}")
        return Response('File not found', status=404)

    response = Response(data, status=200)
    response.headers['Content-Type'] = proxy_content_type_for(file_path)
    response.headers['Content-Security-Policy'] = SCORM_CSP
    response.headers['Access-Control-Allow-Origin'] = '*'
    response.headers['Cache-Control'] = 'no-cache, no-store, must-revalidate'
    return response


@scorm_bp.route('/commit', methods=['POST'])
@token_required
def commit():
    """Persist committed CMI data for the caller"""
    data = request.get_json(silent=True) or {}
    course_id = data.get('scormCourseId') or data.get('courseId')
    cmi_data = data.get('cmiData')
    if not course_id or not isinstance(cmi_data, dict):
        return error_response('scormCourseId and cmiData are required', 400)

    if db.session.get(Course, course_id) is None:
        return error_response('Course not found', 404)

    profile = g.current_profile
    try:
        tracking = ScormTracking.get_or_create(profile.user_id, course_id)
        apply_cmi_to_tracking(tracking, cmi_data, profile)
        tracking.last_accessed = datetime.utcnow()

        assignment = CourseAssignment.query.filter_by(
            assigned_to=profile.user_id, course_id=course_id
        ).first()
        if assignment is not None:
            assignment.last_launched_at = datetime.utcnow()
            if is_completed_status(tracking.lesson_status):
                assignment.progress_percent = 100

        db.session.commit()
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"SCORM commit error: {str(e)}", exc_info=True)
        return error_response(str(e), 500)

    return jsonify(tracking.to_dict())


@scorm_bp.route('/validate/<course_id>')
@admin_required
def validate(course_id):
    if db.session.get(Course, course_id) is None:
        return error_response('Course not found', 404)
    result = validate_scorm_package(course_id)
    return jsonify({'success': True, 'validation': result.to_dict()})
