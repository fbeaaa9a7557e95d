"""
Tests for SCORM package ingestion, validation and the content proxy.
"""

import io
import zipfile
from unittest.mock import patch

import pytest

from carehub.models import Course
from carehub.utils.scorm_package import (
    parse_scorm_manifest, content_type_for, proxy_content_type_for,
    process_scorm_package, validate_scorm_package, ScormPackageError
)
from carehub.utils.storage import LocalStorage, StorageError

MANIFEST = """<?xml version="1.0"?>
<manifest identifier="falls-course"><metadata><schema>ADL SCORM</schema></metadata>
  <organizations default="org1">
    <organization identifier="org1"><title>Falls   Prevention &amp; Response</title>
      <item identifier="i1"><title>Module 1</title></item>
    </organization>
  </organizations>
  <description>Preventing falls in residential care</description>
  <resources>
    <resource identifier="r1" type="webcontent" adlcp:scormtype="sco" href="shared/launch.html">
      <adlcp:maxtimeallowed>00:30:00</adlcp:maxtimeallowed>
    </resource>
  </resources>
</manifest>"""


def build_zip(files):
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, 'w') as archive:
        for name, data in files.items():
            archive.writestr(name, data)
    return buffer.getvalue()


class TestManifestParsing:

    def test_full_manifest(self):
        manifest = parse_scorm_manifest(MANIFEST)
        assert manifest.title == 'Falls Prevention & Response'
        assert manifest.description == 'Preventing falls in residential care'
        assert manifest.entry_point == 'shared/launch.html'
        assert manifest.duration == '00:30:00'
        assert manifest.version == '1.2'

    def test_metadata_title_when_no_organization_title(self):
        xml = '<manifest id="m"><metadata><lom><title>Infection &lt;Control&gt;</title></lom></metadata></manifest>'
        assert parse_scorm_manifest(xml).title == 'Infection <Control>'

    def test_first_title_fallback(self):
        xml = '<manifest>\n<item><title>Dignity &quot;First&quot;</title></item></manifest>'
        assert parse_scorm_manifest(xml).title == 'Dignity "First"'

    def test_defaults_without_title_or_resource(self):
        manifest = parse_scorm_manifest('<manifest><resources/></manifest>')
        assert manifest.title == 'SCORM Course'
        assert manifest.entry_point == 'index.html'
        assert manifest.description is None
        assert manifest.duration is None

    def test_to_dict(self):
        data = parse_scorm_manifest(MANIFEST).to_dict()
        assert data['entryPoint'] == 'shared/launch.html'
        assert data['version'] == '1.2'


class TestContentTypes:

    @pytest.mark.parametrize('path, expected', [
        ('index.html', 'text/html'),
        ('a/b/style.CSS', 'text/css'),
        ('script.js', 'application/javascript'),
        ('movie.mp4', 'video/mp4'),
        ('font.woff2', 'application/octet-stream'),
        ('README', 'application/octet-stream'),
    ])
    def test_package_table(self, path, expected):
        assert content_type_for(path) == expected

    @pytest.mark.parametrize('path, expected', [
        ('index.html', 'text/html; charset=utf-8'),
        ('script.js', 'text/javascript'),
        ('font.woff2', 'font/woff2'),
        ('font.eot', 'application/vnd.ms-fontobject'),
    ])
    def test_proxy_table(self, path, expected):
        assert proxy_content_type_for(path) == expected


class TestStorage:

    def test_round_trip_and_list(self, app_context):
        storage = LocalStorage.bucket()
        storage.upload('content/c1/index.html', b'<html></html>')
        storage.upload('content/c1/js/app.js', b'1')
        assert storage.download('content/c1/index.html') == b'<html></html>'
        assert storage.list('content/c1') == ['content/c1/index.html', 'content/c1/js/app.js']

    def test_no_overwrite_without_upsert(self, app_context):
        storage = LocalStorage.bucket()
        storage.upload('uploads/a.zip', b'1')
        with pytest.raises(StorageError):
            storage.upload('uploads/a.zip', b'2', upsert=False)

    def test_traversal_rejected(self, app_context):
        storage = LocalStorage.bucket()
        with pytest.raises(StorageError):
            storage.download('../../etc/passwd')
        assert storage.exists('../outside.txt') is False


class TestProcessPackage:

    def _course(self, db_session, admin_profile):
        course = Course(title='Processing SCORM Package...', course_type='scorm',
                        created_by=admin_profile.user_id)
        db_session.add(course)
        db_session.commit()
        return course

    def test_extracts_and_updates_course(self, db_session, admin_profile):
        course = self._course(db_session, admin_profile)
        LocalStorage.bucket().upload('uploads/falls.zip', build_zip({
            'imsmanifest.xml': MANIFEST,
            'shared/launch.html': '<html>launch</html>',
            'shared/images/logo.png': b'\x89PNG',
        }))

        manifest = process_scorm_package('falls.zip', course.id)

        assert manifest.title == 'Falls Prevention & Response'
        storage = LocalStorage.bucket()
        assert storage.list(f'content/{course.id}') == [
            f'content/{course.id}/imsmanifest.xml',
            f'content/{course.id}/shared/images/logo.png',
            f'content/{course.id}/shared/launch.html',
        ]
        course = db_session.get(Course, course.id)
        assert course.course_type == 'scorm'
        assert course.title == 'Falls Prevention & Response'
        assert course.scorm_entry_point == 'shared/launch.html'
        assert course.scorm_package_path == f'content/{course.id}/'
        assert course.scorm_manifest_data['duration'] == '00:30:00'

    def test_missing_manifest(self, db_session, admin_profile):
        course = self._course(db_session, admin_profile)
        LocalStorage.bucket().upload('uploads/bad.zip', build_zip({'index.html': '<html></html>'}))
        with pytest.raises(ScormPackageError, match='imsmanifest.xml not found in SCORM package'):
            process_scorm_package('bad.zip', course.id)

    def test_failed_upload_fails_batch(self, db_session, admin_profile):
        course = self._course(db_session, admin_profile)
        LocalStorage.bucket().upload('uploads/falls.zip', build_zip({
            'imsmanifest.xml': MANIFEST,
            'index.html': '<html></html>',
        }))
        with patch.object(LocalStorage, 'upload', side_effect=StorageError('disk full')):
            with pytest.raises(StorageError):
                process_scorm_package('falls.zip', course.id)
        assert db_session.get(Course, course.id).title == 'Processing SCORM Package...'


class TestValidatePackage:

    def test_standard_package_missing_required(self, app_context):
        storage = LocalStorage.bucket()
        storage.upload('content/c1/configuration.js', b'var config = {};')
        result = validate_scorm_package('c1')
        assert result.is_valid is False
        assert result.can_proceed is False
        assert result.missing_dependencies == ['utils.js', 'scormdriver.js', 'dispatch.client.loader.js']
        assert len(result.warnings) == 2

    def test_standard_package_complete(self, app_context):
        storage = LocalStorage.bucket()
        for name in ('configuration.js', 'utils.js', 'scormdriver.js', 'dispatch.client.loader.js'):
            storage.upload(f'content/c2/{name}', b'//')
        result = validate_scorm_package('c2')
        assert result.is_valid is True
        assert result.can_proceed is True
        assert result.missing_dependencies == []

    def test_dispatch_package_always_proceeds(self, app_context):
        LocalStorage.bucket().upload('content/c3/configuration.js', b'var DispatchRoot = "x";')
        result = validate_scorm_package('c3')
        assert result.is_dispatch is True
        assert result.can_proceed is True
        assert result.missing_dependencies == ['utils.js']
        assert 'utils.js' in result.warnings[0]


class TestScormRoutes:

    def test_upload_requires_admin(self, client, staff_headers):
        response = client.post('/api/scorm/upload', headers=staff_headers, data={
            'file': (io.BytesIO(b'zip'), 'course.zip')
        }, content_type='multipart/form-data')
        assert response.status_code == 403

    def test_upload_rejects_non_zip(self, client, admin_headers):
        response = client.post('/api/scorm/upload', headers=admin_headers, data={
            'file': (io.BytesIO(b'text'), 'notes.txt')
        }, content_type='multipart/form-data')
        assert response.status_code == 400

    def test_upload_processes_package(self, client, admin_headers, db_session):
        archive = build_zip({'imsmanifest.xml': MANIFEST, 'shared/launch.html': '<html></html>'})
        response = client.post('/api/scorm/upload', headers=admin_headers, data={
            'file': (io.BytesIO(archive), 'falls course.zip')
        }, content_type='multipart/form-data')

        assert response.status_code == 201
        data = response.get_json()
        assert data['manifest']['title'] == 'Falls Prevention & Response'
        uploads = LocalStorage.bucket().list('uploads')
        assert len(uploads) == 1
        assert uploads[0].startswith('uploads/scorm-')
        assert uploads[0].endswith('-falls_course.zip')
        assert db_session.get(Course, data['courseId']).course_type == 'scorm'

    def test_upload_without_manifest_keeps_placeholder(self, client, admin_headers, db_session):
        archive = build_zip({'index.html': '<html></html>'})
        response = client.post('/api/scorm/upload', headers=admin_headers, data={
            'file': (io.BytesIO(archive), 'broken.zip')
        }, content_type='multipart/form-data')
        assert response.status_code == 400
        assert response.get_json()['error'] == 'imsmanifest.xml not found in SCORM package'
        assert Course.query.one().title == 'Processing SCORM Package...'

    def test_content_missing_path(self, client, app_context):
        response = client.get('/api/scorm/content')
        assert response.status_code == 400
        assert response.get_data(as_text=True) == 'Missing path parameter'

    def test_content_not_found(self, client, app_context):
        response = client.get('/api/scorm/content?path=content/none/index.html')
        assert response.status_code == 404
        assert response.get_data(as_text=True) == 'File not found'

    def test_content_traversal_is_not_found(self, client, app_context):
        response = client.get('/api/scorm/content?path=../../secret.txt')
        assert response.status_code == 404

    def test_content_served_with_scorm_headers(self, client, app_context):
        LocalStorage.bucket().upload('content/c1/index.html', b'<html>hi</html>')
        response = client.get('/api/scorm/content?path=content/c1/index.html')
        assert response.status_code == 200
        assert response.headers['Content-Type'] == 'text/html; charset=utf-8'
        assert response.headers['Access-Control-Allow-Origin'] == '*'
        assert response.headers['Cache-Control'] == 'no-cache, no-store, must-revalidate'
        assert "'unsafe-eval'" in response.headers['Content-Security-Policy']
        assert response.data == b'<html>hi</html>'

    def test_path_style_content(self, client, app_context):
        LocalStorage.bucket().upload('content/c1/js/app.js', b'console.log(1)')
        response = client.get('/api/scorm/content/content/c1/js/app.js')
        assert response.status_code == 200
        assert response.headers['Content-Type'] == 'text/javascript'

    def test_validate_endpoint(self, client, admin_headers, admin_profile, db_session):
        course = Course(title='Falls', course_type='scorm', created_by=admin_profile.user_id)
        db_session.add(course)
        db_session.commit()
        response = client.get(f'/api/scorm/validate/{course.id}', headers=admin_headers)
        assert response.status_code == 200
        assert response.get_json()['validation']['canProceed'] is False
