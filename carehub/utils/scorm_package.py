"""
SCORM package ingestion.

FLOW OVERVIEW
- parse_scorm_manifest(xml)
  • Regex extraction of title, description, entry point and duration from imsmanifest.xml.
- process_scorm_package(file_name, course_id)
  1) Download uploads/<file_name> from the scorm-packages bucket and open the ZIP.
  2) Require imsmanifest.xml and parse it.
  3) Upload every file to content/<course_id>/<path> in a thread pool and wait for all;
     the first failed upload fails the package.
  4) Turn the course into a SCORM course with the manifest's title and entry point.
- validate_scorm_package(course_id)
  • Check the re-hosted content for the script dependencies SCORM drivers expect.
"""

import io
import logging
import re
import zipfile
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from flask import current_app

from ..models import db, Course
from .prom_metrics import observe_scorm_package
from .storage import LocalStorage

logger = logging.getLogger(__name__)

DEFAULT_TITLE = 'SCORM Course'
DEFAULT_ENTRY_POINT = 'index.html'
SCORM_VERSION = '1.2'
MANIFEST_NAME = 'imsmanifest.xml'

CONTENT_TYPES = {
    'html': 'text/html',
    'htm': 'text/html',
    'css': 'text/css',
    'js': 'application/javascript',
    'json': 'application/json',
    'xml': 'application/xml',
    'png': 'image/png',
    'jpg': 'image/jpeg',
    'jpeg': 'image/jpeg',
    'gif': 'image/gif',
    'svg': 'image/svg+xml',
    'mp4': 'video/mp4',
    'mp3': 'audio/mpeg',
    'pdf': 'application/pdf',
}

# The content proxy serves fonts too and labels scripts text/javascript
PROXY_CONTENT_TYPES = dict(CONTENT_TYPES, **{
    'js': 'text/javascript',
    'woff': 'font/woff',
    'woff2': 'font/woff2',
    'ttf': 'font/ttf',
    'eot': 'application/vnd.ms-fontobject',
})

ORGANIZATION_TITLE_RE = re.compile(r'<organization[^>]*><title[^>]*>([^<]+)</title>', re.IGNORECASE)
METADATA_TITLE_RE = re.compile(r'<manifest[^>]*><metadata[^>]*>.*?<title[^>]*>([^<]+)</title>',
                               re.IGNORECASE | re.DOTALL)
ANY_TITLE_RE = re.compile(r'<title[^>]*>([^<]+)</title>', re.IGNORECASE)
DESCRIPTION_RE = re.compile(r'<description[^>]*>([^<]+)</description>', re.IGNORECASE)
RESOURCE_HREF_RE = re.compile(r'<resource[^>]*href="([^"]+)"', re.IGNORECASE)
DURATION_RE = re.compile(r'<adlcp:maxtimeallowed>([^<]+)</adlcp:maxtimeallowed>', re.IGNORECASE)

ENTITIES = (('&amp;', '&'), ('&lt;', '<'), ('&gt;', '>'), ('&quot;', '"'))

SCORM_DEPENDENCIES = (
    ('configuration.js', True),
    ('utils.js', True),
    ('scormdriver.js', False),
    ('dispatch.client.loader.js', False),
)
DISPATCH_MARKERS = ('DispatchRoot', 'dispatch.acornplms.com')


class ScormPackageError(Exception):
    """The uploaded package cannot be processed"""


@dataclass
class ScormManifest:
    title: str
    entry_point: str
    version: str = SCORM_VERSION
    description: Optional[str] = None
    duration: Optional[str] = None

    def to_dict(self):
        return {
            'title': self.title,
            'description': self.description,
            'duration': self.duration,
            'entryPoint': self.entry_point,
            'version': self.version,
        }


@dataclass
class ScormValidationResult:
    is_valid: bool = True
    can_proceed: bool = False
    missing_dependencies: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    is_dispatch: bool = False

    def to_dict(self):
        return {
            'isValid': self.is_valid,
            'canProceed': self.can_proceed,
            'missingDependencies': self.missing_dependencies,
            'warnings': self.warnings,
            'isDispatch': self.is_dispatch,
        }


def _clean_title(raw_title: str) -> str:
    title = re.sub(r'\s+', ' ', raw_title).strip()
    for entity, char in ENTITIES:
        title = title.replace(entity, char)
    return title


def parse_scorm_manifest(manifest_xml: str) -> ScormManifest:
    """Pull course metadata out of imsmanifest.xml"""
    title_match = (ORGANIZATION_TITLE_RE.search(manifest_xml)
                   or METADATA_TITLE_RE.search(manifest_xml)
                   or ANY_TITLE_RE.search(manifest_xml))
    description_match = DESCRIPTION_RE.search(manifest_xml)
    href_match = RESOURCE_HREF_RE.search(manifest_xml)
    duration_match = DURATION_RE.search(manifest_xml)

    return ScormManifest(
        title=_clean_title(title_match.group(1) if title_match else DEFAULT_TITLE),
        description=description_match.group(1).strip() if description_match else None,
        duration=duration_match.group(1).strip() if duration_match else None,
        entry_point=href_match.group(1) if href_match else DEFAULT_ENTRY_POINT,
    )


def _extension(file_path: str) -> str:
    return file_path.rsplit('.', 1)[-1].lower() if '.' in file_path else ''


def content_type_for(file_path: str, table: Dict[str, str] = None) -> str:
    return (table or CONTENT_TYPES).get(_extension(file_path), 'application/octet-stream')


def proxy_content_type_for(file_path: str) -> str:
    content_type = content_type_for(file_path, PROXY_CONTENT_TYPES)
    if content_type == 'text/html':
        return 'text/html; charset=utf-8'
    return content_type


def content_prefix(course_id: str) -> str:
    return f"content/{course_id}/"


def process_scorm_package(file_name: str, course_id: str) -> ScormManifest:
    """Extract an uploaded package into storage and update its course"""
    logger.info(f"Processing SCORM package: {file_name} for course: {course_id}")
    try:
        storage = LocalStorage.bucket()
        archive_bytes = storage.download(f"uploads/{file_name}")

        with zipfile.ZipFile(io.BytesIO(archive_bytes)) as archive:
            entries = [info for info in archive.infolist() if not info.is_dir()]
            logger.info(f"Extracted {len(entries)} files from ZIP")

            names = {info.filename for info in entries}
            if MANIFEST_NAME not in names:
                raise ScormPackageError('imsmanifest.xml not found in SCORM package')

            manifest_xml = archive.read(MANIFEST_NAME).decode('utf-8', errors='replace')
            manifest = parse_scorm_manifest(manifest_xml)
            logger.info(f"Parsed manifest: {manifest.to_dict()}")

            files = [(info.filename, archive.read(info)) for info in entries]

        prefix = content_prefix(course_id)
        workers = current_app.config.get('SCORM_UPLOAD_WORKERS', 8)
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [
                executor.submit(storage.upload, prefix + path, data, True)
                for path, data in files
            ]
            # result() re-raises the first upload failure
            for future in futures:
                future.result()
        logger.info('All files uploaded successfully')

        course = db.session.get(Course, course_id)
        if course is None:
            raise ScormPackageError(f"Course not found: {course_id}")
        course.course_type = 'scorm'
        course.scorm_package_path = prefix
        course.scorm_manifest_data = {
            'title': manifest.title,
            'description': manifest.description,
            'duration': manifest.duration,
            'version': manifest.version,
        }
        course.scorm_entry_point = manifest.entry_point
        course.title = manifest.title
        course.description = manifest.description or ''
        db.session.commit()
    except Exception:
        db.session.rollback()
        observe_scorm_package(False)
        raise

    observe_scorm_package(True)
    return manifest


def validate_scorm_package(course_id: str) -> ScormValidationResult:
    """Dependency check of a course's re-hosted content"""
    storage = LocalStorage.bucket()
    prefix = content_prefix(course_id)
    result = ScormValidationResult()

    configuration = None
    if storage.exists(prefix + 'configuration.js'):
        configuration = storage.download(prefix + 'configuration.js').decode('utf-8', errors='replace')

    if configuration and any(marker in configuration for marker in DISPATCH_MARKERS):
        # Dispatch packages load their drivers remotely
        result.is_dispatch = True
        result.missing_dependencies = [
            name for name in ('configuration.js', 'utils.js') if not storage.exists(prefix + name)
        ]
        if result.missing_dependencies:
            result.warnings.append(
                f"Local dependencies missing but fallbacks available: {', '.join(result.missing_dependencies)}"
            )
        result.can_proceed = True
        return result

    for name, required in SCORM_DEPENDENCIES:
        if storage.exists(prefix + name):
            continue
        result.missing_dependencies.append(name)
        if required:
            result.is_valid = False
        else:
            result.warnings.append(f"Optional dependency {name} is missing but can be handled with fallback")

    result.can_proceed = all(
        name not in result.missing_dependencies for name, required in SCORM_DEPENDENCIES if required
    )
    return result
