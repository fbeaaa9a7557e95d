"""
SCORM 1.2 Runtime

FLOW OVERVIEW
- ScormAPI: the LMS-side API object content calls through window.API.
  • LMSInitialize / LMSFinish open and close the session.
  • LMSGetValue / LMSSetValue read and write cmi.* elements with the 1.2 access rules.
  • LMSCommit hands a copy of the CMI data to the commit callback.
  • Every call returns a string; failures are reported through LMSGetLastError.
- find_api(window): parent-frame (then opener) search for an `API` attribute.
- apply_cmi_to_tracking(tracking, cmi_data, profile): persist committed CMI data.
"""

import logging
import re
from typing import Any, Callable, Dict, Optional

logger = logging.getLogger(__name__)

NO_ERROR = '0'
GENERAL_EXCEPTION = '101'
INVALID_ARGUMENT = '201'
NOT_INITIALIZED = '301'
NOT_IMPLEMENTED = '401'
READ_ONLY = '403'
WRITE_ONLY = '404'
INCORRECT_DATA_TYPE = '405'

ERROR_STRINGS = {
    NO_ERROR: 'No error',
    GENERAL_EXCEPTION: 'General exception',
    INVALID_ARGUMENT: 'Invalid argument error',
    NOT_INITIALIZED: 'Not initialized',
    NOT_IMPLEMENTED: 'Not implemented error',
    READ_ONLY: 'Element is read only',
    WRITE_ONLY: 'Element is write only',
    INCORRECT_DATA_TYPE: 'Incorrect data type',
}

LESSON_STATUSES = ('passed', 'completed', 'failed', 'incomplete', 'browsed', 'not attempted')
EXIT_VALUES = ('time-out', 'suspend', 'logout', '')
SCORE_ELEMENTS = ('cmi.core.score.raw', 'cmi.core.score.max', 'cmi.core.score.min')
# CMIDecimal: plain decimal notation, shared with the browser player
SCORE_PATTERN = re.compile(r'^-?(\d+(\.\d*)?|\.\d+)$')

READ_ONLY_ELEMENTS = frozenset((
    'cmi.core.student_id',
    'cmi.core.student_name',
    'cmi.core.credit',
    'cmi.core.entry',
    'cmi.core.total_time',
    'cmi.core.lesson_mode',
    'cmi.launch_data',
    'cmi.comments_from_lms',
))
WRITE_ONLY_ELEMENTS = frozenset(('cmi.core.exit', 'cmi.core.session_time'))

DEFAULT_CMI = {
    'cmi.core.lesson_status': 'not attempted',
    'cmi.core.credit': 'credit',
    'cmi.core.entry': 'ab-initio',
    'cmi.core.lesson_mode': 'normal',
}

COMPLETED_STATUSES = ('completed', 'passed')
MAX_FIND_ATTEMPTS = 7


class ScormAPI:
    """SCORM 1.2 LMS API for one learner session"""

    def __init__(self, commit_callback: Optional[Callable[[Dict[str, Any]], None]] = None,
                 initial_data: Optional[Dict[str, Any]] = None):
        self.commit_callback = commit_callback
        self.cmi = dict(DEFAULT_CMI)
        if initial_data:
            self.cmi.update({k: v for k, v in initial_data.items() if v is not None})
        self.initialized = False
        self.last_error = NO_ERROR

    def _fail(self, code: str, result: str = 'false') -> str:
        self.last_error = code
        return result

    def LMSInitialize(self, parameter: str = '') -> str:
        if parameter not in ('', None):
            return self._fail(INVALID_ARGUMENT)
        self.initialized = True
        self.last_error = NO_ERROR
        return 'true'

    def LMSFinish(self, parameter: str = '') -> str:
        if not self.initialized:
            return self._fail(NOT_INITIALIZED)
        result = self.LMSCommit('')
        self.initialized = False
        return result

    def LMSGetValue(self, element: str) -> str:
        if not self.initialized:
            return self._fail(NOT_INITIALIZED, '')
        if not element:
            return self._fail(INVALID_ARGUMENT, '')
        if not element.startswith('cmi.'):
            return self._fail(NOT_IMPLEMENTED, '')
        if element in WRITE_ONLY_ELEMENTS:
            return self._fail(WRITE_ONLY, '')
        self.last_error = NO_ERROR
        value = self.cmi.get(element)
        return '' if value is None else str(value)

    def LMSSetValue(self, element: str, value: Any) -> str:
        if not self.initialized:
            return self._fail(NOT_INITIALIZED)
        if not element:
            return self._fail(INVALID_ARGUMENT)
        if not element.startswith('cmi.'):
            return self._fail(NOT_IMPLEMENTED)
        if element in READ_ONLY_ELEMENTS:
            return self._fail(READ_ONLY)

        value = '' if value is None else str(value)
        if element == 'cmi.core.lesson_status' and value not in LESSON_STATUSES:
            return self._fail(INCORRECT_DATA_TYPE)
        if element == 'cmi.core.exit' and value not in EXIT_VALUES:
            return self._fail(INCORRECT_DATA_TYPE)
        if element in SCORE_ELEMENTS and value != '':
            score = parse_score(value)
            if score is None or not 0 <= score <= 100:
                return self._fail(INCORRECT_DATA_TYPE)

        self.cmi[element] = value
        self.last_error = NO_ERROR
        return 'true'

    def LMSCommit(self, parameter: str = '') -> str:
        if not self.initialized:
            return self._fail(NOT_INITIALIZED)
        try:
            if self.commit_callback is not None:
                self.commit_callback(dict(self.cmi))
        except Exception as e:
            logger.error(f"SCORM commit failed: {str(e)}")
            return self._fail(GENERAL_EXCEPTION)
        self.last_error = NO_ERROR
        return 'true'

    def LMSGetLastError(self) -> str:
        return self.last_error

    def LMSGetErrorString(self, error_code: str) -> str:
        return ERROR_STRINGS.get(str(error_code), '')

    def LMSGetDiagnostic(self, error_code: str = '') -> str:
        return ERROR_STRINGS.get(str(error_code or self.last_error), '')


def find_api(window, max_attempts: int = MAX_FIND_ATTEMPTS):
    """Find the `API` object on the window, its parents, then its opener's chain"""
    def search(win):
        attempts = 0
        while win is not None and getattr(win, 'API', None) is None:
            parent = getattr(win, 'parent', None)
            if parent is None or parent is win:
                return None
            attempts += 1
            if attempts > max_attempts:
                logger.warning('SCORM API search exceeded frame depth')
                return None
            win = parent
        return getattr(win, 'API', None) if win is not None else None

    api = search(window)
    if api is None and getattr(window, 'opener', None) is not None:
        api = search(window.opener)
    return api


def parse_score(value) -> Optional[float]:
    if value is None or value == '' or isinstance(value, bool):
        return None
    if isinstance(value, (int, float)):
        return float(value)
    if not isinstance(value, str) or not SCORE_PATTERN.fullmatch(value):
        return None
    return float(value)


def apply_cmi_to_tracking(tracking, cmi_data: Dict[str, Any], profile) -> None:
    """Copy committed CMI elements onto a ScormTracking row"""
    tracking.student_id = profile.user_id
    tracking.student_name = profile.email
    tracking.lesson_location = cmi_data.get('cmi.core.lesson_location')
    tracking.lesson_status = cmi_data.get('cmi.core.lesson_status')
    tracking.score_raw = parse_score(cmi_data.get('cmi.core.score.raw'))
    tracking.score_max = parse_score(cmi_data.get('cmi.core.score.max'))
    tracking.score_min = parse_score(cmi_data.get('cmi.core.score.min'))
    tracking.total_time = cmi_data.get('cmi.core.total_time')
    tracking.session_time = cmi_data.get('cmi.core.session_time')
    tracking.suspend_data = cmi_data.get('cmi.suspend_data')
    tracking.launch_data = cmi_data.get('cmi.launch_data')
    tracking.comments = cmi_data.get('cmi.comments')
    tracking.interactions = cmi_data.get('cmi.interactions') or []
    tracking.objectives = cmi_data.get('cmi.objectives') or []
    tracking.cmi_data = cmi_data


def is_completed_status(lesson_status: Optional[str]) -> bool:
    return lesson_status in COMPLETED_STATUSES
