"""ResumeMatch - resume to job description scoring and evidence retrieval."""

from resume_match.utils.constants import APP_NAME, VERSION

__version__ = VERSION
__app_name__ = APP_NAME
