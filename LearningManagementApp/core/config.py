import os
from dataclasses import dataclass

@dataclass(frozen=True)
class LmsSettings:
    weight_tolerance: float = float(os.getenv("LMS_WEIGHT_TOLERANCE", "1e-9"))
    default_page_size: int = int(os.getenv("LMS_DEFAULT_PAGE_SIZE", "10"))
    max_page_size: int = int(os.getenv("LMS_MAX_PAGE_SIZE", "100"))
    upcoming_window_days: int = int(os.getenv("LMS_UPCOMING_WINDOW_DAYS", "3"))
    recent_feedback_limit: int = int(os.getenv("LMS_RECENT_FEEDBACK_LIMIT", "5"))
    recent_submissions_limit: int = int(os.getenv("LMS_RECENT_SUBMISSIONS_LIMIT", "10"))

lms_settings = LmsSettings()
