"""Service layer for listing lifecycle, reviews, inquiries, and reporting."""

from src.services.activity_service import ActivityService, append_activity
from src.services.inquiry_service import InquiryService
from src.services.lifecycle_service import LifecycleService, apply_lazy_expiry
from src.services.report_service import ReportService
from src.services.review_service import ReviewService

__all__ = [
    "ActivityService",
    "InquiryService",
    "LifecycleService",
    "ReportService",
    "ReviewService",
    "append_activity",
    "apply_lazy_expiry",
]
