"""String enums persisted in listing and activity columns."""

from enum import StrEnum


class ListingStatus(StrEnum):
    PENDING = "Pending"
    APPROVED = "Approved"
    REJECTED = "Rejected"
    EXPIRED = "Expired"


class ActivityKind(StrEnum):
    USER_LOGIN = "UserLogin"
    LISTING_CREATE = "ListingCreate"
    LISTING_UPDATE = "ListingUpdate"
    LISTING_RENEW = "ListingRenew"
    LISTING_APPROVE = "ListingApprove"
    LISTING_REJECT = "ListingReject"
    REVIEW_CREATE = "ReviewCreate"
    INQUIRY_CREATE = "InquiryCreate"
    LISTING_DELETE = "ListingDelete"


class UserRole(StrEnum):
    USER = "User"
    OWNER = "Owner"
    ADMIN = "Admin"
