from foodloop.models.user import User, UserRole
from foodloop.models.listing import Listing, ListingStatus
from foodloop.models.claim import Claim, ClaimStatus
from foodloop.models.notification import Notification, NotificationType
from foodloop.models.analytics import DailyAnalytics

__all__ = [
    "User",
    "UserRole",
    "Listing",
    "ListingStatus",
    "Claim",
    "ClaimStatus",
    "Notification",
    "NotificationType",
    "DailyAnalytics",
]
