from .user import UserBase, UserCreate, UserLogin, UserSummary, UserResponse, AuthResponse
from .craftsman import (
    CraftsmanProfileSummary,
    CraftsmanNested,
    CraftsmanResponse,
    CraftsmanListResponse,
    CraftsmanApprovalUpdate,
    Pagination,
)
from .service import ServiceBase, ServiceResponse
from .booking import (
    BookingBase,
    BookingCreate,
    BookingStatusUpdate,
    BookingResponse,
    BookingDetail,
    BookingDeleteResponse,
)
from .review import ReviewBase, ReviewCreate, ReviewResponse, ReviewDetails
from .notification import (
    NotificationCreate,
    NotificationResponse,
    NotificationMarkRead,
    NotificationMarkReadResponse,
)
from .payment import PaymentCreate, PaymentResponse, PaymentResult

__all__ = [
    "UserBase",
    "UserCreate",
    "UserLogin",
    "UserSummary",
    "UserResponse",
    "AuthResponse",
    "CraftsmanProfileSummary",
    "CraftsmanNested",
    "CraftsmanResponse",
    "CraftsmanListResponse",
    "CraftsmanApprovalUpdate",
    "Pagination",
    "ServiceBase",
    "ServiceResponse",
    "BookingBase",
    "BookingCreate",
    "BookingStatusUpdate",
    "BookingResponse",
    "BookingDetail",
    "BookingDeleteResponse",
    "ReviewBase",
    "ReviewCreate",
    "ReviewResponse",
    "ReviewDetails",
    "NotificationCreate",
    "NotificationResponse",
    "NotificationMarkRead",
    "NotificationMarkReadResponse",
    "PaymentCreate",
    "PaymentResponse",
    "PaymentResult",
]
