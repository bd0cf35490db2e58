"""Firestore and Realtime Database repository implementations."""

from solarify.infrastructure.firebase.repositories.billing_cycle_repo_firestore import (
    FirestoreBillingCycleRepository,
)
from solarify.infrastructure.firebase.repositories.contact_repo_rtdb import (
    RealtimeContactMessageRepository,
)
from solarify.infrastructure.firebase.repositories.notification_repo_firestore import (
    FirestoreNotificationRepository,
)
from solarify.infrastructure.firebase.repositories.order_repo_firestore import (
    FirestoreOrderRepository,
)
from solarify.infrastructure.firebase.repositories.product_repo_firestore import (
    FirestoreProductRepository,
)
from solarify.infrastructure.firebase.repositories.promotion_repo_firestore import (
    FirestorePromotionRepository,
)
from solarify.infrastructure.firebase.repositories.quote_repo_firestore import (
    FirestoreQuoteRepository,
)
from solarify.infrastructure.firebase.repositories.review_repo_firestore import (
    FirestoreReviewRepository,
)
from solarify.infrastructure.firebase.repositories.rfq_repo_firestore import (
    FirestoreRFQRepository,
)
from solarify.infrastructure.firebase.repositories.user_repo_firestore import (
    FirestoreUserRepository,
)

__all__ = [
    "FirestoreBillingCycleRepository",
    "FirestoreNotificationRepository",
    "FirestoreOrderRepository",
    "FirestoreProductRepository",
    "FirestorePromotionRepository",
    "FirestoreQuoteRepository",
    "FirestoreRFQRepository",
    "FirestoreReviewRepository",
    "FirestoreUserRepository",
    "RealtimeContactMessageRepository",
]
