# learnify/services/purchase.py
import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session, selectinload

from learnify.core.decorator import db_exception
from learnify.core.enums import PurchaseStatus
from learnify.core.exceptions import ConflictError, ExternalServiceError
from learnify.models.course import Course
from learnify.models.course_purchase import CoursePurchase
from learnify.models.enrollment import Enrollment
from learnify.models.user import User
from learnify.services.course import CourseService
from learnify.utils.payment import PaymentGateway

logger = logging.getLogger(__name__)

FAILURE_EVENTS = {"checkout.session.expired", "checkout.session.async_payment_failed"}
SUCCESS_EVENT = "checkout.session.completed"


class PurchaseService:
    def __init__(self, db: Session):
        self.db = db

    def has_purchased(self, user_id: int, course_id: int) -> bool:
        """Only a completed purchase grants access."""
        return (
            self.db.query(CoursePurchase.id)
            .filter(
                CoursePurchase.user_id == user_id,
                CoursePurchase.course_id == course_id,
                CoursePurchase.status == PurchaseStatus.COMPLETED.value,
            )
            .first()
            is not None
        )

    # ==================== Checkout ====================

    @db_exception
    def create_checkout_session(
        self, course_id: int, user: User, gateway: PaymentGateway
    ) -> Dict[str, Any]:
        course = CourseService(self.db).get_course(course_id)
        if self.has_purchased(user.id, course.id):
            raise ConflictError("You have already purchased this course")

        purchase = CoursePurchase(
            course_id=course.id,
            user_id=user.id,
            amount=course.price,
            currency=gateway.currency,
            status=PurchaseStatus.PENDING.value,
        )
        self.db.add(purchase)
        self.db.commit()
        self.db.refresh(purchase)

        try:
            session = gateway.create_checkout_session(course, user, purchase)
        except ExternalServiceError:
            purchase.status = PurchaseStatus.FAILED.value
            self.db.commit()
            logger.error(f"Checkout failed for purchase {purchase.id}")
            raise

        purchase.payment_id = session.id
        self.db.commit()

        logger.info(f"Checkout session {session.id} opened for purchase {purchase.id}")
        return {
            "checkout_url": session.url,
            "session_id": session.id,
            "purchase_id": purchase.id,
        }

    # ==================== Webhook ====================

    def _find_purchase(self, session_object: Dict[str, Any]) -> Optional[CoursePurchase]:
        purchase = None
        session_id = session_object.get("id")
        if session_id:
            purchase = (
                self.db.query(CoursePurchase)
                .filter(CoursePurchase.payment_id == session_id)
                .first()
            )
        if purchase is None:
            purchase_id = str((session_object.get("metadata") or {}).get("purchase_id") or "")
            if purchase_id.isdigit():
                purchase = (
                    self.db.query(CoursePurchase)
                    .filter(CoursePurchase.id == int(purchase_id))
                    .first()
                )
        return purchase

    def _enroll(self, user_id: int, course_id: int) -> None:
        exists = (
            self.db.query(Enrollment.id)
            .filter(Enrollment.user_id == user_id, Enrollment.course_id == course_id)
            .first()
        )
        if not exists:
            self.db.add(Enrollment(user_id=user_id, course_id=course_id))

    @db_exception
    def handle_webhook(
        self, payload: bytes, signature: Optional[str], gateway: PaymentGateway
    ) -> None:
        event = gateway.construct_event(payload, signature)
        event_type = event.get("type")
        session_object = (event.get("data") or {}).get("object") or {}

        if event_type != SUCCESS_EVENT and event_type not in FAILURE_EVENTS:
            logger.info(f"Ignoring webhook event {event_type}")
            return

        purchase = self._find_purchase(session_object)
        if purchase is None:
            logger.warning(f"Webhook {event_type} for unknown session {session_object.get('id')}")
            return

        if event_type == SUCCESS_EVENT:
            purchase.status = PurchaseStatus.COMPLETED.value
            if not purchase.payment_id and session_object.get("id"):
                purchase.payment_id = session_object["id"]
            self._enroll(purchase.user_id, purchase.course_id)
            logger.info(f"Purchase {purchase.id} completed")
        elif purchase.status != PurchaseStatus.COMPLETED.value:
            purchase.status = PurchaseStatus.FAILED.value
            logger.info(f"Purchase {purchase.id} failed ({event_type})")

        self.db.commit()

    # ==================== Queries ====================

    def purchase_status(self, course_id: int, user: User) -> Dict[str, Any]:
        course_service = CourseService(self.db)
        course = course_service.get_course(course_id)
        return {
            "course": course_service.build_detail(course, user),
            "is_purchased": self.has_purchased(user.id, course.id),
        }

    def purchased_courses(self, user: User) -> List[Course]:
        return (
            self.db.query(Course)
            .options(selectinload(Course.instructor))
            .join(CoursePurchase, CoursePurchase.course_id == Course.id)
            .filter(
                CoursePurchase.user_id == user.id,
                CoursePurchase.status == PurchaseStatus.COMPLETED.value,
            )
            .distinct()
            .order_by(Course.id.asc())
            .all()
        )
