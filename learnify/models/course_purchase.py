# learnify/models/course_purchase.py
from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.sql import func

from learnify.core.database import Base
from learnify.core.enums import PurchaseStatus


class CoursePurchase(Base):
    """
    One record per checkout attempt.
    The amount is copied from the course price when checkout starts.
    """

    __tablename__ = "course_purchases"

    id = Column(Integer, primary_key=True, index=True)

    course_id = Column(
        Integer, ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True
    )
    user_id = Column(
        Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True
    )

    amount = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="usd")
    status = Column(
        String(20), nullable=False, default=PurchaseStatus.PENDING.value, index=True
    )  # pending, completed, failed
    payment_method = Column(String(50), nullable=False, default="stripe")
    payment_id = Column(String(255), nullable=True, unique=True, index=True)

    # Timestamps
    created_at = Column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at = Column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )

    def __repr__(self):
        return f"<CoursePurchase(id={self.id}, user_id={self.user_id}, course_id={self.course_id}, status={self.status})>"
