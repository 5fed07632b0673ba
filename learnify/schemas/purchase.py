# learnify/schemas/purchase.py
from learnify.schemas.common import CamelModel
from learnify.schemas.course import CourseDetailResponse


class CheckoutRequest(CamelModel):
    course_id: int


class CheckoutSessionResponse(CamelModel):
    checkout_url: str
    session_id: str
    purchase_id: int


class PurchaseStatusData(CamelModel):
    course: CourseDetailResponse
    is_purchased: bool


class WebhookAck(CamelModel):
    received: bool = True
