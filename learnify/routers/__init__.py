from .courses import router as courses_router
from .payments import router as payments_router
from .progress import router as progress_router
from .users import router as users_router

routes = [
    users_router,
    courses_router,
    progress_router,
    payments_router,
]
