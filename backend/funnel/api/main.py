from fastapi import APIRouter

from funnel.api.routes import (
    form_submissions,
    generate,
    landing_pages,
    leads,
    login,
    marketplace,
    users,
    utils,
)

api_router = APIRouter()
api_router.include_router(login.router)
api_router.include_router(users.router)
api_router.include_router(utils.router)
api_router.include_router(generate.router)
api_router.include_router(landing_pages.router)
api_router.include_router(leads.router)
api_router.include_router(marketplace.router)
api_router.include_router(form_submissions.router)
