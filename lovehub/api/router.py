"""
LoveHub — Main API Router

Aggregates all sub-routers under a single prefix so that ``lovehub.main``
can mount the entire API surface with one ``include_router`` call.
"""

from fastapi import APIRouter

from lovehub.api import discovery, matching, messages, users
from lovehub.api.admin import console

router = APIRouter()

router.include_router(users.router, prefix="/users", tags=["Users"])
router.include_router(discovery.router, tags=["Discovery"])
router.include_router(matching.router, prefix="/matches", tags=["Matching"])
router.include_router(messages.router, prefix="/messages", tags=["Messages"])
router.include_router(console.router, tags=["Admin"])
