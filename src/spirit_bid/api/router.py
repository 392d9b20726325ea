"""Aggregate all API routers."""

from fastapi import APIRouter

from . import listings, profile, search, system

api_router = APIRouter()
api_router.include_router(listings.router)
api_router.include_router(search.router)
api_router.include_router(profile.router)
api_router.include_router(system.router)
