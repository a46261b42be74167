"""V1 API router aggregation."""

from fastapi import APIRouter

from app.api.v1.auth import router as auth_router
from app.api.v1.content import collection_routers
from app.api.v1.organization import router as organization_router
from app.api.v1.public import router as public_router
from app.api.v1.super_admin import router as super_admin_router
from app.api.v1.users import router as users_router

# Same collections, with the tenant named in the path
org_scoped_router = APIRouter(prefix="/orgs/{organization_id}")
for _collection_router in collection_routers:
    org_scoped_router.include_router(_collection_router)

v1_router = APIRouter(prefix="/v1")
v1_router.include_router(auth_router)
v1_router.include_router(organization_router)
v1_router.include_router(users_router)
v1_router.include_router(public_router)
v1_router.include_router(super_admin_router)
for _collection_router in collection_routers:
    v1_router.include_router(_collection_router)
v1_router.include_router(org_scoped_router)
