# ris/api/api_v1/api.py

from fastapi import APIRouter, Depends

from ris.api import deps
from ris.api.api_v1.endpoints import orders

api_router = APIRouter()

# Every order route needs an acting user
api_router.include_router(
    orders.router,
    prefix="/orders",
    tags=["Orders"],
    dependencies=[Depends(deps.get_actor_id)],
)
