from fastapi import APIRouter
from rental_store.api.endpoints import films, actors, customers, rentals

api_router = APIRouter(prefix="/api")

# Combine all sub-routers into one
api_router.include_router(films.router)
api_router.include_router(actors.router)
api_router.include_router(customers.router)
api_router.include_router(rentals.router)
