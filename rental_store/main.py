import logging
from contextlib import asynccontextmanager
from fastapi import FastAPI
from rental_store.core.database import engine, check_connection
from rental_store.core.errors import register_exception_handlers
from rental_store.api.router import api_router


# Close the engine once everything is done and close all the sessions
@asynccontextmanager
async def lifespan(app: FastAPI):
    # Keep serving even if the database is down, requests will answer 500
    try:
        await check_connection()
        logging.info("Connected to Sakila database")
    except Exception as e:
        logging.error(f"Database connection failed: {e}")

    yield
    await engine.dispose()


app = FastAPI(title="Film Rental Store API", lifespan=lifespan)

register_exception_handlers(app)

# Include the master router containing all our endpoints
app.include_router(api_router)


@app.get("/")
async def root():
    return {"message": "Welcome to the Film Rental Store API"}
