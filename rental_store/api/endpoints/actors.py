import logging
from typing import Annotated, List
from fastapi import APIRouter, HTTPException, status, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from rental_store.core import schemas, reports
from rental_store.core.database import get_db

router = APIRouter(tags=["Actors"])

db_dep = Annotated[AsyncSession, Depends(get_db)]


# Top 5 actors by number of films
@router.get("/top-actors", response_model=List[schemas.ActorSummary])
async def top_actors(db: db_dep):
    try:
        actors = await reports.get_top_actors(db)
    except Exception as error:
        logging.error(f"Error fetching top actors: {error}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch top actors",
        )

    logging.info(f"Top actors query returned {len(actors)} results")
    return actors


# Actor page with their 5 most rented films
@router.get("/actor/{actor_id}", response_model=schemas.ActorDetailResponse)
async def actor_details(actor_id: int, db: db_dep):
    try:
        actor = await reports.get_actor_details(db, actor_id)
    except Exception as error:
        logging.error(f"Error fetching actor {actor_id}: {error}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch actor details",
        )

    if actor is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Actor not found"
        )

    try:
        top_films = await reports.get_actor_top_films(db, actor_id)
    except Exception as error:
        logging.error(f"Error fetching films of actor {actor_id}: {error}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch actor films",
        )

    return {"actor": actor, "topFilms": top_films}
