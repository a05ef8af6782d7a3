import logging
from typing import Annotated, List, Optional
from fastapi import APIRouter, HTTPException, Query, status, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from rental_store.core import schemas, models, reports
from rental_store.core.database import get_db

router = APIRouter(tags=["Films"])

db_dep = Annotated[AsyncSession, Depends(get_db)]

SEARCH_TYPES = {search_type.value for search_type in schemas.FilmSearchType}


# Top 5 rented films of all time
@router.get("/top-rented-films", response_model=List[schemas.FilmSummary])
async def top_rented_films(db: db_dep):
    try:
        films = await reports.get_top_rented_films(db)
    except Exception as error:
        logging.error(f"Error fetching top rented films: {error}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch top rented films",
        )

    logging.info(f"Top rented films query returned {len(films)} results")
    return films


# Film page
@router.get("/film/{film_id}", response_model=schemas.FilmDetail)
async def film_details(film_id: int, db: db_dep):
    try:
        film = await reports.get_film_details(db, film_id)
    except Exception as error:
        logging.error(f"Error fetching film {film_id}: {error}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch film details",
        )

    if film is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Film not found"
        )
    return film


# Copies of a film and whether each one is on the shelf
@router.get("/film/{film_id}/inventory", response_model=schemas.FilmInventoryResponse)
async def film_inventory(film_id: int, db: db_dep):
    try:
        query = select(models.Film).where(models.Film.film_id == film_id)
        result = await db.execute(query)
        film = result.scalars().first()
        copies = await reports.get_film_inventory(db, film_id) if film else []
    except Exception as error:
        logging.error(f"Error fetching inventory for film {film_id}: {error}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch film inventory",
        )

    if film is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Film not found"
        )

    return {
        "film_id": film.film_id,
        "title": film.title,
        "inventory": copies,
        "total_copies": len(copies),
        "available_copies": sum(1 for copy in copies if copy["available"]),
    }


# Search films by title, actor or genre
@router.get("/search-films", response_model=List[schemas.FilmSummary])
async def search_films(
    db: db_dep,
    query: Optional[str] = None,
    search_type: Annotated[Optional[str], Query(alias="type")] = None,
):
    if not query or not query.strip() or not search_type:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Query and type parameters are required",
        )

    if search_type not in SEARCH_TYPES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid search type. Use: title, actor, or genre",
        )

    query = query.strip()
    try:
        films = await reports.search_films(db, query, search_type)
    except Exception as error:
        logging.error(f"Error searching films ({search_type}: {query!r}): {error}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to search films",
        )

    logging.info(f'Film search ({search_type}: "{query}") returned {len(films)} results')
    return films
