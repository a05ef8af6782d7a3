from typing import Dict, Any, List, Optional

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, desc, distinct, exists, not_

from rental_store.core import models


# -----------------------------------------------------------------------------
# REPORTS MODULE
# Purpose: the read-only film and actor queries behind the catalogue pages.
# Every function returns plain dicts so the routes can hand them to FastAPI.
# -----------------------------------------------------------------------------

# Columns every film listing shows
FILM_SUMMARY_COLUMNS = (
    models.Film.film_id,
    models.Film.title,
    models.Film.description,
    models.Film.release_year,
    models.Film.rating,
    models.Film.rental_rate,
)


def _rows_to_dicts(rows) -> List[Dict[str, Any]]:
    return [dict(row._mapping) for row in rows]


def _film_rental_count():
    """Correlated count of every rental of every copy of the outer film."""
    return (
        select(func.count(models.Rental.rental_id))
        .join(
            models.Inventory,
            models.Rental.inventory_id == models.Inventory.inventory_id,
        )
        .where(models.Inventory.film_id == models.Film.film_id)
        .scalar_subquery()
    )


def _film_open_rental_count():
    return (
        select(func.count(models.Rental.rental_id))
        .join(
            models.Inventory,
            models.Rental.inventory_id == models.Inventory.inventory_id,
        )
        .where(
            models.Inventory.film_id == models.Film.film_id,
            models.Rental.return_date.is_(None),
        )
        .scalar_subquery()
    )


def _film_copy_count():
    return (
        select(func.count(models.Inventory.inventory_id))
        .where(models.Inventory.film_id == models.Film.film_id)
        .scalar_subquery()
    )


# =========================
# Films
# =========================
async def get_top_rented_films(db: AsyncSession, limit: int = 5) -> List[Dict[str, Any]]:
    """
    Most rented films of all time.

    Films that were never rented are left out (inner joins on inventory and
    rental), ties are broken by film id so the ranking is stable.
    """
    stmt = (
        select(
            *FILM_SUMMARY_COLUMNS,
            func.count(models.Rental.rental_id).label("rental_count"),
        )
        .join(models.Inventory, models.Inventory.film_id == models.Film.film_id)
        .join(
            models.Rental,
            models.Rental.inventory_id == models.Inventory.inventory_id,
        )
        .group_by(*FILM_SUMMARY_COLUMNS)
        .order_by(desc("rental_count"), models.Film.film_id)
        .limit(limit)
    )

    result = await db.execute(stmt)
    return _rows_to_dicts(result.all())


async def get_film_details(db: AsyncSession, film_id: int) -> Optional[Dict[str, Any]]:
    """
    Everything the film page shows, flattened into one dict.

    Args:
        db: Database session
        film_id: Film to describe

    Returns:
        None when the film does not exist, otherwise the film columns plus:
            language          language name
            categories        "Action, Comedy" (None when uncategorised)
            actors            "First Last, ..." ordered by last name (None when no cast)
            rental_count      rentals of all copies, open or returned
            total_copies      inventory rows of the film
            currently_rented  rentals with no return date
    """
    stmt = (
        select(
            *FILM_SUMMARY_COLUMNS,
            models.Film.rental_duration,
            models.Film.length,
            models.Film.replacement_cost,
            models.Film.special_features,
            models.Language.name.label("language"),
            _film_rental_count().label("rental_count"),
            _film_copy_count().label("total_copies"),
            _film_open_rental_count().label("currently_rented"),
        )
        .outerjoin(
            models.Language,
            models.Film.language_id == models.Language.language_id,
        )
        .where(models.Film.film_id == film_id)
    )

    result = await db.execute(stmt)
    row = result.first()
    if row is None:
        return None

    film = dict(row._mapping)

    category_stmt = (
        select(models.Category.name)
        .join(
            models.FilmCategory,
            models.FilmCategory.category_id == models.Category.category_id,
        )
        .where(models.FilmCategory.film_id == film_id)
        .order_by(models.Category.name)
    )
    categories = (await db.execute(category_stmt)).scalars().all()

    actor_stmt = (
        select(models.Actor.first_name, models.Actor.last_name)
        .join(models.FilmActor, models.FilmActor.actor_id == models.Actor.actor_id)
        .where(models.FilmActor.film_id == film_id)
        .order_by(models.Actor.last_name, models.Actor.first_name)
    )
    actors = (await db.execute(actor_stmt)).all()

    film["categories"] = ", ".join(categories) or None
    film["actors"] = (
        ", ".join(f"{actor.first_name} {actor.last_name}" for actor in actors) or None
    )
    return film


async def get_film_inventory(db: AsyncSession, film_id: int) -> List[Dict[str, Any]]:
    """Every copy of a film with whether it can be rented right now."""
    open_rental = exists().where(
        models.Rental.inventory_id == models.Inventory.inventory_id,
        models.Rental.return_date.is_(None),
    )
    stmt = (
        select(
            models.Inventory.inventory_id,
            models.Inventory.store_id,
            not_(open_rental).label("available"),
        )
        .where(models.Inventory.film_id == film_id)
        .order_by(models.Inventory.store_id, models.Inventory.inventory_id)
    )

    result = await db.execute(stmt)
    copies = _rows_to_dicts(result.all())
    # MySQL hands booleans back as 0/1
    for copy in copies:
        copy["available"] = bool(copy["available"])
    return copies


# =========================
# Actors
# =========================
async def get_top_actors(db: AsyncSession, limit: int = 5) -> List[Dict[str, Any]]:
    """Actors appearing in the most films."""
    stmt = (
        select(
            models.Actor.actor_id,
            models.Actor.first_name,
            models.Actor.last_name,
            func.count(models.FilmActor.film_id).label("film_count"),
        )
        .join(models.FilmActor, models.FilmActor.actor_id == models.Actor.actor_id)
        .group_by(
            models.Actor.actor_id, models.Actor.first_name, models.Actor.last_name
        )
        .order_by(desc("film_count"), models.Actor.actor_id)
        .limit(limit)
    )

    result = await db.execute(stmt)
    return _rows_to_dicts(result.all())


async def get_actor_details(db: AsyncSession, actor_id: int) -> Optional[Dict[str, Any]]:
    """
    Actor name with film and rental totals.

    Outer joins keep actors without films (or without stocked films) in the
    result with zero totals; None only when the actor id does not exist.
    """
    stmt = (
        select(
            models.Actor.actor_id,
            models.Actor.first_name,
            models.Actor.last_name,
            func.count(distinct(models.FilmActor.film_id)).label("total_films"),
            func.count(distinct(models.Rental.rental_id)).label("total_rentals"),
        )
        .outerjoin(models.FilmActor, models.FilmActor.actor_id == models.Actor.actor_id)
        .outerjoin(
            models.Inventory, models.Inventory.film_id == models.FilmActor.film_id
        )
        .outerjoin(
            models.Rental,
            models.Rental.inventory_id == models.Inventory.inventory_id,
        )
        .where(models.Actor.actor_id == actor_id)
        .group_by(
            models.Actor.actor_id, models.Actor.first_name, models.Actor.last_name
        )
    )

    result = await db.execute(stmt)
    row = result.first()
    return dict(row._mapping) if row else None


async def get_actor_top_films(
    db: AsyncSession, actor_id: int, limit: int = 5
) -> List[Dict[str, Any]]:
    """The actor's most rented films."""
    stmt = (
        select(
            *FILM_SUMMARY_COLUMNS,
            func.count(models.Rental.rental_id).label("rental_count"),
        )
        .join(models.FilmActor, models.FilmActor.film_id == models.Film.film_id)
        .join(models.Inventory, models.Inventory.film_id == models.Film.film_id)
        .join(
            models.Rental,
            models.Rental.inventory_id == models.Inventory.inventory_id,
        )
        .where(models.FilmActor.actor_id == actor_id)
        .group_by(*FILM_SUMMARY_COLUMNS)
        .order_by(desc("rental_count"), models.Film.film_id)
        .limit(limit)
    )

    result = await db.execute(stmt)
    return _rows_to_dicts(result.all())


# =========================
# Search
# =========================
async def search_films(
    db: AsyncSession, query: str, search_type: str
) -> List[Dict[str, Any]]:
    """
    Case-insensitive substring search over film titles, actor names or genres.

    Args:
        db: Database session
        query: Text to look for, LIKE wildcards in it are matched literally
        search_type: "title", "actor" or "genre"

    Returns:
        Matching films ordered by title, each with its rental_count

    Raises:
        ValueError: Unknown search_type
    """
    stmt = select(
        *FILM_SUMMARY_COLUMNS,
        func.count(distinct(models.Rental.rental_id)).label("rental_count"),
    ).select_from(models.Film)

    if search_type == "title":
        condition = models.Film.title.icontains(query, autoescape=True)
    elif search_type == "actor":
        stmt = stmt.join(
            models.FilmActor, models.FilmActor.film_id == models.Film.film_id
        ).join(models.Actor, models.Actor.actor_id == models.FilmActor.actor_id)
        full_name = models.Actor.first_name + " " + models.Actor.last_name
        condition = full_name.icontains(query, autoescape=True)
    elif search_type == "genre":
        stmt = stmt.join(
            models.FilmCategory, models.FilmCategory.film_id == models.Film.film_id
        ).join(
            models.Category,
            models.Category.category_id == models.FilmCategory.category_id,
        )
        condition = models.Category.name.icontains(query, autoescape=True)
    else:
        raise ValueError(f"Unknown search type: {search_type}")

    stmt = (
        stmt.outerjoin(models.Inventory, models.Inventory.film_id == models.Film.film_id)
        .outerjoin(
            models.Rental,
            models.Rental.inventory_id == models.Inventory.inventory_id,
        )
        .where(condition)
        .group_by(*FILM_SUMMARY_COLUMNS)
        .order_by(models.Film.title)
    )

    result = await db.execute(stmt)
    return _rows_to_dicts(result.all())
