import os
from datetime import datetime
from decimal import Decimal

# The app builds its engine at import time, point it somewhere harmless
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from rental_store.main import app
from rental_store.core import models
from rental_store.core.database import Base, get_db

# Force to use a throwaway in-memory db for tests
TEST_DATABASE_URL = os.getenv("TEST_DATABASE_URL", "sqlite+aiosqlite://")


def make_engine():
    # StaticPool keeps every session on the same in-memory connection
    return create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )


# Fresh schema for every test and drop it after the test is done
@pytest_asyncio.fixture(scope="function")
async def test_engine():
    engine = make_engine()
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine  # Tests happens here
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def db_session(test_engine):
    TestingSessionLocal = async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False
    )
    async with TestingSessionLocal() as session:
        yield session
        await session.rollback()


async def _client_for(session: AsyncSession, raise_app_exceptions: bool = True):
    async def override_get_db():
        yield session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(
        transport=ASGITransport(app=app, raise_app_exceptions=raise_app_exceptions),
        base_url="http://test",
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


# Client
@pytest_asyncio.fixture(scope="function")
async def client(db_session: AsyncSession, sakila):
    async for ac in _client_for(db_session):
        yield ac


# Client talking to a database without any tables, every query fails
@pytest_asyncio.fixture(scope="function")
async def broken_client():
    engine = make_engine()
    async with async_sessionmaker(engine, class_=AsyncSession)() as session:
        async for ac in _client_for(session, raise_app_exceptions=False):
            yield ac
    await engine.dispose()


# A small slice of Sakila:
#
# film 1 ACADEMY DINOSAUR  Action           actors 1, 2  copies 1, 2 (store 1), 3 (store 2)
# film 2 ACE GOLDFINGER    Comedy           actor 1      copy 4
# film 3 ADAPTATION HOLES  Action/Animation actor 3      copy 5
# film 4 AFFAIR PREJUDICE  Comedy           no cast      no copies
#
# rentals: 1 (copy 1, customer 1, returned)  2 (copy 1, customer 2, returned)
#          3 (copy 2, customer 1, OPEN)      4 (copy 4, customer 2, returned)
#          5 (copy 5, customer 2, returned)
#
# customer 3 is soft deleted
@pytest_asyncio.fixture(scope="function")
async def sakila(db_session: AsyncSession):
    db_session.add(models.Language(language_id=1, name="English"))
    db_session.add_all(
        [
            models.Store(store_id=1, manager_staff_id=1, address_id=1),
            models.Store(store_id=2, manager_staff_id=2, address_id=2),
        ]
    )
    db_session.add_all(
        [
            models.Category(category_id=1, name="Action"),
            models.Category(category_id=2, name="Comedy"),
            models.Category(category_id=3, name="Animation"),
        ]
    )
    db_session.add_all(
        [
            models.Actor(actor_id=1, first_name="PENELOPE", last_name="GUINESS"),
            models.Actor(actor_id=2, first_name="NICK", last_name="WAHLBERG"),
            models.Actor(actor_id=3, first_name="ED", last_name="CHASE"),
            models.Actor(actor_id=4, first_name="JOHNNY", last_name="LOLLOBRIGIDA"),
        ]
    )
    await db_session.flush()

    films = [
        (1, "ACADEMY DINOSAUR", "A Epic Drama of a Feminist", 2006, "PG", "0.99", 86),
        (2, "ACE GOLDFINGER", "A Astounding Epistle of a Database Administrator", 2006, "G", "4.99", 48),
        (3, "ADAPTATION HOLES", "A Astounding Reflection of a Lumberjack", 2006, "NC-17", "2.99", 50),
        (4, "AFFAIR PREJUDICE", "A Fanciful Documentary of a Frisbee", 2006, "G", "2.99", 117),
    ]
    for film_id, title, description, year, rating, rate, length in films:
        db_session.add(
            models.Film(
                film_id=film_id,
                title=title,
                description=description,
                release_year=year,
                language_id=1,
                rental_duration=6,
                rental_rate=Decimal(rate),
                length=length,
                replacement_cost=Decimal("20.99"),
                rating=rating,
                special_features="Trailers,Deleted Scenes",
            )
        )
    await db_session.flush()

    db_session.add_all(
        [
            models.FilmActor(actor_id=1, film_id=1),
            models.FilmActor(actor_id=2, film_id=1),
            models.FilmActor(actor_id=1, film_id=2),
            models.FilmActor(actor_id=3, film_id=3),
            models.FilmCategory(film_id=1, category_id=1),
            models.FilmCategory(film_id=2, category_id=2),
            models.FilmCategory(film_id=3, category_id=1),
            models.FilmCategory(film_id=3, category_id=3),
            models.FilmCategory(film_id=4, category_id=2),
        ]
    )
    db_session.add_all(
        [
            models.Inventory(inventory_id=1, film_id=1, store_id=1),
            models.Inventory(inventory_id=2, film_id=1, store_id=1),
            models.Inventory(inventory_id=3, film_id=1, store_id=2),
            models.Inventory(inventory_id=4, film_id=2, store_id=1),
            models.Inventory(inventory_id=5, film_id=3, store_id=2),
        ]
    )
    created = datetime(2006, 2, 14, 22, 4, 36)
    db_session.add_all(
        [
            models.Customer(
                customer_id=1,
                store_id=1,
                first_name="MARY",
                last_name="SMITH",
                email="mary.smith@example.com",
                address_id=5,
                active=True,
                create_date=created,
            ),
            models.Customer(
                customer_id=2,
                store_id=1,
                first_name="PATRICIA",
                last_name="JOHNSON",
                email="patricia.johnson@example.com",
                address_id=6,
                active=True,
                create_date=created,
            ),
            models.Customer(
                customer_id=3,
                store_id=2,
                first_name="LINDA",
                last_name="WILLIAMS",
                email="linda.williams@example.com",
                address_id=7,
                active=False,
                create_date=created,
            ),
        ]
    )
    await db_session.flush()

    rentals = [
        (1, 1, 1, datetime(2005, 5, 24, 22, 53), datetime(2005, 5, 26, 22, 4)),
        (2, 1, 2, datetime(2005, 6, 1, 10, 0), datetime(2005, 6, 3, 9, 0)),
        (3, 2, 1, datetime(2005, 7, 8, 19, 3), None),
        (4, 4, 2, datetime(2005, 5, 25, 0, 0), datetime(2005, 5, 28, 0, 0)),
        (5, 5, 2, datetime(2005, 8, 2, 12, 0), datetime(2005, 8, 4, 12, 0)),
    ]
    for rental_id, inventory_id, customer_id, rented, returned in rentals:
        db_session.add(
            models.Rental(
                rental_id=rental_id,
                rental_date=rented,
                inventory_id=inventory_id,
                customer_id=customer_id,
                return_date=returned,
                staff_id=1,
            )
        )
    await db_session.commit()
