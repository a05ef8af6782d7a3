import pytest
from httpx import AsyncClient


@pytest.mark.asyncio
async def test_top_rented_films(client: AsyncClient):
    """Films ranked by number of rentals, never rented films left out"""
    response = await client.get("/api/top-rented-films")
    assert response.status_code == 200
    data = response.json()

    assert [film["film_id"] for film in data] == [1, 2, 3]
    assert [film["rental_count"] for film in data] == [3, 1, 1]
    assert data[0]["title"] == "ACADEMY DINOSAUR"
    assert float(data[0]["rental_rate"]) == pytest.approx(0.99)


@pytest.mark.asyncio
async def test_film_details_counts(client: AsyncClient):
    """Aggregates match the rental and inventory rows"""
    response = await client.get("/api/film/1")
    assert response.status_code == 200
    film = response.json()

    assert film["title"] == "ACADEMY DINOSAUR"
    assert film["language"] == "English"
    assert film["rental_count"] == 3
    assert film["total_copies"] == 3
    assert film["currently_rented"] == 1
    assert film["categories"] == "Action"
    # Ordered by last name
    assert film["actors"] == "PENELOPE GUINESS, NICK WAHLBERG"
    assert film["special_features"] == "Trailers,Deleted Scenes"


@pytest.mark.asyncio
async def test_film_details_multiple_categories(client: AsyncClient):
    """Category names are joined alphabetically"""
    response = await client.get("/api/film/3")
    assert response.status_code == 200
    assert response.json()["categories"] == "Action, Animation"


@pytest.mark.asyncio
async def test_film_details_without_cast_or_copies(client: AsyncClient):
    """A film nobody stocks still has a page with zero counts"""
    response = await client.get("/api/film/4")
    assert response.status_code == 200
    film = response.json()

    assert film["actors"] is None
    assert film["rental_count"] == 0
    assert film["total_copies"] == 0
    assert film["currently_rented"] == 0


@pytest.mark.asyncio
async def test_film_not_found(client: AsyncClient):
    """404 with an error message for unknown film"""
    response = await client.get("/api/film/999")
    assert response.status_code == 404
    assert response.json() == {"error": "Film not found"}


@pytest.mark.asyncio
async def test_film_inventory(client: AsyncClient):
    """Each copy reports whether it is on the shelf"""
    response = await client.get("/api/film/1/inventory")
    assert response.status_code == 200
    data = response.json()

    assert data["title"] == "ACADEMY DINOSAUR"
    assert data["total_copies"] == 3
    assert data["available_copies"] == 2
    assert data["inventory"] == [
        {"inventory_id": 1, "store_id": 1, "available": True},
        {"inventory_id": 2, "store_id": 1, "available": False},
        {"inventory_id": 3, "store_id": 2, "available": True},
    ]


@pytest.mark.asyncio
async def test_film_inventory_not_found(client: AsyncClient):
    response = await client.get("/api/film/999/inventory")
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_search_by_title(client: AsyncClient):
    """Title search is a case-insensitive substring match"""
    response = await client.get(
        "/api/search-films", params={"query": "ace", "type": "title"}
    )
    assert response.status_code == 200
    titles = [film["title"] for film in response.json()]
    assert titles == ["ACE GOLDFINGER"]


@pytest.mark.asyncio
async def test_search_by_actor_full_name(client: AsyncClient):
    """Actor search matches "First Last" and orders results by title"""
    response = await client.get(
        "/api/search-films", params={"query": "penelope guiness", "type": "actor"}
    )
    assert response.status_code == 200
    data = response.json()
    assert [film["title"] for film in data] == ["ACADEMY DINOSAUR", "ACE GOLDFINGER"]
    assert data[0]["rental_count"] == 3


@pytest.mark.asyncio
async def test_search_by_genre(client: AsyncClient):
    """Genre search only returns films in a matching category"""
    response = await client.get(
        "/api/search-films", params={"query": "Action", "type": "genre"}
    )
    assert response.status_code == 200
    assert [film["film_id"] for film in response.json()] == [1, 3]

    response = await client.get(
        "/api/search-films", params={"query": "action", "type": "genre"}
    )
    assert [film["film_id"] for film in response.json()] == [1, 3]


@pytest.mark.asyncio
async def test_search_counts_each_rental_once(client: AsyncClient):
    """A film matching through two categories is not double counted"""
    response = await client.get(
        "/api/search-films", params={"query": "a", "type": "genre"}
    )
    assert response.status_code == 200
    film_3 = next(film for film in response.json() if film["film_id"] == 3)
    assert film_3["rental_count"] == 1


@pytest.mark.asyncio
async def test_search_wildcards_are_literal(client: AsyncClient):
    """% in the query does not match everything"""
    response = await client.get(
        "/api/search-films", params={"query": "%", "type": "title"}
    )
    assert response.status_code == 200
    assert response.json() == []


@pytest.mark.asyncio
async def test_search_no_matches(client: AsyncClient):
    response = await client.get(
        "/api/search-films", params={"query": "zzz", "type": "title"}
    )
    assert response.status_code == 200
    assert response.json() == []


@pytest.mark.asyncio
async def test_search_missing_parameters(client: AsyncClient):
    """400 when query or type is missing"""
    response = await client.get("/api/search-films", params={"type": "title"})
    assert response.status_code == 400
    assert response.json()["error"] == "Query and type parameters are required"

    response = await client.get("/api/search-films", params={"query": "ace"})
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_search_invalid_type(client: AsyncClient):
    response = await client.get(
        "/api/search-films", params={"query": "ace", "type": "director"}
    )
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid search type. Use: title, actor, or genre"
