from datetime import datetime
from decimal import Decimal
from typing import Optional, List
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, EmailStr


# =========================
# Enums
# =========================
class FilmSearchType(str, Enum):
    TITLE = "title"
    ACTOR = "actor"
    GENRE = "genre"


class CustomerSearchType(str, Enum):
    NAME = "name"
    EMAIL = "email"
    ID = "id"


# =========================
# FILM
# =========================
class FilmSummary(BaseModel):
    film_id: int
    title: str
    description: Optional[str] = None
    release_year: Optional[int] = None
    rating: Optional[str] = None
    rental_rate: Decimal
    rental_count: int

    model_config = ConfigDict(from_attributes=True)


class FilmDetail(FilmSummary):
    rental_duration: Optional[int] = None
    length: Optional[int] = None
    replacement_cost: Optional[Decimal] = None
    special_features: Optional[str] = None
    language: Optional[str] = None
    categories: Optional[str] = None  # "Action, Comedy"
    actors: Optional[str] = None  # "PENELOPE GUINESS, NICK WAHLBERG"
    total_copies: int
    currently_rented: int


class InventoryCopy(BaseModel):
    inventory_id: int
    store_id: int
    available: bool


class FilmInventoryResponse(BaseModel):
    film_id: int
    title: str
    inventory: List[InventoryCopy]
    total_copies: int
    available_copies: int


# =========================
# ACTOR
# =========================
class ActorSummary(BaseModel):
    actor_id: int
    first_name: str
    last_name: str
    film_count: int


class ActorStats(BaseModel):
    actor_id: int
    first_name: str
    last_name: str
    total_films: int
    total_rentals: int


class ActorDetailResponse(BaseModel):
    actor: ActorStats
    topFilms: List[FilmSummary]


# =========================
# CUSTOMER
# =========================
class CustomerSimple(BaseModel):
    customer_id: int
    first_name: str
    last_name: str
    email: Optional[str] = None

    model_config = ConfigDict(from_attributes=True)


class CustomerCreate(BaseModel):
    store_id: int
    first_name: str = Field(min_length=1, max_length=45)
    last_name: str = Field(min_length=1, max_length=45)
    email: EmailStr
    address_id: Optional[int] = None


class CustomerUpdate(BaseModel):
    store_id: Optional[int] = None
    first_name: Optional[str] = Field(default=None, min_length=1, max_length=45)
    last_name: Optional[str] = Field(default=None, min_length=1, max_length=45)
    email: Optional[EmailStr] = None
    address_id: Optional[int] = None


class CustomerRow(BaseModel):
    customer_id: int
    store_id: int
    first_name: str
    last_name: str
    email: Optional[str] = None
    active: bool
    create_date: Optional[datetime] = None
    active_rentals: int


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    totalPages: int


class CustomerListResponse(BaseModel):
    customers: List[CustomerRow]
    pagination: Pagination


class CustomerDetail(BaseModel):
    customer_id: int
    store_id: int
    first_name: str
    last_name: str
    email: Optional[str] = None
    address_id: int
    active: bool
    create_date: Optional[datetime] = None
    last_update: Optional[datetime] = None
    total_rentals: int
    active_rentals: int
    last_rental_date: Optional[datetime] = None


class CustomerMutationResponse(BaseModel):
    message: str
    customer_id: int


# =========================
# RENTAL
# =========================
class RentalCreate(BaseModel):
    inventory_id: int
    customer_id: int
    staff_id: Optional[int] = None


class RentalCreateResponse(BaseModel):
    message: str
    rental_id: int


class RentalReturnResponse(RentalCreateResponse):
    return_date: datetime


class CustomerRental(BaseModel):
    rental_id: int
    rental_date: datetime
    return_date: Optional[datetime] = None
    inventory_id: int
    film_id: int
    title: str
    rental_rate: Decimal
    status: str  # "Rented" / "Returned"
