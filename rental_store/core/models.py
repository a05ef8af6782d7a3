from sqlalchemy import (
    Column,
    ForeignKey,
    Integer,
    String,
    Numeric,
    Boolean,
    DateTime,
    TIMESTAMP,
    Text,
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from rental_store.core.database import Base


def last_update_column():
    return Column(
        TIMESTAMP,
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )


# =========================
# Language
# =========================
class Language(Base):
    __tablename__ = "language"

    language_id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(20), nullable=False)
    last_update = last_update_column()

    films = relationship("Film", back_populates="language")


# =========================
# Film
# =========================
class Film(Base):
    __tablename__ = "film"

    film_id = Column(Integer, primary_key=True, autoincrement=True)

    title = Column(String(128), nullable=False, index=True)
    description = Column(Text)
    release_year = Column(Integer)

    language_id = Column(
        Integer,
        ForeignKey("language.language_id"),
        nullable=False,
        index=True,
    )

    rental_duration = Column(Integer, nullable=False, server_default="3")
    rental_rate = Column(Numeric(4, 2), nullable=False, server_default="4.99")
    length = Column(Integer)
    replacement_cost = Column(Numeric(5, 2), nullable=False, server_default="19.99")
    rating = Column(String(10), server_default="G")  # G/PG/PG-13/R/NC-17
    special_features = Column(String(255))  # "Trailers,Deleted Scenes"

    last_update = last_update_column()

    # Relationships
    language = relationship("Language", back_populates="films")
    inventory = relationship("Inventory", back_populates="film")


# =========================
# Actor / Category and their join tables
# =========================
class Actor(Base):
    __tablename__ = "actor"

    actor_id = Column(Integer, primary_key=True, autoincrement=True)
    first_name = Column(String(45), nullable=False)
    last_name = Column(String(45), nullable=False, index=True)
    last_update = last_update_column()


class Category(Base):
    __tablename__ = "category"

    category_id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(25), nullable=False)
    last_update = last_update_column()


class FilmActor(Base):
    __tablename__ = "film_actor"

    actor_id = Column(Integer, ForeignKey("actor.actor_id"), primary_key=True)
    film_id = Column(Integer, ForeignKey("film.film_id"), primary_key=True)
    last_update = last_update_column()


class FilmCategory(Base):
    __tablename__ = "film_category"

    film_id = Column(Integer, ForeignKey("film.film_id"), primary_key=True)
    category_id = Column(
        Integer, ForeignKey("category.category_id"), primary_key=True
    )
    last_update = last_update_column()


# =========================
# Store / Inventory
# =========================
class Store(Base):
    __tablename__ = "store"

    store_id = Column(Integer, primary_key=True, autoincrement=True)
    manager_staff_id = Column(Integer, nullable=False)
    address_id = Column(Integer, nullable=False)
    last_update = last_update_column()

    inventory = relationship("Inventory", back_populates="store")


class Inventory(Base):
    """
    One rentable copy of a film sitting in a store.
    """

    __tablename__ = "inventory"

    inventory_id = Column(Integer, primary_key=True, autoincrement=True)

    film_id = Column(Integer, ForeignKey("film.film_id"), nullable=False, index=True)
    store_id = Column(
        Integer, ForeignKey("store.store_id"), nullable=False, index=True
    )

    last_update = last_update_column()

    # Relationships
    film = relationship("Film", back_populates="inventory")
    store = relationship("Store", back_populates="inventory")
    rentals = relationship("Rental", back_populates="inventory")


# =========================
# Customer
# =========================
class Customer(Base):
    __tablename__ = "customer"

    customer_id = Column(Integer, primary_key=True, autoincrement=True)

    store_id = Column(
        Integer, ForeignKey("store.store_id"), nullable=False, index=True
    )
    first_name = Column(String(45), nullable=False)
    last_name = Column(String(45), nullable=False, index=True)
    email = Column(String(50))
    address_id = Column(Integer, nullable=False)

    # Soft delete flag, deleted customers stay in the table with active = 0
    active = Column(Boolean, nullable=False, default=True)

    create_date = Column(DateTime, nullable=False, server_default=func.now())
    last_update = last_update_column()

    # Relationships
    rentals = relationship("Rental", back_populates="customer")


# =========================
# Rental
# =========================
class Rental(Base):
    """
    A rental is "open" while return_date is NULL.
    """

    __tablename__ = "rental"

    rental_id = Column(Integer, primary_key=True, autoincrement=True)

    rental_date = Column(DateTime, nullable=False)
    inventory_id = Column(
        Integer, ForeignKey("inventory.inventory_id"), nullable=False, index=True
    )
    customer_id = Column(
        Integer, ForeignKey("customer.customer_id"), nullable=False, index=True
    )
    return_date = Column(DateTime)
    staff_id = Column(Integer, nullable=False)

    last_update = last_update_column()

    # Relationships
    inventory = relationship("Inventory", back_populates="rentals")
    customer = relationship("Customer", back_populates="rentals")
