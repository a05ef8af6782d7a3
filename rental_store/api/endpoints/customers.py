import logging
from datetime import datetime
from typing import Annotated, List, Optional
from fastapi import APIRouter, HTTPException, Query, status, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import func, or_, select

from rental_store.core import schemas, models
from rental_store.core.config import settings
from rental_store.core.database import get_db

router = APIRouter(tags=["Customers"])

db_dep = Annotated[AsyncSession, Depends(get_db)]


def open_rental_count():
    """Correlated count of the outer customer's unreturned rentals."""
    return (
        select(func.count(models.Rental.rental_id))
        .where(
            models.Rental.customer_id == models.Customer.customer_id,
            models.Rental.return_date.is_(None),
        )
        .scalar_subquery()
    )


async def get_active_customer(customer_id: int, db: AsyncSession) -> models.Customer:
    query = select(models.Customer).where(
        models.Customer.customer_id == customer_id,
        models.Customer.active == True,
    )
    result = await db.execute(query)
    customer = result.scalars().first()

    if not customer:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Customer not found"
        )
    return customer


async def ensure_store_exists(store_id: int, db: AsyncSession):
    query = select(models.Store.store_id).where(models.Store.store_id == store_id)
    result = await db.execute(query)

    if result.scalar_one_or_none() is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Store not found"
        )


async def ensure_email_available(
    email: str, db: AsyncSession, exclude_customer_id: Optional[int] = None
):
    # Emails only have to be unique among active customers
    query = select(models.Customer.customer_id).where(
        func.lower(models.Customer.email) == email.lower(),
        models.Customer.active == True,
    )
    if exclude_customer_id is not None:
        query = query.where(models.Customer.customer_id != exclude_customer_id)

    result = await db.execute(query)
    if result.scalars().first() is not None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="A customer with this email already exists",
        )


# Lightweight list for the rental form drop-down
@router.get("/customers-simple", response_model=List[schemas.CustomerSimple])
async def customers_simple(db: db_dep):
    query = (
        select(models.Customer)
        .where(models.Customer.active == True)
        .order_by(models.Customer.last_name, models.Customer.first_name)
    )
    try:
        result = await db.execute(query)
        return result.scalars().all()
    except Exception as error:
        logging.error(f"Error fetching customers: {error}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch customers",
        )


# Paginated customer list with search
@router.get("/customers", response_model=schemas.CustomerListResponse)
async def list_customers(
    db: db_dep,
    page: Annotated[int, Query(ge=1)] = 1,
    limit: Annotated[int, Query(ge=1, le=100)] = 10,
    search: Optional[str] = None,
    search_type: Annotated[
        schemas.CustomerSearchType, Query(alias="type")
    ] = schemas.CustomerSearchType.NAME,
):
    filters = [models.Customer.active == True]

    search = (search or "").strip()
    if search:
        if search_type == schemas.CustomerSearchType.ID:
            # ASCII digits only, int() rejects "²"
            if not (search.isascii() and search.isdigit()):
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="Customer id search requires a numeric value",
                )
            filters.append(models.Customer.customer_id == int(search))
        elif search_type == schemas.CustomerSearchType.EMAIL:
            filters.append(models.Customer.email.icontains(search, autoescape=True))
        else:
            full_name = models.Customer.first_name + " " + models.Customer.last_name
            filters.append(
                or_(
                    models.Customer.first_name.icontains(search, autoescape=True),
                    models.Customer.last_name.icontains(search, autoescape=True),
                    full_name.icontains(search, autoescape=True),
                )
            )

    count_query = select(func.count()).select_from(models.Customer).where(*filters)
    page_query = (
        select(
            models.Customer.customer_id,
            models.Customer.store_id,
            models.Customer.first_name,
            models.Customer.last_name,
            models.Customer.email,
            models.Customer.active,
            models.Customer.create_date,
            open_rental_count().label("active_rentals"),
        )
        .where(*filters)
        .order_by(
            models.Customer.last_name,
            models.Customer.first_name,
            models.Customer.customer_id,
        )
        .offset((page - 1) * limit)
        .limit(limit)
    )

    try:
        total = (await db.execute(count_query)).scalar_one()
        rows = (await db.execute(page_query)).all()
    except Exception as error:
        logging.error(f"Error fetching customer page {page}: {error}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch customers",
        )

    return {
        "customers": [dict(row._mapping) for row in rows],
        "pagination": {
            "page": page,
            "limit": limit,
            "total": total,
            "totalPages": (total + limit - 1) // limit,
        },
    }


# Add customer
@router.post("/customers", response_model=schemas.CustomerMutationResponse)
async def create_customer(customer: schemas.CustomerCreate, db: db_dep):
    try:
        await ensure_store_exists(customer.store_id, db)
        await ensure_email_available(customer.email, db)
    except HTTPException:
        raise
    except Exception as error:
        logging.error(f"Failed to validate new customer: {error}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create customer",
        )

    try:
        new_customer = models.Customer(
            store_id=customer.store_id,
            first_name=customer.first_name,
            last_name=customer.last_name,
            email=customer.email,
            address_id=customer.address_id or settings.DEFAULT_ADDRESS_ID,
            active=True,
            create_date=datetime.now().replace(microsecond=0),
        )
        db.add(new_customer)
        await db.commit()
        await db.refresh(new_customer)
    except Exception as error:
        await db.rollback()
        logging.error(f"Failed to add a new customer: {error}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create customer",
        )

    logging.info(f"Created customer {new_customer.customer_id}")
    return {
        "message": "Customer created successfully",
        "customer_id": new_customer.customer_id,
    }


# Update customer details
@router.put("/customers/{customer_id}", response_model=schemas.CustomerMutationResponse)
async def update_customer(
    customer_id: int, changes: schemas.CustomerUpdate, db: db_dep
):
    try:
        customer = await get_active_customer(customer_id, db)

        # Only the fields the client actually sent
        customer_dict = changes.model_dump(exclude_unset=True, exclude_none=True)
        if not customer_dict:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST, detail="No fields to update"
            )

        if "store_id" in customer_dict:
            await ensure_store_exists(customer_dict["store_id"], db)
        if "email" in customer_dict:
            await ensure_email_available(
                customer_dict["email"], db, exclude_customer_id=customer_id
            )
    except HTTPException:
        raise
    except Exception as error:
        logging.error(f"Failed to validate update of customer {customer_id}: {error}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update customer",
        )

    for key, value in customer_dict.items():
        setattr(customer, key, value)

    try:
        await db.commit()
    except Exception as error:
        await db.rollback()
        logging.error(f"Failed to update customer {customer_id}: {error}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update customer",
        )

    return {"message": "Customer updated successfully", "customer_id": customer_id}


# Soft delete customer
@router.delete(
    "/customers/{customer_id}", response_model=schemas.CustomerMutationResponse
)
async def delete_customer(customer_id: int, db: db_dep):
    try:
        customer = await get_active_customer(customer_id, db)

        query = select(func.count(models.Rental.rental_id)).where(
            models.Rental.customer_id == customer_id,
            models.Rental.return_date.is_(None),
        )
        result = await db.execute(query)
        open_rentals = result.scalar_one()
    except HTTPException:
        raise
    except Exception as error:
        logging.error(f"Failed to check rentals of customer {customer_id}: {error}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete customer",
        )

    if open_rentals > 0:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Cannot delete customer with active rentals",
        )

    try:
        customer.active = False
        await db.commit()
    except Exception as error:
        await db.rollback()
        logging.error(f"Failed to delete customer {customer_id}: {error}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to delete customer",
        )

    logging.info(f"Deactivated customer {customer_id}")
    return {"message": "Customer deleted successfully", "customer_id": customer_id}


# Customer profile with rental totals
@router.get("/customers/{customer_id}/details", response_model=schemas.CustomerDetail)
async def customer_details(customer_id: int, db: db_dep):
    total_rentals = (
        select(func.count(models.Rental.rental_id))
        .where(models.Rental.customer_id == models.Customer.customer_id)
        .scalar_subquery()
    )
    last_rental_date = (
        select(func.max(models.Rental.rental_date))
        .where(models.Rental.customer_id == models.Customer.customer_id)
        .scalar_subquery()
    )
    query = select(
        models.Customer.customer_id,
        models.Customer.store_id,
        models.Customer.first_name,
        models.Customer.last_name,
        models.Customer.email,
        models.Customer.address_id,
        models.Customer.active,
        models.Customer.create_date,
        models.Customer.last_update,
        total_rentals.label("total_rentals"),
        open_rental_count().label("active_rentals"),
        last_rental_date.label("last_rental_date"),
    ).where(models.Customer.customer_id == customer_id)

    try:
        result = await db.execute(query)
        row = result.first()
    except Exception as error:
        logging.error(f"Error fetching customer {customer_id}: {error}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch customer details",
        )

    if row is None:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Customer not found"
        )
    return dict(row._mapping)


# Rental history, newest first
@router.get(
    "/customers/{customer_id}/rentals", response_model=List[schemas.CustomerRental]
)
async def customer_rentals(customer_id: int, db: db_dep):
    try:
        customer = await db.get(models.Customer, customer_id)
    except Exception as error:
        logging.error(f"Error fetching customer {customer_id}: {error}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch customer rentals",
        )

    if not customer:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Customer not found"
        )

    query = (
        select(
            models.Rental.rental_id,
            models.Rental.rental_date,
            models.Rental.return_date,
            models.Rental.inventory_id,
            models.Film.film_id,
            models.Film.title,
            models.Film.rental_rate,
        )
        .join(
            models.Inventory,
            models.Rental.inventory_id == models.Inventory.inventory_id,
        )
        .join(models.Film, models.Inventory.film_id == models.Film.film_id)
        .where(models.Rental.customer_id == customer_id)
        .order_by(models.Rental.rental_date.desc(), models.Rental.rental_id.desc())
    )

    try:
        result = await db.execute(query)
        rows = result.all()
    except Exception as error:
        logging.error(f"Error fetching rentals of customer {customer_id}: {error}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch customer rentals",
        )

    rentals = []
    for row in rows:
        rental = dict(row._mapping)
        rental["status"] = "Rented" if rental["return_date"] is None else "Returned"
        rentals.append(rental)
    return rentals
