import logging
from datetime import datetime
from typing import Annotated
from fastapi import APIRouter, HTTPException, status, Depends
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select

from rental_store.core import schemas, models
from rental_store.core.config import settings
from rental_store.core.database import get_db

router = APIRouter(prefix="/rentals", tags=["Rentals"])

db_dep = Annotated[AsyncSession, Depends(get_db)]


# Rent out one copy
@router.post("", response_model=schemas.RentalCreateResponse)
async def create_rental(rental: schemas.RentalCreate, db: db_dep):
    try:
        inventory = await db.get(models.Inventory, rental.inventory_id)
        if not inventory:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Inventory item not found",
            )

        query = select(models.Customer).where(
            models.Customer.customer_id == rental.customer_id,
            models.Customer.active == True,
        )
        result = await db.execute(query)
        if not result.scalars().first():
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND, detail="Customer not found"
            )

        # A copy can only be out with one customer at a time
        query = select(models.Rental.rental_id).where(
            models.Rental.inventory_id == rental.inventory_id,
            models.Rental.return_date.is_(None),
        )
        result = await db.execute(query)
        if result.scalars().first() is not None:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="This copy is already rented out",
            )
    except HTTPException:
        raise
    except Exception as error:
        logging.error(
            f"Failed to check availability of copy {rental.inventory_id}: {error}"
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create rental",
        )

    try:
        new_rental = models.Rental(
            rental_date=datetime.now().replace(microsecond=0),
            inventory_id=rental.inventory_id,
            customer_id=rental.customer_id,
            staff_id=rental.staff_id or settings.DEFAULT_STAFF_ID,
        )
        db.add(new_rental)
        await db.commit()
        await db.refresh(new_rental)
    except Exception as error:
        await db.rollback()
        logging.error(f"Failed to create rental: {error}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to create rental",
        )

    logging.info(
        f"Rental {new_rental.rental_id} created for customer {rental.customer_id}"
    )
    return {"message": "Rental created successfully", "rental_id": new_rental.rental_id}


# Check a copy back in
@router.put("/{rental_id}/return", response_model=schemas.RentalReturnResponse)
async def return_rental(rental_id: int, db: db_dep):
    try:
        rental = await db.get(models.Rental, rental_id)
    except Exception as error:
        logging.error(f"Error fetching rental {rental_id}: {error}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to return rental",
        )

    if not rental:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND, detail="Rental not found"
        )

    if rental.return_date is not None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Rental has already been returned",
        )

    try:
        rental.return_date = datetime.now().replace(microsecond=0)
        await db.commit()
    except Exception as error:
        await db.rollback()
        logging.error(f"Failed to return rental {rental_id}: {error}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to return rental",
        )

    return {
        "message": "Rental returned successfully",
        "rental_id": rental.rental_id,
        "return_date": rental.return_date,
    }
