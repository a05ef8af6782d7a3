from sqlalchemy import text
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.orm import DeclarativeBase
from rental_store.core.config import settings

engine = create_async_engine(settings.DATABASE_URL, echo=settings.SQL_ECHO)

# Talk to the DB through async sessions without refreshes after closed conn to avoid errors in async programming
AsyncSessionLocal = async_sessionmaker(
    bind=engine, class_=AsyncSession, expire_on_commit=False
)


# This is the "Bridge" that gives my routes access to the Sakila database
async def get_db():
    async with AsyncSessionLocal() as session:
        yield session


async def check_connection():
    """Run a trivial query so a bad DATABASE_URL shows up at startup."""
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))


# All the Sakila tables are mapped onto this Base
class Base(DeclarativeBase):
    pass
