"""
Script to create and set up a PostgreSQL test database.
Tests default to SQLite; run this and set TEST_DATABASE_URL to test against PostgreSQL.
"""
import asyncio
import asyncpg
import os
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import create_async_engine
from planner.db.session import Base
import planner.db.models  # noqa: F401  registers the tables on Base.metadata

# Database connection parameters - use environment variables if available (for Docker)
DB_USER = os.getenv("POSTGRES_USER", "postgres")
DB_PASSWORD = os.getenv("POSTGRES_PASSWORD", "postgres")
DB_HOST = os.getenv("DB_HOST", "localhost")
DB_PORT = int(os.getenv("DB_PORT", "5432"))
DB_NAME = os.getenv("TEST_DB_NAME", "planner_test")

TEST_DATABASE_URL = f"postgresql+asyncpg://{DB_USER}:{DB_PASSWORD}@{DB_HOST}:{DB_PORT}/{DB_NAME}"


async def create_database():
    """Create the test database if it doesn't exist."""
    try:
        conn = await asyncpg.connect(
            user=DB_USER,
            password=DB_PASSWORD,
            host=DB_HOST,
            port=DB_PORT,
            database='postgres'
        )

        exists = await conn.fetchval(
            "SELECT 1 FROM pg_database WHERE datname = $1",
            DB_NAME
        )

        if not exists:
            await conn.execute(f'CREATE DATABASE {DB_NAME}')
            print(f"Database '{DB_NAME}' created")
        else:
            print(f"Database '{DB_NAME}' already exists")

        await conn.close()

    except (OSError, asyncpg.PostgresError) as e:
        print(f"Error creating database: {e}")
        return False

    return True


async def create_tables():
    """Create all tables in the test database."""
    engine = create_async_engine(TEST_DATABASE_URL, echo=False)
    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        print("Tables created")
    except (OSError, SQLAlchemyError) as e:
        print(f"Error creating tables: {e}")
        return False
    finally:
        await engine.dispose()

    return True


async def main():
    print("Setting up test database...")

    if not await create_database():
        return

    if not await create_tables():
        return

    print()
    print(f"Test database ready: {DB_NAME} on {DB_HOST}:{DB_PORT}")
    print(f"Run tests with: TEST_DATABASE_URL={TEST_DATABASE_URL} pytest")

if __name__ == "__main__":
    asyncio.run(main())
