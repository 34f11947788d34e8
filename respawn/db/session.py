from fastapi import Request
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker


def build_engine(db_url: str) -> AsyncEngine:
    return create_async_engine(db_url.replace("psycopg2", "asyncpg"))


def build_session_factory(engine: AsyncEngine) -> sessionmaker:
    return sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)


async def get_db(request: Request):
    async with request.app.state.session_factory() as session:
        yield session
