from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine
from sqlalchemy.orm import sessionmaker, declarative_base
from sqlalchemy.pool import NullPool
from app.core.config import settings

DATABASE_URL = settings.DATABASE_URL

if DATABASE_URL.startswith("sqlite"):
    # SQLite connections are cheap and must not be shared across event loops
    engine = create_async_engine(
        DATABASE_URL,
        echo=settings.DB_ECHO,
        future=True,
        poolclass=NullPool,
    )
else:
    engine = create_async_engine(
        DATABASE_URL,
        echo=settings.DB_ECHO,
        future=True,
        pool_size=20,
        max_overflow=30,
        pool_timeout=30,
        pool_pre_ping=True,  # Enable connection health checks
        pool_recycle=1800,  # Recycle connections after 30 minutes
    )

# Regular session factory for request handlers
SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False  # Prevent expired object issues
)

Base = declarative_base()

async def get_db():
    async with SessionLocal() as session:
        try:
            yield session
        finally:
            await session.close()
