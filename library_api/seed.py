"""Sample accounts, categories and books for development databases."""

import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from library_api.models import Book, Category, User, UserRole
from library_api.services.auth import hash_password

logger = logging.getLogger(__name__)

SAMPLE_USERS = [
    ("admin", "admin@library.com", "Admin123!", UserRole.ADMIN),
    ("user", "user@library.com", "User123!", UserRole.USER),
]

SAMPLE_CATEGORIES = [
    ("Fiction", "Fictional stories and novels"),
    ("Non-Fiction", "Factual and educational books"),
    ("Science", "Scientific books and research"),
    ("History", "Historical books and biographies"),
    ("Technology", "Technology and programming books"),
    ("Mystery", "Mystery and thriller novels"),
    ("Romance", "Romance novels"),
    ("Biography", "Biographies and memoirs"),
]

# title, author, isbn, category, description, year, pages, copies
SAMPLE_BOOKS = [
    ("The Great Gatsby", "F. Scott Fitzgerald", "9780743273565", "Fiction",
     "A classic American novel", 1925, 180, 5),
    ("To Kill a Mockingbird", "Harper Lee", "9780061120084", "Fiction",
     "A gripping tale of racial injustice", 1960, 281, 3),
    ("Clean Code", "Robert C. Martin", "9780132350884", "Technology",
     "A handbook of agile software craftsmanship", 2008, 464, 2),
    ("Sapiens", "Yuval Noah Harari", "9780062316097", "Non-Fiction",
     "A brief history of humankind", 2011, 443, 4),
    ("The Catcher in the Rye", "J.D. Salinger", "9780316769174", "Fiction",
     "A controversial coming-of-age story", 1951, 277, 2),
]  # fmt: skip


async def seed_sample_data(db: AsyncSession) -> dict[str, int]:
    """Insert any missing sample rows. Safe to run repeatedly.

    Returns the number of rows created per table.
    """
    created = {"users": 0, "categories": 0, "books": 0}

    for username, email, password, role in SAMPLE_USERS:
        existing = await db.scalar(select(User.id).where(User.email == email))
        if existing is None:
            db.add(
                User(
                    username=username,
                    email=email,
                    password_hash=hash_password(password),
                    role=role,
                )
            )
            created["users"] += 1

    categories: dict[str, Category] = {}
    for name, description in SAMPLE_CATEGORIES:
        category = await db.scalar(select(Category).where(Category.name == name))
        if category is None:
            category = Category(name=name, description=description)
            db.add(category)
            created["categories"] += 1
        categories[name] = category
    await db.flush()

    for title, author, isbn, category_name, description, year, pages, copies in SAMPLE_BOOKS:
        existing = await db.scalar(select(Book.id).where(Book.isbn == isbn))
        if existing is None:
            db.add(
                Book(
                    title=title,
                    author=author,
                    isbn=isbn,
                    category_id=categories[category_name].id,
                    description=description,
                    published_year=year,
                    pages=pages,
                    total_copies=copies,
                    available_copies=copies,
                )
            )
            created["books"] += 1

    await db.commit()
    logger.info(f"Sample data seeded: {created}")
    return created
