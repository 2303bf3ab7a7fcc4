# seed_data.py
from datetime import datetime, timezone

from sqlmodel import Session, select

from app.database import engine, create_db_and_tables
from app.models.product import Category, Product, PRODUCT_STATUS_INACTIVE
from app.models.user import User
from app.repositories.product_repo import ProductRepository
from app.repositories.user_repo import UserRepository

product_repo = ProductRepository()
user_repo = UserRepository()


def seed():
    print("Creating database and tables...")
    create_db_and_tables()

    with Session(engine) as session:
        existing = session.exec(select(Product)).all()
        if existing:
            print(f"Database already contains {len(existing)} products. Skipping seed.")
            return

        print("Seeding categories...")
        office = product_repo.create_category(session, Category(name="Office", sort=1))
        lifestyle = product_repo.create_category(session, Category(name="Lifestyle", sort=2))

        print("Seeding products...")
        products = [
            Product(
                name="Mechanical Keyboard",
                price=399.0,
                points_required=100,
                stock=50,
                images=["/uploads/products/keyboard.webp"],
                category_id=office.id,
            ),
            Product(
                name="Noise Cancelling Headphones",
                price=1299.0,
                points_required=350,
                stock=1,
                images=["/uploads/products/headphones.webp"],
                category_id=office.id,
            ),
            Product(
                name="Insulated Water Bottle",
                price=89.0,
                points_required=30,
                stock=200,
                category_id=lifestyle.id,
            ),
            Product(
                name="Yoga Mat (discontinued)",
                price=129.0,
                points_required=45,
                stock=20,
                status=PRODUCT_STATUS_INACTIVE,
                category_id=lifestyle.id,
            ),
            Product(
                name="Desk Lamp (removed)",
                price=159.0,
                points_required=60,
                stock=15,
                category_id=office.id,
                deleted_at=datetime.now(timezone.utc),
            ),
        ]
        for product in products:
            product_repo.create(session, product)

        print("Seeding users...")
        seeded_users = 0
        for user in (
            User(username="admin", email="admin@example.com", role="admin"),
            User(
                username="employee",
                email="employee@example.com",
                role="user",
                points_balance=1000,
            ),
        ):
            if user_repo.get_by_username(session, user.username) is None:
                user_repo.create(session, user)
                seeded_users += 1

        print(f"Successfully seeded {len(products)} products and {seeded_users} users!")


if __name__ == "__main__":
    seed()
