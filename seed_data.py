from datetime import date

from app import create_admin_user, create_app, db
from app.models import Customer, Invoice

CUSTOMERS = [
    ("Evil Rabbit", "evil@rabbit.com"),
    ("Delba de Oliveira", "delba@oliveira.com"),
    ("Lee Robinson", "lee@robinson.com"),
    ("Michael Novotny", "michael@novotny.com"),
    ("Amy Burns", "amy@burns.com"),
    ("Balazs Orban", "balazs@orban.com"),
]

# (customer index, amount in cents, status, ISO date)
INVOICES = [
    (0, 15795, "pending", "2022-12-06"),
    (1, 20348, "pending", "2022-11-14"),
    (4, 3040, "paid", "2022-10-29"),
    (3, 44800, "paid", "2023-09-10"),
    (5, 34577, "pending", "2023-08-05"),
    (2, 54246, "pending", "2023-07-16"),
    (0, 666, "pending", "2023-06-27"),
    (3, 32545, "paid", "2023-06-09"),
    (4, 1250, "paid", "2023-06-17"),
    (5, 8546, "paid", "2023-06-07"),
    (1, 500, "paid", "2023-08-19"),
    (5, 8945, "paid", "2023-06-03"),
    (2, 1000, "paid", "2022-06-05"),
]


def seed_initial_data() -> None:
    """Seed the database with an admin user and sample customers and invoices."""
    app = create_app([])
    with app.app_context():
        create_admin_user()
        if Customer.query.count():
            print("Customers already present; skipping sample data.")
            return

        customers = [
            Customer(name=name, email=email)
            for name, email in CUSTOMERS
        ]
        db.session.add_all(customers)
        db.session.flush()
        db.session.add_all(
            Invoice(
                customer_id=customers[index].id,
                amount=amount,
                status=status,
                date=date.fromisoformat(day),
            )
            for index, amount, status, day in INVOICES
        )
        db.session.commit()
        print(f"Seeded {len(CUSTOMERS)} customers and {len(INVOICES)} invoices.")


if __name__ == "__main__":
    seed_initial_data()
