"""initial schema

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 12:00:00
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "20261019_0001"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    user_role_enum = sa.Enum("OWNER", "EMPLOYEE", name="userrole")
    plan_enum = sa.Enum("TRIAL", "BASIC", "INTERMEDIATE", "PREMIUM", "CUSTOM", name="subscriptionplan")
    product_form_enum = sa.Enum("sealed", "prepared", "both", name="product_form")
    movement_type_enum = sa.Enum("venta", "uso", "compra", "ajuste", name="movement_type")
    movement_unit_enum = sa.Enum("sealed", "portion", name="movement_unit")
    sale_item_unit_enum = sa.Enum("sealed", "portion", name="sale_item_unit")
    client_kind_enum = sa.Enum("REGULAR", "WHOLESALE", "OCCASIONAL", name="clientkind")

    # Each enum type is emitted by the create_table that first uses it.
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("role", user_role_enum, nullable=False),
        sa.Column("owner_id", sa.Integer(), nullable=True),
        sa.Column("club_id", sa.Integer(), nullable=True),
        sa.Column("plan", plan_enum, nullable=False),
        sa.Column("extra_clubs", sa.Integer(), nullable=False),
        sa.Column("extra_employees", sa.Integer(), nullable=False),
        sa.Column("ideal_stock", sa.Integer(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_users_id"), "users", ["id"], unique=False)
    op.create_index(op.f("ix_users_email"), "users", ["email"], unique=True)
    op.create_index(op.f("ix_users_role"), "users", ["role"], unique=False)
    op.create_index(op.f("ix_users_owner_id"), "users", ["owner_id"], unique=False)
    op.create_index(op.f("ix_users_club_id"), "users", ["club_id"], unique=False)

    op.create_table(
        "clubs",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("owner_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("address", sa.String(length=255), nullable=True),
        sa.Column("monthly_goal", sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_clubs_id"), "clubs", ["id"], unique=False)
    op.create_index(op.f("ix_clubs_owner_id"), "clubs", ["owner_id"], unique=False)
    op.create_index(op.f("ix_clubs_name"), "clubs", ["name"], unique=False)

    with op.batch_alter_table("users") as batch_op:
        batch_op.create_foreign_key("fk_users_club_id", "clubs", ["club_id"], ["id"], ondelete="SET NULL")

    op.create_table(
        "products",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("club_id", sa.Integer(), nullable=False),
        sa.Column("owner_id", sa.Integer(), nullable=False),
        sa.Column("form", product_form_enum, nullable=False),
        sa.Column("name", sa.String(length=160), nullable=False),
        sa.Column("brand", sa.String(length=120), nullable=True),
        sa.Column("category", sa.String(length=120), nullable=False),
        sa.Column("flavor", sa.String(length=120), nullable=True),
        sa.Column("portions", sa.Integer(), nullable=True),
        sa.Column("portion_size", sa.String(length=40), nullable=True),
        sa.Column("portion_price", sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column("sale_price", sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column("purchase_price", sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column("image_url", sa.Text(), nullable=True),
        sa.Column("archived", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["club_id"], ["clubs.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["owner_id"], ["users.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_products_id"), "products", ["id"], unique=False)
    op.create_index(op.f("ix_products_club_id"), "products", ["club_id"], unique=False)
    op.create_index(op.f("ix_products_owner_id"), "products", ["owner_id"], unique=False)
    op.create_index(op.f("ix_products_name"), "products", ["name"], unique=False)
    op.create_index(op.f("ix_products_archived"), "products", ["archived"], unique=False)

    op.create_table(
        "inventory_records",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("product_id", sa.Integer(), nullable=False),
        sa.Column("club_id", sa.Integer(), nullable=False),
        sa.Column("sealed", sa.Integer(), nullable=False),
        sa.Column("prep_units", sa.Integer(), nullable=False),
        sa.Column("portions_per_unit", sa.Integer(), nullable=False),
        sa.Column("current_portions", sa.Integer(), nullable=False),
        sa.Column("portion_price", sa.Numeric(precision=12, scale=2), nullable=True),
        sa.Column("portion_size", sa.String(length=40), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["club_id"], ["clubs.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("product_id", "club_id", name="uq_inventory_records_product_club"),
    )
    op.create_index(op.f("ix_inventory_records_id"), "inventory_records", ["id"], unique=False)
    op.create_index(op.f("ix_inventory_records_product_id"), "inventory_records", ["product_id"], unique=False)
    op.create_index(op.f("ix_inventory_records_club_id"), "inventory_records", ["club_id"], unique=False)

    op.create_table(
        "movements",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("product_id", sa.Integer(), nullable=False),
        sa.Column("club_id", sa.Integer(), nullable=False),
        sa.Column("type", movement_type_enum, nullable=False),
        sa.Column("unit", movement_unit_enum, nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("description", sa.String(length=255), nullable=True),
        sa.Column("actor_id", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["club_id"], ["clubs.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["actor_id"], ["users.id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_movements_id"), "movements", ["id"], unique=False)
    op.create_index(op.f("ix_movements_product_id"), "movements", ["product_id"], unique=False)
    op.create_index(op.f("ix_movements_club_id"), "movements", ["club_id"], unique=False)
    op.create_index(op.f("ix_movements_actor_id"), "movements", ["actor_id"], unique=False)
    op.create_index(op.f("ix_movements_created_at"), "movements", ["created_at"], unique=False)

    op.create_table(
        "clients",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("club_id", sa.Integer(), nullable=False),
        sa.Column("name", sa.String(length=160), nullable=False),
        sa.Column("email", sa.String(length=320), nullable=True),
        sa.Column("phone", sa.String(length=40), nullable=True),
        sa.Column("kind", client_kind_enum, nullable=False),
        sa.Column("total_spent", sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column("visit_count", sa.Integer(), nullable=False),
        sa.Column("last_purchase_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["club_id"], ["clubs.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_clients_id"), "clients", ["id"], unique=False)
    op.create_index(op.f("ix_clients_club_id"), "clients", ["club_id"], unique=False)

    op.create_table(
        "sales",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("club_id", sa.Integer(), nullable=False),
        sa.Column("employee_id", sa.Integer(), nullable=True),
        sa.Column("client_id", sa.Integer(), nullable=True),
        sa.Column("total", sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["club_id"], ["clubs.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["employee_id"], ["users.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["client_id"], ["clients.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_sales_id"), "sales", ["id"], unique=False)
    op.create_index(op.f("ix_sales_club_id"), "sales", ["club_id"], unique=False)
    op.create_index(op.f("ix_sales_employee_id"), "sales", ["employee_id"], unique=False)
    op.create_index(op.f("ix_sales_client_id"), "sales", ["client_id"], unique=False)
    op.create_index(op.f("ix_sales_created_at"), "sales", ["created_at"], unique=False)

    op.create_table(
        "sale_items",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("sale_id", sa.Integer(), nullable=False),
        sa.Column("group_name", sa.String(length=120), nullable=False),
        sa.Column("product_id", sa.Integer(), nullable=False),
        sa.Column("unit", sale_item_unit_enum, nullable=False),
        sa.Column("quantity", sa.Integer(), nullable=False),
        sa.Column("unit_price", sa.Numeric(precision=12, scale=2), nullable=False),
        sa.Column("line_total", sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column("custom_price", sa.Boolean(), nullable=False),
        sa.ForeignKeyConstraint(["sale_id"], ["sales.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"], ondelete="CASCADE"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_sale_items_id"), "sale_items", ["id"], unique=False)
    op.create_index(op.f("ix_sale_items_sale_id"), "sale_items", ["sale_id"], unique=False)
    op.create_index(op.f("ix_sale_items_product_id"), "sale_items", ["product_id"], unique=False)

    op.create_table(
        "expenses",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("club_id", sa.Integer(), nullable=False),
        sa.Column("product_id", sa.Integer(), nullable=True),
        sa.Column("created_by_user_id", sa.Integer(), nullable=True),
        sa.Column("category", sa.String(length=120), nullable=False),
        sa.Column("amount", sa.Numeric(precision=14, scale=2), nullable=False),
        sa.Column("description", sa.String(length=255), nullable=True),
        sa.Column("incurred_at", sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(["club_id"], ["clubs.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["product_id"], ["products.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["created_by_user_id"], ["users.id"], ondelete="SET NULL"),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_expenses_id"), "expenses", ["id"], unique=False)
    op.create_index(op.f("ix_expenses_club_id"), "expenses", ["club_id"], unique=False)
    op.create_index(op.f("ix_expenses_product_id"), "expenses", ["product_id"], unique=False)
    op.create_index(op.f("ix_expenses_created_by_user_id"), "expenses", ["created_by_user_id"], unique=False)
    op.create_index(op.f("ix_expenses_incurred_at"), "expenses", ["incurred_at"], unique=False)


def downgrade() -> None:
    op.drop_table("expenses")
    op.drop_table("sale_items")
    op.drop_table("sales")
    op.drop_table("clients")
    op.drop_table("movements")
    op.drop_table("inventory_records")
    op.drop_table("products")
    with op.batch_alter_table("users") as batch_op:
        batch_op.drop_constraint("fk_users_club_id", type_="foreignkey")
    op.drop_table("clubs")
    op.drop_table("users")

    bind = op.get_bind()
    for name in (
        "clientkind",
        "sale_item_unit",
        "movement_unit",
        "movement_type",
        "product_form",
        "subscriptionplan",
        "userrole",
    ):
        sa.Enum(name=name).drop(bind, checkfirst=True)
