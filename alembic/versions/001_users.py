"""
============================================================
TARJETA CRC (Class / Responsibilities / Collaborators)
============================================================
Class: 001_users (Alembic Migration)

Responsibilities:
  - Crear la tabla `users` (migración fundacional).
  - Definir constraints de unicidad (username, lower(email)) e índices de filtros.

Collaborators:
  - PostgreSQL 14+
  - infrastructure/repositories/postgres/user.py (usa este esquema como contrato)

Policy:
  - Migración BASELINE. Downgrade elimina la tabla.
  - Convención de nombres:
      pk_<tabla>           - Primary keys
      uq_<tabla>_<col>     - Unique constraints / indexes
      ix_<tabla>_<col>     - Indexes
  - El repositorio detecta el campo duplicado por nombre de constraint:
    no renombrar uq_users_username / uq_users_email_lower.
============================================================
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op

revision: str = "001_users"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.BigInteger, sa.Identity(always=False), nullable=False),
        sa.Column("username", sa.String(40), nullable=False),
        sa.Column("email", sa.String(255), nullable=False),
        sa.Column("password_hash", sa.Text, nullable=False),
        # status/role como strings (evita acople a enums DB); el check cierra el set.
        sa.Column(
            "status",
            sa.String(20),
            nullable=False,
            server_default=sa.text("'active'"),
        ),
        sa.Column(
            "role",
            sa.String(20),
            nullable=False,
            server_default=sa.text("'member'"),
        ),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.Column(
            "updated_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        ),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.UniqueConstraint("username", name="uq_users_username"),
        sa.CheckConstraint(
            "status IN ('active', 'inactive', 'suspended', 'pending')",
            name="ck_users_status",
        ),
        sa.CheckConstraint("role IN ('admin', 'member')", name="ck_users_role"),
    )

    # Emails únicos sin distinguir mayúsculas.
    op.execute("CREATE UNIQUE INDEX uq_users_email_lower ON users (lower(email))")

    op.create_index("ix_users_status", "users", ["status"])
    op.create_index("ix_users_role", "users", ["role"])


def downgrade() -> None:
    op.drop_table("users")
