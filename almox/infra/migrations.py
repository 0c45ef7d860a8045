# almox/infra/migrations.py
"""
Migrações de schema usando PRAGMA user_version.

V1: tabelas base (item, movimento)
V2: índice por item/data em movimento e coluna de anexo
"""

from __future__ import annotations

from typing import List
from .db import connect


SCHEMA_V1: List[str] = [
    # Catálogo de itens (id = chave natural CLASSIFICACAO__DESCRICAO)
    """
    CREATE TABLE IF NOT EXISTS item (
        id TEXT PRIMARY KEY,
        classificacao TEXT NOT NULL DEFAULT '',
        descricao TEXT NOT NULL,
        qtd_inicial REAL NOT NULL DEFAULT 0,
        preco_unitario REAL NOT NULL DEFAULT 0
    );
    """,
    # Movimentações (entrada/saida). `seq` preserva a ordem de inserção.
    """
    CREATE TABLE IF NOT EXISTS movimento (
        seq INTEGER PRIMARY KEY AUTOINCREMENT,
        id TEXT NOT NULL,
        data TEXT NOT NULL,
        item_id TEXT NOT NULL,
        tipo TEXT NOT NULL CHECK (tipo IN ('entrada', 'saida')),
        quantidade REAL NOT NULL,
        documento TEXT,
        observacoes TEXT,
        sincronizado INTEGER NOT NULL DEFAULT 0
    );
    """,
]


def _ensure_column(conn, table: str, column: str, ddl: str) -> None:
    """Adiciona coluna se não existir."""
    cur = conn.execute(f"PRAGMA table_info({table});")
    cols = [r[1] for r in cur.fetchall()]  # r[1] é o nome da coluna
    if column not in cols:
        conn.execute(f"ALTER TABLE {table} ADD COLUMN {ddl};")


def _apply_v1(conn) -> None:
    for sql in SCHEMA_V1:
        conn.executescript(sql)


def _apply_v2(conn) -> None:
    _ensure_column(conn, "movimento", "anexo", "anexo TEXT")
    conn.execute(
        "CREATE INDEX IF NOT EXISTS ix_movimento_item_data ON movimento (item_id, data);"
    )
    conn.execute("CREATE INDEX IF NOT EXISTS ix_movimento_id ON movimento (id);")


def apply_migrations(db_path: str) -> None:
    """Aplica migrações incrementais de acordo com PRAGMA user_version."""
    with connect(db_path) as conn:
        ver = conn.execute("PRAGMA user_version;").fetchone()[0] or 0

        if ver < 1:
            _apply_v1(conn)
            conn.execute("PRAGMA user_version = 1;")
            ver = 1

        if ver < 2:
            _apply_v2(conn)
            conn.execute("PRAGMA user_version = 2;")
            ver = 2
