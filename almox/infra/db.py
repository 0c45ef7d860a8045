# almox/infra/db.py
"""
Conexão com o banco local (SQLite) do almoxarifado.

O arquivo guarda o catálogo de itens e a coleção de movimentos; cada
operação da CLI abre uma conexão curta e grava tudo em uma única transação.
"""

from __future__ import annotations

import sqlite3
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

# Espera (s) por outra escrita em andamento antes de falhar com "database is locked"
BUSY_TIMEOUT_S = 5.0


@contextmanager
def connect(db_path: str) -> Iterator[sqlite3.Connection]:
    """
    Abre o banco em ``db_path`` (criando o diretório, se preciso).

    - linhas como ``sqlite3.Row`` (acesso por nome de coluna)
    - commit ao sair do bloco; rollback e re-raise em caso de exceção

    Obs.: `movimento.item_id` não tem FOREIGN KEY; movimentos órfãos
    (item removido numa reimportação) continuam gravados.
    """
    if db_path != ":memory:":
        Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(db_path, timeout=BUSY_TIMEOUT_S)
    conn.row_factory = sqlite3.Row
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        conn.close()
