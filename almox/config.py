# almox/config.py
"""
Configurações globais e valores padrão do almoxarifado.
"""

import os
from dataclasses import dataclass


# Caminho padrão do banco de dados SQLite (substitui o armazenamento do navegador)
DB_PATH = os.environ.get("ALMOX_DB", os.path.join(os.getcwd(), "almox.db"))

# URL do WebApp do Google Sheets que recebe as movimentações
SHEETS_WEBAPP_URL = os.environ.get("ALMOX_SHEETS_WEBAPP_URL", "")


@dataclass
class DefaultConfig:
    """Valores padrão para parâmetros do sistema."""
    sync_timeout_s: float = 30.0          # timeout da chamada ao WebApp
    sync_mode: str = "APPEND"             # a planilha remota acrescenta linhas
    inventory_mode: str = "REPLACE"       # snapshot de inventário substitui a aba
    # Marcador usado por versões antigas para o "movimento de cadastro inicial"
    seed_movement_note: str = "Cadastro inicial de item"
    report_title: str = "Relatório de Movimentações de Almoxarifado"


# Instância global dos valores padrão
DEFAULTS = DefaultConfig()
