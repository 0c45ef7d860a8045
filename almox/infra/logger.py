# almox/infra/logger.py
"""
Sistema de logging para operações do almoxarifado.

Este módulo configura e fornece loggers para registrar as operações
críticas do sistema: movimentações, sincronização com a planilha remota,
operações no banco de dados e eventos gerais.
"""

import logging
import os
from datetime import datetime
from pathlib import Path
from typing import Dict, Any, Optional


# Flag global para habilitar/desabilitar logging
ENABLE_LOGGING = os.environ.get("ALMOX_LOGGING", "0") == "1"

# Configuração base dos loggers
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'


def setup_logger(name: str, log_file: str, level: int = logging.INFO) -> logging.Logger:
    """
    Configura um logger específico com arquivo de saída.

    Args:
        name: Nome do logger
        log_file: Caminho do arquivo de log
        level: Nível de logging (DEBUG, INFO, WARNING, ERROR, CRITICAL)

    Returns:
        Logger configurado
    """
    log_path = Path(log_file)
    log_path.parent.mkdir(parents=True, exist_ok=True)

    logger = logging.getLogger(name)
    logger.setLevel(level)
    logger.propagate = False

    # Remove handlers existentes (reimportação)
    while logger.handlers:
        logger.removeHandler(logger.handlers[0])

    # delay=True: o arquivo só é criado na primeira gravação
    file_handler = logging.FileHandler(log_file, encoding='utf-8', delay=True)
    file_handler.setLevel(level)
    file_handler.setFormatter(logging.Formatter(LOG_FORMAT, DATE_FORMAT))
    logger.addHandler(file_handler)

    return logger


# Diretório base para logs
LOGS_DIR = Path(os.environ.get("ALMOX_LOGS_DIR", Path(__file__).parent.parent / "logs"))

LOG_FILES = {
    "transactions": LOGS_DIR / "transactions.log",
    "movimentos": LOGS_DIR / "movimentos.log",
    "sync": LOGS_DIR / "sync.log",
    "database": LOGS_DIR / "database.log",
    "system": LOGS_DIR / "system.log",
}

transaction_logger = setup_logger('almox.transactions', str(LOG_FILES["transactions"]))
movimento_logger = setup_logger('almox.movimentos', str(LOG_FILES["movimentos"]))
sync_logger = setup_logger('almox.sync', str(LOG_FILES["sync"]))
database_logger = setup_logger('almox.database', str(LOG_FILES["database"]))
system_logger = setup_logger('almox.system', str(LOG_FILES["system"]))


def _enabled() -> bool:
    return ENABLE_LOGGING


def log_transaction(operation: str, data: Dict[str, Any], result: Optional[Any] = None, error: Optional[str] = None) -> None:
    """
    Registra uma transação completa no log.

    Args:
        operation: Tipo de operação (entrada, saida, sync, importacao...)
        data: Dados da transação
        result: Resultado da operação (opcional)
        error: Mensagem de erro (opcional)
    """
    if not _enabled():
        return
    if error:
        transaction_logger.error(f"TRANSACTION_FAILED: {operation} - {error} - Data: {data}")
    else:
        transaction_logger.info(f"TRANSACTION_SUCCESS: {operation} - Result: {result} - Data: {data}")


def log_movimento(action: str, movement_id: str, item_id: str, quantidade: float, **kwargs) -> None:
    """
    Log específico para movimentações (entrada/saída).

    Args:
        action: Ação realizada (insert, delete, synced)
        movement_id: Id do movimento
        item_id: Chave natural do item
        quantidade: Quantidade movimentada
        **kwargs: Dados adicionais
    """
    if not _enabled():
        return
    log_data = {
        "action": action,
        "movement_id": movement_id,
        "item_id": item_id,
        "quantidade": quantidade,
        **kwargs
    }
    movimento_logger.info(f"MOVIMENTO_{action.upper()}: {log_data}")


def log_sync(stage: str, pending: int = 0, sent: int = 0, level: str = "info", **kwargs) -> None:
    """
    Log específico para a sincronização com a planilha remota.

    Args:
        stage: Etapa (start, noop, sent, failed, marked)
        pending: Movimentos pendentes no início
        sent: Linhas transmitidas
        level: Nível do log (info, warning, error)
    """
    if not _enabled():
        return
    log_data = {"stage": stage, "pending": pending, "sent": sent, **kwargs}
    log_method = getattr(sync_logger, level.lower(), sync_logger.info)
    log_method(f"SYNC_{stage.upper()}: {log_data}")


def log_database_operation(table: str, operation: str, affected_rows: int = 0, **kwargs) -> None:
    """
    Log específico para operações no banco de dados.

    Args:
        table: Nome da tabela
        operation: Operação SQL (INSERT, UPDATE, DELETE, SELECT)
        affected_rows: Número de linhas afetadas
        **kwargs: Dados adicionais
    """
    if not _enabled():
        return
    log_data = {
        "table": table,
        "operation": operation,
        "affected_rows": affected_rows,
        **kwargs
    }
    database_logger.info(f"DB_{operation}: {log_data}")


def log_system_event(event: str, details: Dict[str, Any] = None, level: str = "info") -> None:
    """
    Log para eventos do sistema.

    Args:
        event: Descrição do evento
        details: Detalhes adicionais (opcional)
        level: Nível do log (info, warning, error)
    """
    if not _enabled():
        return
    log_data = {
        "event": event,
        "details": details or {}
    }
    log_method = getattr(system_logger, level.lower(), system_logger.info)
    log_method(f"SYSTEM_EVENT: {event} - {log_data}")


def log_file_operation(operation: str, file_path: str, rows_processed: int = 0, **kwargs) -> None:
    """
    Log para operações de arquivo (importação/exportação).
    """
    if not _enabled():
        return
    log_data = {
        "operation": operation,
        "file_path": file_path,
        "rows_processed": rows_processed,
        "at": datetime.now().isoformat(timespec="seconds"),
        **kwargs
    }
    system_logger.info(f"FILE_{operation.upper()}: {log_data}")


def get_log_summary(log_type: str = "transactions", lines: int = 100) -> Optional[str]:
    """
    Obtém um resumo dos logs recentes.

    Args:
        log_type: Tipo de log (transactions, movimentos, sync, database, system)
        lines: Número de linhas a retornar

    Returns:
        Conteúdo do log como string (None com logging desabilitado)
    """
    if not _enabled():
        return None

    log_file = LOG_FILES.get(log_type)
    if not log_file or not log_file.exists():
        return f"Log {log_type} não encontrado."

    for handler in logging.getLogger(f"almox.{log_type}").handlers:
        handler.flush()

    with open(log_file, 'r', encoding='utf-8') as f:
        all_lines = f.readlines()
    return ''.join(all_lines[-lines:])
