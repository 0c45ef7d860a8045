# app.py
"""
Entrypoint da aplicação.

Uso:
  python app.py migrate --db almox.db
  python app.py importar inventario.xlsx
  python app.py saida --item "EPI__LUVA" --qtd 3
  python app.py sync
  python app.py relatorio
"""

from almox.adapters.cli import main

if __name__ == "__main__":
    main()
