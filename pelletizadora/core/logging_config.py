from __future__ import annotations

import logging
import os


FORMAT_LOG = "%(asctime)s level=%(levelname)s logger=%(name)s msg=%(message)s"


def configurer_logging() -> None:
    """Logging commun API + scripts.

    - lignes clé=valeur sur stdout (compatible Docker)
    - niveau configurable via LOG_LEVEL
    - requêtes SQL visibles uniquement si LOG_SQL=1
    """

    level_str = os.getenv("LOG_LEVEL", "INFO").upper().strip()
    level = getattr(logging, level_str, logging.INFO)

    niveau_sql = logging.INFO if os.getenv("LOG_SQL", "0").strip() == "1" else logging.WARNING
    logging.getLogger("sqlalchemy.engine").setLevel(niveau_sql)

    # Évite les doubles handlers si appelé plusieurs fois
    root = logging.getLogger()
    if root.handlers:
        root.setLevel(level)
        return

    logging.basicConfig(level=level, format=FORMAT_LOG)
