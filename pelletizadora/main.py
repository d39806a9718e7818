from __future__ import annotations

from fastapi import FastAPI

from pelletizadora.api.routeur import router
from pelletizadora.api.sante import routeur_sante
from pelletizadora.core.logging_config import configurer_logging


def creer_application() -> FastAPI:
    configurer_logging()

    application = FastAPI(title="Pelletizadora")

    # Routes
    application.include_router(router)

    # Santé
    application.include_router(routeur_sante)

    return application


app = creer_application()
