from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from schoolfees.api.v1.fee_schedules.router import router as fee_schedules_router
from schoolfees.api.v1.fees.router import router as fees_router
from schoolfees.api.v1.mpesa.router import router as mpesa_router
from schoolfees.api.v1.vote_heads.router import router as vote_heads_router
from schoolfees.core.config import settings
from schoolfees.core.logging import setup_logging


def create_app() -> FastAPI:
    setup_logging(settings.log_level)

    app = FastAPI(title="School Fees Backend")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/health")
    async def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Routers
    app.include_router(vote_heads_router)
    app.include_router(fee_schedules_router)
    app.include_router(fees_router)
    app.include_router(mpesa_router)

    return app


app = create_app()
