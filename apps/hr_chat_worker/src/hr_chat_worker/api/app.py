"""FastAPI app bootstrap for the HR chat worker."""

from __future__ import annotations

import logging
from typing import Annotated, Any

from fastapi import Depends, FastAPI, HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from hr_chat_worker.api.error_handlers import register_error_handlers
from hr_chat_worker.api.routes import push_router, v1_router
from hr_chat_worker.db.session import get_db_session
from hr_chat_worker.repositories.master_data_repository import MasterDataRepository

logger = logging.getLogger(__name__)


def create_app() -> FastAPI:
    """Create the worker app: push ingestion, draft approval and probes."""

    app = FastAPI(
        title="HR Chat Worker",
        version="0.1.0",
    )

    @app.get("/health/live", include_in_schema=False)
    def health_live() -> dict[str, str]:
        return {"status": "alive"}

    @app.get("/health/ready", include_in_schema=False)
    def health_ready(
        db_session: Annotated[Session, Depends(get_db_session)],
    ) -> dict[str, Any]:
        """Ready once the store answers; reports the loaded salary master data.

        An empty pitch table does not fail the probe, but discretionary
        salary messages will produce no drafts until it is loaded.
        """
        try:
            master = MasterDataRepository(db_session).load_active()
        except SQLAlchemyError as exc:
            logger.warning("readiness_store_unavailable", extra={"error": str(exc)})
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Database is unavailable",
            ) from exc
        return {
            "status": "ready",
            "pitch_entries": len(master.pitch_table),
            "allowance_entries": len(master.allowance_master),
        }

    register_error_handlers(app)
    app.include_router(push_router)
    app.include_router(v1_router)
    return app


app = create_app()
