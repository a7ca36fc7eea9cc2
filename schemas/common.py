"""
schemas/common.py

- Schémas partagés par toute l'application (Pydantic v2)
  1) réponse d'erreur standard: ErrorDetail, ErrorResponse
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, Field, ConfigDict


# =========================================================
# 1) Réponse d'erreur standard
# =========================================================

class ErrorDetail(BaseModel):
    """Code et message d'erreur"""
    code: str = Field(..., description="code d'erreur (ex: INTERNAL_ERROR, NOT_FOUND)")
    message: str = Field(..., description="message lisible")

class ErrorResponse(BaseModel):
    """
    Réponse renvoyée par les gestionnaires globaux (middlewares/error_handler.py)
    """
    success: bool = False
    error: ErrorDetail
    generated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="horodatage de la réponse (UTC)"
    )
    latency_ms: Optional[int] = Field(
        default=None, ge=0, description="durée de traitement (ms), renseignée par TimingMiddleware"
    )

    model_config = ConfigDict(extra="ignore")

