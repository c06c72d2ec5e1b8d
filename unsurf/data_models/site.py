"""
unsurf/data_models/site.py

Site: one discovered domain per discovery call.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from unsurf.data_models.ids import generate_id, utc_now


class Site(BaseModel):
    """A scouted site."""
    id: str = Field(default_factory=lambda: generate_id("site"))
    url: str = Field(description="Canonical URL the discovery started from")
    domain: str = Field(description="Hostname extracted from url")
    first_scouted_at: datetime = Field(default_factory=utc_now)
    last_scouted_at: datetime = Field(default_factory=utc_now)
