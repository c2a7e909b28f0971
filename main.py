"""ClinicDesk - multi-tenant clinic scheduling service."""

import uvicorn

from clinicdesk.config import settings
from clinicdesk.main import app  # noqa: F401  (exposes main:app)


if __name__ == "__main__":
    uvicorn.run(
        "clinicdesk.main:app",
        host="0.0.0.0",
        port=settings.PORT,
        reload=settings.DEBUG,
    )
