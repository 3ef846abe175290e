"""Royalty Ledger - Main Application."""

from fastapi import FastAPI

from royalty_ledger.api.routes import ledger, payouts, reports
from royalty_ledger.core.config import settings
from royalty_ledger.core.database import Base, engine
from royalty_ledger.core.logging import setup_logging

# Configure logging before anything else
logger = setup_logging(settings.log_level)

# Create all tables on startup
logger.info("Creating database tables...")
Base.metadata.create_all(bind=engine)
logger.info("Database tables ready")

# -- OpenAPI tag metadata for Swagger grouping --
tags_metadata = [
    {
        "name": "Health",
        "description": "Service health and readiness checks.",
    },
    {
        "name": "Ledger",
        "description": (
            "Ingest per-platform royalty reports into (user, song, period) "
            "ledger records, release cleared earnings, manage collaborator "
            "splits and tax withholding, and read record notifications."
        ),
    },
    {
        "name": "Payouts",
        "description": (
            "Request payouts against available balances, report processing "
            "outcomes, correlate provider callbacks by transaction id, and "
            "dispatch payouts to payment gateways in the background."
        ),
    },
    {
        "name": "Reports",
        "description": (
            "Monthly earnings summaries, earnings and payout history, "
            "analytics by month or year, and per-song earnings."
        ),
    },
]


app = FastAPI(
    title="Royalty Ledger",
    description=(
        "## Earnings Ledger and Payout API\n\n"
        "Tracks what each artist earned per song and month across streaming "
        "platforms, and moves that money through the payout lifecycle.\n\n"
        "### Balance buckets\n"
        "| Bucket | Meaning |\n"
        "|--------|---------|\n"
        "| **pending** | Not yet cleared by the platform, or reserved by an open payout |\n"
        "| **available** | Cleared and free to withdraw |\n"
        "| **withdrawn** | Paid out by a completed payout |\n\n"
        "### Payout lifecycle\n"
        "`pending` -> `processing` -> `completed` | `failed`. Completed and "
        "failed payouts are final; a failed payout returns its funds to "
        "the available balance.\n\n"
        "### Quick Start\n"
        "```bash\n"
        "# 1. Ingest a platform report\n"
        'curl -X POST /api/v1/ledger/ingest -H "Content-Type: application/json" '
        '-d \'{"user_id":"u1","song_id":"s1","period":"2024-03",'
        '"platform_name":"Spotify","plays_delta":1000,"revenue_delta":"50.00"}\'\n\n'
        "# 2. Release cleared earnings\n"
        "curl -X POST /api/v1/ledger/records/{id}/release -d '{}'\n\n"
        "# 3. Request a payout\n"
        'curl -X POST /api/v1/payouts/records/{id} -d \'{"amount":"50.00","method":"paypal"}\'\n'
        "```\n"
    ),
    version="1.0.0",
    openapi_tags=tags_metadata,
    license_info={
        "name": "MIT",
    },
    docs_url="/docs",
    redoc_url="/redoc",
)

app.include_router(ledger.router, prefix="/api/v1/ledger", tags=["Ledger"])
app.include_router(payouts.router, prefix="/api/v1/payouts", tags=["Payouts"])
app.include_router(reports.router, prefix="/api/v1/reports", tags=["Reports"])

logger.info("Royalty Ledger API ready - routes registered")


@app.get("/health", tags=["Health"])
def health_check():
    """Health check endpoint.

    Returns a simple JSON object confirming the service is running.
    Useful for load balancers and monitoring systems.
    """
    return {"status": "healthy", "service": "royalty-ledger"}
