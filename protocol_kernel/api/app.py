"""
Protocol Kernel API — FastAPI endpoints.

Exposes the orchestrator via a REST API for:
- Health and metrics
- Enhancement and recommendation ledgers
- Operation execution
- Configuration
- Learning and healing inspection
"""

from typing import Optional

from fastapi import FastAPI, HTTPException

from protocol_kernel.api.controller import ApiRequest, ProtocolApiController
from protocol_kernel.models.config import ProtocolConfig
from protocol_kernel.orchestrator.protocol import ProtocolOrchestrator


# --- Application Factory ---

def create_app(
    orchestrator: Optional[ProtocolOrchestrator] = None,
    controller: Optional[ProtocolApiController] = None,
) -> FastAPI:
    """Create and configure the FastAPI application."""

    app = FastAPI(
        title="Protocol Kernel API",
        description="Enhancement, self-healing and self-learning execution pipeline",
        version="1.0.0",
    )

    po = orchestrator or ProtocolOrchestrator()
    api = controller or ProtocolApiController(po)

    # Store components on app state for access in endpoints
    app.state.orchestrator = po
    app.state.controller = api

    # === HEALTH & METRICS ===

    @app.get("/health")
    async def health_check():
        """Current health check."""
        return (await api.health_check()).model_dump(mode="json")

    @app.get("/metrics")
    async def get_metrics():
        """Aggregate system metrics."""
        return (await api.get_metrics()).model_dump(mode="json")

    # === LEDGERS ===

    @app.get("/enhancements")
    async def get_enhancements():
        """All recorded enhancements."""
        return (await api.get_enhancements()).model_dump(mode="json")

    @app.get("/recommendations")
    async def get_recommendations(limit: Optional[int] = None):
        """All recommendations, or the top ``limit`` by estimated impact."""
        return (await api.get_recommendations(limit)).model_dump(mode="json")

    @app.post("/recommendations/{recommendation_id}/implement")
    def implement_recommendation(recommendation_id: str):
        """Mark a recommendation as implemented."""
        if not po.mark_recommendation_implemented(recommendation_id):
            raise HTTPException(404, "Recommendation not found")
        return {"status": "implemented", "recommendation_id": recommendation_id}

    # === OPERATIONS ===

    @app.post("/operations")
    async def execute_operation(req: ApiRequest):
        """Run an operation through the pipeline."""
        return (await api.execute_operation(req)).model_dump(mode="json")

    # === CONFIGURATION ===

    @app.get("/config")
    async def get_config():
        """Current protocol configuration."""
        return (await api.get_config()).model_dump(mode="json")

    @app.put("/config")
    def update_config(config: ProtocolConfig):
        """Replace the protocol configuration."""
        return po.update_config(config).model_dump(mode="json")

    # === LEARNING ===

    @app.get("/learning/patterns")
    def get_patterns():
        """All learned operation patterns."""
        return [p.model_dump(mode="json") for p in po.learning.get_patterns()]

    @app.post("/learning/insights")
    def generate_insights():
        """Run an insight pass and return the new insights."""
        return [i.model_dump(mode="json") for i in po.generate_insights()]

    # === HEALING ===

    @app.get("/healing/history")
    def get_healing_history():
        """Recorded healing attempts and their success rate."""
        return {
            "success_rate": po.healing.success_rate(),
            "attempts": [a.model_dump(mode="json") for a in po.healing.get_history()],
        }

    return app


# Default application instance
app = create_app()
