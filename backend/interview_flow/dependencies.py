import logging

from interview_flow.ai_reasoning.generator import LLMTextGenerator, TextGenerator
from interview_flow.flow.orchestrator import FlowOrchestrator
from interview_flow.interruption.config import InterruptionConfig
from interview_flow.session.flow_state_store import (
    FlowStateStore,
    LocalFlowStateStore,
    build_flow_state_store,
)

logger = logging.getLogger("interview_flow.dependencies")


class FlowDependencyProvider:
    """Builds the engine's collaborators once per process."""

    def __init__(self):
        self._orchestrator: FlowOrchestrator | None = None

    def create_generator(self) -> TextGenerator:
        return LLMTextGenerator()

    def create_store(self) -> FlowStateStore:
        try:
            store = build_flow_state_store()
            logger.info("Flow state store initialized: %s", store.__class__.__name__)
            return store
        except Exception as exc:
            logger.warning("Flow state store fallback to LocalFlowStateStore due to init error: %s", exc)
            return LocalFlowStateStore()

    def create_interruption_config(self) -> InterruptionConfig:
        return InterruptionConfig()

    def get_orchestrator(self) -> FlowOrchestrator:
        if self._orchestrator is None:
            self._orchestrator = FlowOrchestrator(
                generator=self.create_generator(),
                store=self.create_store(),
            )
        return self._orchestrator


dependency_provider = FlowDependencyProvider()


def get_orchestrator() -> FlowOrchestrator:
    return dependency_provider.get_orchestrator()


def get_interruption_config() -> InterruptionConfig:
    return dependency_provider.create_interruption_config()
