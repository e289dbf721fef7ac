# tests/integration/conftest.py — v9
"""Shared fixtures for integration tests.

Most integration tests run fully in-process: a MockLLMClient stands in
for the provider and the local cache backends use tmp_path. The Redis
backend runs against a testcontainers-managed container and is skipped
when no Docker daemon is reachable.

Container networking:
- Uses DockerContainer directly with bridge network IP + internal port
- Required for devcontainer with docker-outside-of-docker (socket mount)
"""

from __future__ import annotations

import logging
import time
import uuid
from typing import Callable

import pytest

from signalcx.llm.base_client import BaseLLMClient
from signalcx.llm.models import CompletionRequest

logger = logging.getLogger(__name__)


# ── Pytest markers ──────────────────────────────────────────────

def pytest_configure(config):
    config.addinivalue_line("markers", "redis: marks tests requiring Redis container")


# =====================================================================
#  DEVCONTAINER NETWORKING HELPERS
# =====================================================================

def _get_container_bridge_ip(container, max_attempts: int = 10) -> str:
    """Get container bridge network IP with retries."""
    for attempt in range(max_attempts):
        try:
            wrapped = container.get_wrapped_container()
            wrapped.reload()
            networks = wrapped.attrs.get("NetworkSettings", {}).get("Networks", {})
            for net_name, net_info in networks.items():
                ip = net_info.get("IPAddress", "")
                if ip:
                    logger.info(
                        "Container %s IP: %s (network: %s, attempt %d)",
                        wrapped.short_id, ip, net_name, attempt + 1,
                    )
                    return ip
            logger.debug("Container IP empty, attempt %d/%d", attempt + 1, max_attempts)
        except Exception as e:
            logger.debug("Error getting IP (attempt %d): %s", attempt + 1, e)
        time.sleep(0.5)

    raise RuntimeError(
        f"Could not obtain container bridge IP after {max_attempts} attempts"
    )


def _docker_available() -> bool:
    """Check if Docker daemon is reachable."""
    try:
        import docker
        client = docker.from_env()
        client.ping()
        return True
    except Exception:
        return False


# =====================================================================
#  MOCK LLM CLIENT — no Docker required
# =====================================================================

class MockLLMClient(BaseLLMClient):
    """Mock LLM client for integration testing without real LLM services.

    Responses come from, in order: the queue set by ``set_responses``, the
    ``router`` (called with the user prompt), then the default response.
    """

    provider = "mock"

    def __init__(
        self,
        default_response: str = "{}",
        router: Callable[[str], str | None] | None = None,
    ):
        super().__init__(model="mock-model")
        self._default_response = default_response
        self._response_queue: list[str] = []
        self._router = router
        self.calls: list[dict] = []

    def set_responses(self, *responses: str) -> None:
        self._response_queue = list(responses)

    def set_default(self, response: str) -> None:
        self._default_response = response

    async def _send(self, request: CompletionRequest) -> tuple[str, int, int]:
        content = None
        if self._response_queue:
            content = self._response_queue.pop(0)
        elif self._router is not None:
            content = self._router(request.prompt)
        if content is None:
            content = self._default_response
        self.calls.append({"prompt": request.prompt, "system": request.system,
                           "schema": request.schema_name})
        return content, 100, len(content) // 4


@pytest.fixture
def mock_llm():
    return MockLLMClient()


@pytest.fixture
def mock_llm_factory():
    return MockLLMClient


# =====================================================================
#  REDIS CONTAINER — session scope (bridge IP)
# =====================================================================

REDIS_IMAGE = "redis:7-alpine"
REDIS_INTERNAL_PORT = 6379


@pytest.fixture(scope="session")
def redis_container():
    if not _docker_available():
        pytest.skip("Docker not available")

    from testcontainers.core.container import DockerContainer
    from testcontainers.core.waiting_utils import wait_for_logs

    container = DockerContainer(REDIS_IMAGE).with_exposed_ports(REDIS_INTERNAL_PORT)
    container.start()
    wait_for_logs(container, predicate=r"Ready to accept connections", timeout=30)

    ip = _get_container_bridge_ip(container)
    logger.info("Redis ready at %s:%d", ip, REDIS_INTERNAL_PORT)
    yield {"host": ip, "port": REDIS_INTERNAL_PORT}
    container.stop()


@pytest.fixture(scope="session")
def redis_url(redis_container) -> str:
    c = redis_container
    return f"redis://{c['host']}:{c['port']}/0"


@pytest.fixture
def unique_namespace() -> str:
    return f"test_{uuid.uuid4().hex[:8]}"
