import sys
from pathlib import Path

import pytest

# Ensure project root is on sys.path so `import pawapay` works when running pytest from root.
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from pawapay.transactions.clients.mock_client import MockProviderClient  # noqa: E402
from pawapay.transactions.config import PollingPolicy  # noqa: E402
from pawapay.transactions.metrics import PollerMetrics  # noqa: E402
from pawapay.transactions.orchestrator import TransactionOrchestrator  # noqa: E402


@pytest.fixture
def fast_policy():
    """Default limits with no pause between attempts."""
    return PollingPolicy(max_attempts=30, interval_seconds=0, not_found_grace_attempts=5)


@pytest.fixture
def mock_client():
    return MockProviderClient()


@pytest.fixture
def metrics():
    return PollerMetrics()


@pytest.fixture
def orchestrator(mock_client, fast_policy, metrics):
    """Orchestrator over the in-memory mock provider."""
    return TransactionOrchestrator(mock_client, policy=fast_policy, metrics=metrics)
