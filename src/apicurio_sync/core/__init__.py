"""Registry transport shared by the provider and the CLI.

``client`` is imported lazily by callers (``from apicurio_sync.core.client
import RegistryClient``) because it depends on the context models, which in
turn use ``run_sync`` from this package.
"""

from .async_utils import run_sync

__all__ = ["run_sync"]
