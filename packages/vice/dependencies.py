from common.core.config import settings
from common.providers.kubernetes.client import get_kubernetes_clients
from common.providers.locking.factory import get_lock_provider
from packages.vice.services.admission_service import get_admission_controller
from packages.vice.services.launch_service import LaunchService, get_launch_service
from packages.vice.services.quota_client import get_quota_client
from packages.vice.services.reconciler import Reconciler


def get_reconciler() -> Reconciler:
    clients = get_kubernetes_clients()
    return Reconciler(clients.core_v1, clients.apps_v1, settings.vice_namespace)


def get_vice_launch_service() -> LaunchService:
    """Launch service wired to the process-wide cluster, broker and lock clients."""
    clients = get_kubernetes_clients()
    admission = get_admission_controller(clients.apps_v1, get_quota_client())
    return get_launch_service(admission, get_reconciler(), get_lock_provider())
