"""
Kubernetes API client handles.

Loads in-cluster configuration when running inside a pod and falls back to a
kubeconfig file otherwise. The API objects are created once per process and
shared; the underlying urllib3 pool is thread-safe, so callers may invoke
them through ``asyncio.to_thread``.
"""

from dataclasses import dataclass
from functools import lru_cache

from kubernetes import client, config

from common.core.config import settings
from common.core.telemetry import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class KubernetesClients:
    core_v1: client.CoreV1Api
    apps_v1: client.AppsV1Api


def load_kubernetes_config() -> None:
    try:
        config.load_incluster_config()
        logger.info("Loaded in-cluster Kubernetes configuration")
    except config.ConfigException:
        config.load_kube_config(config_file=settings.kubeconfig_path)
        logger.info("Loaded Kubernetes configuration from kubeconfig")


@lru_cache(maxsize=1)
def get_kubernetes_clients() -> KubernetesClients:
    load_kubernetes_config()
    return KubernetesClients(core_v1=client.CoreV1Api(), apps_v1=client.AppsV1Api())
