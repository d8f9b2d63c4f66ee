"""Fixed layout shared by every compiled interactive app."""

ANALYSIS_CONTAINER_NAME = "analysis"
INPUT_FILES_CONTAINER_NAME = "input-files"
OUTPUT_FILES_CONTAINER_NAME = "output-files"

# Data-movement credentials (secret-backed, read-only)
PORKLOCK_CONFIG_VOLUME_NAME = "porklock-config"
PORKLOCK_CONFIG_SECRET_NAME = "porklock-config"
PORKLOCK_CONFIG_MOUNT_PATH = "/etc/porklock"
PORKLOCK_CONFIG_FILE = "/etc/porklock/irods-config.properties"
PORKLOCK_JAR = "/usr/src/app/porklock-standalone.jar"

# Shared workspace, mounted at the analysis working directory
INPUT_FILES_VOLUME_NAME = "input-files"

EXCLUDES_MOUNT_PATH = "/excludes"
EXCLUDES_FILE_NAME = "excludes-file"
EXCLUDES_VOLUME_NAME = "excludes-file"

INPUT_PATH_LIST_MOUNT_PATH = "/input-paths"
INPUT_PATH_LIST_FILE_NAME = "input-path-list"
INPUT_PATH_LIST_VOLUME_NAME = "input-path-list"

OUTPUT_FILES_PORT_NAME = "tcp-output"
INPUT_FILES_PORT_NAME = "tcp-input"
OUTPUT_FILES_PORT = 60000
INPUT_FILES_PORT = 60001

ANALYSIS_PORT_NAME_PREFIX = "tcp-a-"

STAGER_DROPPED_CAPABILITIES = [
    "SETPCAP",
    "AUDIT_WRITE",
    "KILL",
    "SETGID",
    "SETUID",
    "NET_BIND_SERVICE",
    "SYS_CHROOT",
    "SETFCAP",
    "FSETID",
    "NET_RAW",
    "MKNOD",
]

# The analysis may bind and receive on its own ports
ANALYSIS_DROPPED_CAPABILITIES = [
    cap
    for cap in STAGER_DROPPED_CAPABILITIES
    if cap not in ("NET_BIND_SERVICE", "NET_RAW")
]

# Label names
APP_LABEL = "app"
USERNAME_LABEL = "username"
EXTERNAL_ID_LABEL = "external-id"
