"""
hostdeploy Constants

Centralized constants for magic values, defaults, and configuration.
"""

# Default SSH Configuration
DEFAULT_SSH_KEY_PATH = "~/.ssh/id_rsa"
DEFAULT_SSH_PORT = 22
SSH_CONNECTION_TIMEOUT = 10
SSH_COMMAND_TIMEOUT = 1800
SSH_CONNECTIVITY_EXIT_CODE = 255

# Host key policies -> StrictHostKeyChecking values
HOST_KEY_POLICIES = {
    "strict": "yes",
    "accept-new": "accept-new",
    "off": "no",
}
DEFAULT_HOST_KEY_POLICY = "strict"

# Remote login names: POSIX portable, never starting with '-'
REMOTE_USER_PATTERN = r"^[A-Za-z_][A-Za-z0-9_.-]{0,31}\$?$"

# Project names double as container, image and nginx site file names
PROJECT_NAME_PATTERN = r"^[A-Za-z0-9][A-Za-z0-9_.-]*$"

# Default Git Configuration
DEFAULT_BRANCH = "main"

# Default Deployment Configuration
DEFAULT_REMOTE_BASE_DIR = "~"
DEFAULT_COMPOSE_COMMAND = "docker-compose"
DEFAULT_GRACE_PERIOD = 5.0
DEFAULT_EXTERNAL_PROBE_DELAY = 3.0
DEFAULT_PROBE_TIMEOUT = 10.0
DEFAULT_LOG_TAIL_LINES = 50

# Build descriptors, in detection order
SINGLE_CONTAINER_DESCRIPTORS = ["Dockerfile"]
MULTI_SERVICE_DESCRIPTORS = [
    "docker-compose.yml",
    "docker-compose.yaml",
    "compose.yml",
    "compose.yaml",
]

# Remote packages
BASELINE_PACKAGES = ["curl", "wget", "git", "nginx"]
DOCKER_INSTALL_URL = "https://get.docker.com"
COMPOSE_RELEASE_URL = (
    "https://github.com/docker/compose/releases/latest/download/"
    "docker-compose-$(uname -s)-$(uname -m)"
)
COMPOSE_INSTALL_PATH = "/usr/local/bin/docker-compose"
MANAGED_SERVICES = ["docker", "nginx"]

# Nginx Configuration
NGINX_SITES_AVAILABLE = "/etc/nginx/sites-available"
NGINX_SITES_ENABLED = "/etc/nginx/sites-enabled"
NGINX_DEFAULT_SITE = "default"
NGINX_PUBLIC_PORT = 80
NGINX_SERVER_NAME = "_"
NGINX_TEMPLATE = "nginx_site.conf.j2"
# Exit status of the activation script when `nginx -t` rejects the config
NGINX_SYNTAX_EXIT_CODE = 3

# Log Configuration
DEFAULT_LOGS_DIR = "logs"
LOG_DATE_FORMAT = "%Y-%m-%d"
LOG_TIME_FORMAT = "%H-%M-%S"
LOG_DATETIME_FORMAT = "%Y-%m-%d %H:%M:%S"
REDACTED = "********"

# Config file
DEFAULT_CONFIG_FILE = "hostdeploy.yml"
ENV_PREFIX = "HOSTDEPLOY_"
ENV_ACCESS_TOKEN = "HOSTDEPLOY_ACCESS_TOKEN"

# Pipeline stages, in execution order
STAGES = ["validate", "connect", "provision", "fetch", "deploy", "proxy", "verify"]

# Success Messages
SUCCESS_DEPLOYED = "Deployment completed successfully"
