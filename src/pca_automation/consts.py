"""Paths and identifiers used on the remote Proxmox host."""
from __future__ import annotations

HOST_HOME_DIR = "/root"
HOST_WORKING_DIR = f"{HOST_HOME_DIR}/_pca_working"
HOST_IMAGES_DIR = f"{HOST_WORKING_DIR}/images"
HOST_CERTS_DIR = f"{HOST_WORKING_DIR}/certs"
HOST_TEMP_DIR = f"{HOST_WORKING_DIR}/tmp"
HOST_SSH_KEYS_DIR = f"{HOST_HOME_DIR}/.ssh"

CLOUD_IMAGE_NAME = "bionic-server-cloudimg-amd64.img"
CLOUD_IMAGE_URL = f"https://cloud-images.ubuntu.com/bionic/current/{CLOUD_IMAGE_NAME}"
TEMPLATE_KEY_NAME = "id_rsa_template"

BASELINE_TEMPLATE_ID = 1000
K8S_TEMPLATE_ID = 1001
DEVELOPER_TEMPLATE_ID = 1002

K8S_MASTER_ID = 401
K8S_NODE_COUNT = 3
K8S_MASTER_IP = "10.0.0.64"

PRIVATE_NETWORK_BRIDGE = "vmbr300"
PUBLIC_NETWORK_BRIDGE = "vmbr0"
PRIVATE_GATEWAY_IP = "10.0.0.1"
NAMESERVER_IP = "8.8.8.8"
