"""Generate the TLS material and identity secrets the server manager relies on.

The cluster CA is copied from the master to the host, helm and tiller client
certificates are signed with it, and everything is uploaded to the cluster as
secrets. Secrets are applied, so re-running replaces them in place.
"""
from __future__ import annotations

import shlex

from ..config import AutomationConfig
from ..consts import HOST_CERTS_DIR
from ..models import ConnectionInfo, ServerInfo
from ..ssh import CommandExecutor
from ..steps import command_step
from ..workflow import WorkflowStep

TITLE = "Create core secrets required for deploying apps on the cluster"

SECRET_NAMESPACE = "kube-system"
CERTIFICATE_NAMES = ("helm", "tiller")
CERTIFICATE_DAYS = 3650
MASTER_STAGING_DIR = "pca-secrets"

ENSURE_WORKING_DIRECTORIES_COMMANDS = [
    "# ---------- Ensure that working directories exist ----------",
    f"mkdir -p {HOST_CERTS_DIR}",
]

COPY_CA_CERTS_COMMANDS = [
    "# ---------- Create temporary CA cert copies on master ----------",
    "\n".join(
        [
            "ssh k8s-master <<'END_SCRIPT'",
            "set -x",
            "mkdir -p $HOME/certs",
            "sudo cp /etc/kubernetes/pki/ca.crt $HOME/certs/ca.crt",
            "sudo cp /etc/kubernetes/pki/ca.key $HOME/certs/ca.key",
            "sudo chown $(id -u):$(id -g) $HOME/certs/ca.crt $HOME/certs/ca.key",
            "END_SCRIPT",
        ]
    ),
    "# ---------- Copy CA cert from master ----------",
    f"scp 'k8s-master:certs/*' {HOST_CERTS_DIR}/",
    "# ---------- Clean up temporary copy of CA certs on master ----------",
    "ssh k8s-master 'rm -rf $HOME/certs'",
]


def certificate_commands(name: str) -> list[str]:
    key_path = f"{HOST_CERTS_DIR}/{name}.key"
    csr_path = f"{HOST_CERTS_DIR}/{name}.csr"
    crt_path = f"{HOST_CERTS_DIR}/{name}.crt"
    return [
        f"# ---------- Generate {name} certificate signed by the cluster CA ----------",
        f"openssl genrsa -out {key_path} 4096",
        f"openssl req -new -key {key_path} -out {csr_path} -subj '/CN={name}'",
        f"openssl x509 -req -in {csr_path} -CA {HOST_CERTS_DIR}/ca.crt -CAkey {HOST_CERTS_DIR}/ca.key"
        f" -CAcreateserial -out {crt_path} -days {CERTIFICATE_DAYS}",
    ]


GENERATE_CERTIFICATES_COMMANDS = [command for name in CERTIFICATE_NAMES for command in certificate_commands(name)]


def _apply_secret(name: str, *sources: str) -> str:
    args = " ".join(sources)
    return (
        f"kubectl create secret generic {name} --namespace {SECRET_NAMESPACE} {args}"
        " --dry-run=client -o yaml | kubectl apply -f -"
    )


def upload_secrets_commands(server: ServerInfo) -> list[str]:
    staged = [f"{HOST_CERTS_DIR}/ca.crt"]
    for name in CERTIFICATE_NAMES:
        staged.extend([f"{HOST_CERTS_DIR}/{name}.crt", f"{HOST_CERTS_DIR}/{name}.key"])

    identity = [
        f"--from-literal=serverId={shlex.quote(server.server_id)}",
        f"--from-literal=serverKey={shlex.quote(server.server_secret)}",
        f"--from-literal=cloudEndpoint={shlex.quote(server.cloud_endpoint)}",
    ]
    script = "\n".join(
        [
            "ssh k8s-master <<'END_SCRIPT'",
            f"cd {MASTER_STAGING_DIR}",
            _apply_secret(
                "svm-helm-certificate",
                "--from-file=tls.crt=helm.crt",
                "--from-file=tls.key=helm.key",
            ),
            _apply_secret(
                "svm-tiller-certificate",
                "--from-file=tls.crt=tiller.crt",
                "--from-file=tls.key=tiller.key",
            ),
            _apply_secret("svm-helm-ca-certificate", "--from-file=ca.crt=ca.crt"),
            _apply_secret("svm-server-identity", *identity),
            "END_SCRIPT",
        ]
    )
    return [
        "# ---------- Stage certificates on master ----------",
        f"ssh k8s-master 'mkdir -p {MASTER_STAGING_DIR}'",
        f"scp {' '.join(staged)} k8s-master:{MASTER_STAGING_DIR}/",
        "# ---------- Create certificate and identity secrets ----------",
        script,
        "# ---------- Remove staged certificates from master ----------",
        f"ssh k8s-master 'rm -rf {MASTER_STAGING_DIR}'",
    ]


def get_steps(connection: ConnectionInfo, executor: CommandExecutor, config: AutomationConfig) -> list[WorkflowStep]:
    if not isinstance(connection, ServerInfo):
        raise TypeError("Cluster secrets require server identity details (ServerInfo)")
    return [
        command_step(
            "Ensure that working directories exist",
            connection,
            ENSURE_WORKING_DIRECTORIES_COMMANDS,
            "Error ensuring working directories",
            executor,
        ),
        command_step(
            "Copy CA certs from master",
            connection,
            COPY_CA_CERTS_COMMANDS,
            "Error copying CA certs from master",
            executor,
        ),
        command_step(
            "Generate helm and tiller certificates",
            connection,
            GENERATE_CERTIFICATES_COMMANDS,
            "Error generating helm and tiller certificates",
            executor,
        ),
        command_step(
            "Upload secrets to cluster",
            connection,
            upload_secrets_commands(connection),
            "Error uploading secrets to cluster",
            executor,
        ),
    ]
