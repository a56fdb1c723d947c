"""Create the server manager service accounts and launch its initializer pod."""
from __future__ import annotations

from ..config import AutomationConfig
from ..consts import K8S_MASTER_IP
from ..models import ConnectionInfo
from ..ssh import CommandExecutor
from ..steps import command_step
from ..workflow import WorkflowStep

TITLE = "Initialize and launch server management agent"

_SERVICE_ACCOUNTS_MANIFEST = """\
apiVersion: v1
kind: ServiceAccount
metadata:
  name: helm
  namespace: kube-system
  labels:
    app: "server-manager"
---
apiVersion: v1
kind: ServiceAccount
metadata:
  name: server-manager
  namespace: kube-system
  labels:
    app: "server-manager"
---
apiVersion: rbac.authorization.k8s.io/v1
kind: ClusterRoleBinding
metadata:
  name: server-manager
  labels:
    app: "server-manager"
roleRef:
  apiGroup: rbac.authorization.k8s.io
  kind: ClusterRole
  name: cluster-admin
subjects:
  - kind: ServiceAccount
    name: server-manager
    namespace: kube-system
  - kind: ServiceAccount
    name: helm
    namespace: kube-system"""

_INITIALIZER_MANIFEST = f"""\
apiVersion: v1
kind: Pod
metadata:
  name: server-initializer
  namespace: kube-system
  labels:
    app: "server-manager"
    module: "server-initializer"
spec:
  serviceAccountName: server-manager
  containers:
  - name: init-job
    image: dtzar/helm-kubectl:2.11.0
    volumeMounts:
      - name: helm-certificate
        mountPath: /etc/server-manager/helm-certificate
      - name: tiller-certificate
        mountPath: /etc/server-manager/tiller-certificate
      - name: helm-ca-certificate
        mountPath: /etc/server-manager/helm-ca-certificate
    env:
    - name: KUBERNETES_SERVICE_PORT
      value: "6443"
    - name: KUBERNETES_SERVICE_HOST
      value: "{K8S_MASTER_IP}"
    - name: SERVER_ID
      valueFrom:
        secretKeyRef:
          name: svm-server-identity
          key: serverId
    - name: SERVER_KEY
      valueFrom:
        secretKeyRef:
          name: svm-server-identity
          key: serverKey
    - name: CLOUD_ENDPOINT
      valueFrom:
        secretKeyRef:
          name: svm-server-identity
          key: cloudEndpoint
    command: ["sleep", "3000"]
  volumes:
    - name: helm-certificate
      secret:
        secretName: svm-helm-certificate
    - name: tiller-certificate
      secret:
        secretName: svm-tiller-certificate
    - name: helm-ca-certificate
      secret:
        secretName: svm-helm-ca-certificate"""


def _kubectl_apply_on_master(manifest: str) -> str:
    return "\n".join(
        [
            "ssh k8s-master <<'END_SCRIPT'",
            "set -x",
            "kubectl apply -f - <<'EOF'",
            manifest,
            "EOF",
            "END_SCRIPT",
        ]
    )


CREATE_SERVICE_ACCOUNTS_COMMANDS = [
    "# ---------- Create service accounts and assign permissions to them ----------",
    _kubectl_apply_on_master(_SERVICE_ACCOUNTS_MANIFEST),
]

LAUNCH_INITIALIZER_COMMANDS = [
    "# ---------- Launch the server manager initializer ----------",
    _kubectl_apply_on_master(_INITIALIZER_MANIFEST),
]


def get_steps(connection: ConnectionInfo, executor: CommandExecutor, config: AutomationConfig) -> list[WorkflowStep]:
    return [
        command_step(
            "Create service accounts on cluster",
            connection,
            CREATE_SERVICE_ACCOUNTS_COMMANDS,
            "Error creating service accounts on cluster",
            executor,
        ),
        command_step(
            "Launch server manager initializer",
            connection,
            LAUNCH_INITIALIZER_COMMANDS,
            "Error launching server manager initializer",
            executor,
        ),
    ]
