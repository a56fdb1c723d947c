"""Provision a Proxmox host and a kubernetes cluster over SSH."""

__version__ = "0.1.0"
