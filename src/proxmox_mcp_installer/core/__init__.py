"""Provisioning components and the install/uninstall orchestrator."""
