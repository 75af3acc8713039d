"""Pick an SSH host from your ssh config, known_hosts and /etc/hosts."""

__version__ = "1.0.0"
