"""SFTP Bridge - browse and transfer files between this machine and SSH hosts."""

__version__ = "0.1.0"
